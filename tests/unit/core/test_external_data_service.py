from unittest.mock import AsyncMock, MagicMock

import pytest

from feastfinder.core.services.external_data_service import ExternalDataService, parse_params
from feastfinder.domain.errors import ValidationError
from feastfinder.domain.models.config import ExternalDataSource
from feastfinder.infrastructure.http.external_data import ExternalDataClient

SOURCE = ExternalDataSource(id="sample-api", name="Sample API", endpoint_url="https://jsonplaceholder.typicode.com")


@pytest.fixture
def client():
    mock = MagicMock(spec=ExternalDataClient)
    mock.get_source.side_effect = lambda sid: SOURCE if sid == "sample-api" else None
    mock.fetch = AsyncMock(return_value=[{"id": 1}])
    return mock


def test_parse_params():
    assert parse_params(None) is None
    assert parse_params("") is None
    assert parse_params('{"userId": 1, "q": "x"}') == {"userId": "1", "q": "x"}


@pytest.mark.parametrize("raw", ["{not json", "[1, 2]", '"text"'])
def test_parse_params_rejects_non_objects(raw):
    with pytest.raises(ValidationError, match="Invalid params format"):
        parse_params(raw)


@pytest.mark.asyncio
async def test_fetch_forwards_to_client(client):
    outcome = await ExternalDataService(client).fetch("sample-api", "posts", {"userId": "1"})

    assert outcome.data == [{"id": 1}]
    assert outcome.metadata()["sourceId"] == "sample-api"
    client.fetch.assert_awaited_once_with("sample-api", endpoint="posts", params={"userId": "1"}, method="GET", body=None)


@pytest.mark.asyncio
async def test_blank_endpoint_means_source_root(client):
    await ExternalDataService(client).fetch("sample-api", "", method="POST", body={"title": "x"})
    assert client.fetch.await_args.kwargs["endpoint"] is None
    assert client.fetch.await_args.kwargs["body"] == {"title": "x"}


@pytest.mark.asyncio
@pytest.mark.parametrize("source_id, message", [(None, "sourceId is required"), ("nope", "'nope' not found")])
async def test_fetch_requires_known_source(client, source_id, message):
    with pytest.raises(ValidationError, match=message):
        await ExternalDataService(client).fetch(source_id)
    client.fetch.assert_not_awaited()

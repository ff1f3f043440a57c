import httpx
import pytest

from feastfinder.domain.errors import ExternalServiceError, ServiceTimeoutError
from feastfinder.infrastructure.countries.rest_countries import REST_COUNTRIES_URL, RestCountriesClient


def make_client(handler) -> RestCountriesClient:
    return RestCountriesClient(http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_returns_sorted_common_names():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(
            200,
            json=[
                {"name": {"common": "Poland", "official": "Republic of Poland"}},
                {"name": {"common": "Germany"}},
                {"name": {"common": "  "}},
                {"name": {}},
                {"unexpected": True},
            ],
        )

    countries = await make_client(handler).fetch_countries()

    assert countries == ["Germany", "Poland"]
    assert str(seen[0].url) == REST_COUNTRIES_URL
    assert seen[0].headers["Accept"] == "application/json"


@pytest.mark.asyncio
async def test_timeout_becomes_timeout_error():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(ServiceTimeoutError):
        await make_client(handler).fetch_countries()


@pytest.mark.asyncio
async def test_http_error_becomes_external_error():
    with pytest.raises(ExternalServiceError, match="REST Countries"):
        await make_client(lambda r: httpx.Response(500)).fetch_countries()


@pytest.mark.asyncio
async def test_non_list_payload_rejected():
    with pytest.raises(ExternalServiceError, match="unexpected payload"):
        await make_client(lambda r: httpx.Response(200, json={"status": 404})).fetch_countries()

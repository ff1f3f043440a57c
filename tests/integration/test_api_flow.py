"""End-to-end API tests: real services and adapters, scripted model, mocked HTTP."""

import json
from unittest.mock import MagicMock

import httpx
import pytest
from openai import APIConnectionError, OpenAI, RateLimitError
from starlette.testclient import TestClient

from feastfinder.dependencies import create_dependencies
from feastfinder.infrastructure.ai.openai.gpt_client import GptClient
from feastfinder.infrastructure.config.settings import set_config_for_testing
from feastfinder.infrastructure.web.app import create_app

CAROL_URL = "https://open.spotify.com/track/bog-sie-rodzi"


class FakeUpstreams:
    """Routes outbound httpx calls for REST Countries, Spotify and the sample data source."""

    def __init__(self):
        self.calls = []
        self.proxied = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request.url.host)
        if request.url.host == "restcountries.com":
            return httpx.Response(
                200,
                json=[{"name": {"common": c}} for c in ("Poland", "Mexico", "Germany")],
            )
        if request.url.host == "accounts.spotify.com":
            return httpx.Response(200, json={"access_token": "t", "token_type": "Bearer", "expires_in": 3600})
        if request.url.host == "api.spotify.com":
            return httpx.Response(200, json={"tracks": {"items": [{"external_urls": {"spotify": CAROL_URL}}]}})
        if request.url.host == "jsonplaceholder.typicode.com":
            self.proxied.append(request)
            if request.method == "POST":
                return httpx.Response(201, json={"id": 101, **json.loads(request.content)})
            return httpx.Response(200, json=[{"id": 1, "userId": 1}])
        return httpx.Response(404)


@pytest.fixture
def upstreams():
    return FakeUpstreams()


@pytest.fixture
def make_client(monkeypatch, upstreams, scripted_model, mock_ui):
    monkeypatch.setenv("SPOTIFY_CLIENT_ID", "id")
    monkeypatch.setenv("SPOTIFY_CLIENT_SECRET", "secret")
    clients = []

    def _make(replies=(), ai_model=None):
        model = ai_model or scripted_model(list(replies))
        deps = create_dependencies(
            ui=mock_ui,
            ai_model=model,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(upstreams)),
            configure_logging=False,
        )
        client = TestClient(create_app(deps))
        client.__enter__()
        clients.append(client)
        return client, model

    yield _make
    for client in clients:
        client.__exit__(None, None, None)


def test_health(make_client):
    client, _ = make_client()
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "healthy"
    assert data["version"]


def test_countries(make_client):
    client, _ = make_client()
    body = client.get("/api/countries").json()
    assert body["success"] is True
    assert body["data"] == ["Germany", "Mexico", "Poland"]


def test_cultural_data_end_to_end(make_client, valid_combined_reply, upstreams):
    client, model = make_client([valid_combined_reply])

    response = client.post("/api/cultural-data", json={"country": "Poland", "mode": "fast"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["dishes"]["entry"]["name"] == "Barszcz"
    assert data["dishes"]["entry"]["type"] == "entry"
    assert data["dishes"]["main"]["country"] == "Poland"
    assert data["dishes"]["dessert"] is None
    assert data["carol"] == {"name": "Bóg się rodzi", "author": "Franciszek Karpiński", "country": "Poland"}
    assert data["spotifyUrl"] == CAROL_URL

    again = client.post("/api/cultural-data", json={"country": "poland"})
    assert again.json()["data"] == data
    assert model.call_count == 1
    assert upstreams.calls.count("restcountries.com") == 1


def test_dishes_end_to_end(make_client, valid_combined_reply):
    client, _ = make_client([valid_combined_reply])
    data = client.post("/api/dishes", json={"country": "Poland"}).json()["data"]
    assert set(data) == {"entry", "main", "dessert"}
    assert data["main"]["ingredients"] == ["carp", "flour", "butter"]


def test_validation_fails_before_any_upstream_call(make_client, upstreams):
    client, model = make_client()
    response = client.post("/api/cultural-data", json={"country": "  "})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
    assert upstreams.calls == []
    assert model.call_count == 0


def test_unknown_country(make_client):
    client, model = make_client()
    response = client.post("/api/dishes", json={"country": "Atlantis"})
    assert response.status_code == 400
    assert "not recognized" in response.json()["error"]["message"]
    assert model.call_count == 0


def test_countries_unavailable_is_503(make_client, upstreams, monkeypatch):
    monkeypatch.setattr(FakeUpstreams, "__call__", lambda self, request: httpx.Response(500))
    client, _ = make_client()
    response = client.post("/api/cultural-data", json={"country": "Poland"})
    assert response.status_code == 503
    assert response.json()["error"]["retryable"] is True


@pytest.mark.parametrize("payload", [b"{not json", b"[1, 2]"])
def test_malformed_body(make_client, payload):
    client, _ = make_client()
    response = client.post("/api/recipe", content=payload, headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Invalid request body. Must be valid JSON"


def test_recipe_end_to_end(make_client, valid_recipe_reply):
    client, _ = make_client([valid_recipe_reply])
    response = client.post("/api/recipe", json={"dishName": "Barszcz", "country": "Poland"})
    assert response.status_code == 200
    assert response.json()["data"]["steps"][0] == {
        "stepNumber": 1,
        "instruction": "Roast the beetroot.",
        "details": "About 1 hour at 200C",
    }


def test_malformed_model_reply_twice_is_500(make_client):
    client, model = make_client(["nope", "still nope"])
    response = client.post("/api/dishes", json={"country": "Mexico"})
    assert response.status_code == 500
    assert response.json()["error"]["code"] == "RESPONSE_FORMAT_ERROR"
    assert model.call_count == 2


def test_ai_process_demo(make_client):
    client, _ = make_client()
    body = client.post("/api/ai/process", json={"serviceId": "demo-ai", "prompt": "Hello there"}).json()
    assert body["data"]["result"].startswith("[Demo AI Response]")
    assert body["metadata"]["serviceId"] == "demo-ai"
    assert body["metadata"]["model"] == "demo-model"


def test_ai_process_rate_limited(make_client):
    set_config_for_testing(
        {
            "ai_services": [
                {
                    "id": "tiny",
                    "provider": "demo",
                    "endpoint_url": "https://api.example.com/ai",
                    "model": "demo-model",
                    "rate_limit": {"requests_per_minute": 1},
                }
            ]
        }
    )
    client, _ = make_client()
    assert client.post("/api/ai/process", json={"serviceId": "tiny", "prompt": "one"}).status_code == 200

    response = client.post("/api/ai/process", json={"serviceId": "tiny", "prompt": "two"})
    assert response.status_code == 429
    assert response.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"
    assert int(response.headers["X-RateLimit-Reset"]) > 0


def test_ai_process_unknown_service(make_client):
    client, _ = make_client()
    response = client.post("/api/ai/process", json={"serviceId": "nope", "prompt": "hi"})
    assert response.status_code == 400


def test_external_data_rejects_bad_params(make_client, upstreams):
    client, _ = make_client()
    response = client.get("/api/external-data", params={"sourceId": "sample-api", "params": "{bad"})
    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Invalid params format. Must be valid JSON"
    assert upstreams.calls == []


def test_external_data_requires_source(make_client):
    client, _ = make_client()
    response = client.get("/api/external-data")
    assert response.status_code == 400
    assert response.json()["error"]["message"] == "sourceId is required"


def test_external_data_proxied_get(make_client, upstreams):
    client, _ = make_client()
    response = client.get(
        "/api/external-data",
        params={"sourceId": "sample-api", "endpoint": "posts", "params": json.dumps({"userId": 1})},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["data"] == [{"id": 1, "userId": 1}]
    assert body["metadata"]["sourceId"] == "sample-api"
    assert isinstance(body["metadata"]["responseTime"], int)
    sent = upstreams.proxied[0]
    assert sent.method == "GET"
    assert sent.url.path == "/posts"
    assert sent.url.params["userId"] == "1"


def test_external_data_proxied_post(make_client, upstreams):
    client, _ = make_client()
    response = client.post(
        "/api/external-data",
        params={"sourceId": "sample-api", "endpoint": "posts"},
        json={"title": "Wigilia"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["data"] == {"id": 101, "title": "Wigilia"}
    assert body["metadata"]["sourceId"] == "sample-api"
    assert "responseTime" in body["metadata"]
    sent = upstreams.proxied[0]
    assert sent.method == "POST"
    assert json.loads(sent.content) == {"title": "Wigilia"}


OPENAI_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


@pytest.mark.parametrize(
    "raised",
    [
        RateLimitError("slow down", response=httpx.Response(429, request=OPENAI_REQUEST), body=None),
        APIConnectionError(request=OPENAI_REQUEST),
    ],
)
def test_openai_outage_is_retryable_500(make_client, raised):
    sdk = MagicMock(spec=OpenAI)
    sdk.chat = MagicMock()
    sdk.chat.completions.create.side_effect = raised
    client, _ = make_client(ai_model=GptClient(client=sdk))

    response = client.post("/api/dishes", json={"country": "Poland"})

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "EXTERNAL_SERVICE_ERROR"
    assert response.json()["error"]["retryable"] is True
    assert "X-RateLimit-Reset" not in response.headers

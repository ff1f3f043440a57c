import pytest
from starlette.applications import Starlette
from starlette.routing import Route
from starlette.testclient import TestClient

from feastfinder.domain.errors import (
    ErrorCode,
    ExternalServiceError,
    RateLimitExceededError,
    ServiceError,
    ValidationError,
)
from feastfinder.infrastructure.web import responses
from feastfinder.infrastructure.web.responses import api_endpoint, error_response, status_for


@pytest.mark.parametrize(
    "error, status",
    [
        (ValidationError("x"), 400),
        (RateLimitExceededError("x"), 429),
        (ServiceError("x", code=ErrorCode.SERVICE_UNAVAILABLE), 503),
        (ExternalServiceError("x"), 500),
        (ServiceError("x"), 500),
    ],
)
def test_status_for(error, status):
    assert status_for(error) == status


def test_rate_limit_header_in_milliseconds():
    response = error_response(RateLimitExceededError("slow down", reset_time=1_700_000_060.25))
    assert response.status_code == 429
    assert response.headers["X-RateLimit-Reset"] == "1700000060250"


def test_rate_limit_header_defaults_to_a_minute(mocker):
    mocker.patch.object(responses, "now_ms", return_value=1_000)
    response = error_response(RateLimitExceededError("slow down"))
    assert response.headers["X-RateLimit-Reset"] == "61000"


def test_other_errors_have_no_reset_header():
    assert "X-RateLimit-Reset" not in error_response(ValidationError("bad")).headers


@api_endpoint
async def plain(request):
    return {"ok": True}


@api_endpoint
async def with_metadata(request):
    return [1, 2], {"sourceId": "sample-api"}


@api_endpoint
async def invalid(request):
    raise ValidationError("Country name is required")


@api_endpoint
async def crashes(request):
    raise KeyError("secret-internal-detail")


@pytest.fixture
def client():
    app = Starlette(
        routes=[
            Route("/plain", plain),
            Route("/meta", with_metadata),
            Route("/invalid", invalid),
            Route("/crash", crashes),
        ]
    )
    return TestClient(app)


def test_success_envelope(client):
    body = client.get("/plain").json()
    assert body["success"] is True
    assert body["data"] == {"ok": True}
    assert isinstance(body["metadata"]["timestamp"], int)


def test_success_envelope_merges_metadata(client):
    body = client.get("/meta").json()
    assert body["data"] == [1, 2]
    assert body["metadata"]["sourceId"] == "sample-api"
    assert "timestamp" in body["metadata"]


def test_service_error_envelope(client):
    response = client.get("/invalid")
    assert response.status_code == 400
    assert response.json()["success"] is False
    assert response.json()["error"] == {
        "message": "Country name is required",
        "code": "VALIDATION_ERROR",
        "retryable": False,
    }


def test_unexpected_errors_are_hidden(client):
    response = client.get("/crash")
    assert response.status_code == 500
    error = response.json()["error"]
    assert error["code"] == "INTERNAL_ERROR"
    assert error["message"] == "An unexpected error occurred. Please try again later."
    assert "secret" not in response.text

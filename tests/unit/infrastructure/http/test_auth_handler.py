import base64

import pytest

from feastfinder.domain.models.config import AuthenticationConfig
from feastfinder.infrastructure.http.auth_handler import apply_authentication


def test_none_method_leaves_headers_untouched():
    headers = {"Content-Type": "application/json"}
    result = apply_authentication(AuthenticationConfig(method="none"), headers)
    assert result == headers
    assert result is not headers


def test_api_key_uses_default_header():
    result = apply_authentication(AuthenticationConfig(method="apiKey", api_key="k-123"))
    assert result == {"X-API-Key": "k-123"}


def test_api_key_custom_header():
    config = AuthenticationConfig(method="apiKey", api_key="k-123", header_name="X-Custom")
    assert apply_authentication(config) == {"X-Custom": "k-123"}


def test_bearer():
    result = apply_authentication(AuthenticationConfig(method="bearer", bearer_token="tok"))
    assert result["Authorization"] == "Bearer tok"


def test_basic():
    config = AuthenticationConfig(method="basic", username="santa", password="ho-ho")
    expected = base64.b64encode(b"santa:ho-ho").decode()
    assert apply_authentication(config)["Authorization"] == f"Basic {expected}"


@pytest.mark.parametrize(
    "config",
    [
        AuthenticationConfig(method="apiKey"),
        AuthenticationConfig(method="bearer"),
        AuthenticationConfig(method="basic", username="only-user"),
    ],
)
def test_missing_credentials_add_nothing(config):
    assert apply_authentication(config) == {}


def test_unknown_method_rejected_when_loading():
    with pytest.raises(ValueError, match="Unsupported authentication method"):
        AuthenticationConfig.from_dict({"method": "oauth"})

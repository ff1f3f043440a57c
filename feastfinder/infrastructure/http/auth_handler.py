"""Builds request headers for the configured authentication method."""

import base64
from typing import Dict, Mapping, Optional

from feastfinder.domain.models.config import DEFAULT_API_KEY_HEADER, AuthenticationConfig


def apply_authentication(
    config: Optional[AuthenticationConfig],
    headers: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Returns a copy of headers with credentials added.

    Methods with missing credentials add nothing, the same as 'none'.
    """
    auth_headers = dict(headers or {})
    if config is None:
        return auth_headers

    if config.method == "apiKey":
        if config.api_key:
            auth_headers[config.header_name or DEFAULT_API_KEY_HEADER] = config.api_key
    elif config.method == "bearer":
        if config.bearer_token:
            auth_headers["Authorization"] = f"Bearer {config.bearer_token}"
    elif config.method == "basic":
        if config.username and config.password:
            auth_headers["Authorization"] = f"Basic {basic_credentials(config.username, config.password)}"

    return auth_headers


def basic_credentials(username: str, password: str) -> str:
    return base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")

"""Client for configured external data sources.

Every call runs under the source's timeout and is retried by the
ApiRetryService up to the source's retry_attempts.
"""

import logging
from typing import Any, Dict, Literal, Optional

import httpx

from feastfinder.domain.errors import ValidationError
from feastfinder.domain.models.config import ApplicationConfiguration, ExternalDataSource
from feastfinder.infrastructure.http.auth_handler import apply_authentication
from feastfinder.infrastructure.resilience.api_retry import ApiRetryService

logger = logging.getLogger(__name__)

HttpMethod = Literal["GET", "POST", "PUT", "DELETE"]
HTTP_METHODS = ("GET", "POST", "PUT", "DELETE")


def build_url(base_url: str, endpoint: Optional[str] = None) -> str:
    """Joins base and endpoint with exactly one slash between them."""
    if not endpoint:
        return base_url
    return f"{base_url.rstrip('/')}/{endpoint.lstrip('/')}"


class ExternalDataClient:
    """Fetches JSON from the external data sources in the configuration."""

    def __init__(
        self,
        config: ApplicationConfiguration,
        retry_service: ApiRetryService,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config
        self.retry_service = retry_service
        self._http = http_client or httpx.AsyncClient()

    def get_source(self, source_id: str) -> Optional[ExternalDataSource]:
        return self.config.find_source(source_id)

    async def fetch(
        self,
        source_id: str,
        endpoint: Optional[str] = None,
        params: Optional[Dict[str, str]] = None,
        method: HttpMethod = "GET",
        body: Any = None,
    ) -> Any:
        """Calls a data source and returns its decoded JSON body.

        Raises:
            ValidationError: Unknown source id or unsupported method.
            ServiceError: The upstream call failed after retries.
        """
        source = self.get_source(source_id)
        if source is None:
            raise ValidationError(f"External data source '{source_id}' not found")
        if method not in HTTP_METHODS:
            raise ValidationError(f"Unsupported method '{method}'")

        url = build_url(source.endpoint_url, endpoint)
        headers = apply_authentication(source.authentication, {"Content-Type": "application/json"})
        request_kwargs: Dict[str, Any] = {"headers": headers, "timeout": source.timeout}
        if method == "GET" and params:
            request_kwargs["params"] = params
        if method in ("POST", "PUT") and body is not None:
            request_kwargs["json"] = body

        async def _send() -> Any:
            response = await self._http.request(method, url, **request_kwargs)
            response.raise_for_status()
            return response.json()

        logger.info(f"Fetching {method} {url} from source '{source.id}'")
        return await self.retry_service.execute_with_retry(
            _send,
            retry_attempts=source.retry_attempts,
            provider_name=source.id,
            endpoint_name=endpoint or "/",
            error_message=f"Failed to fetch data from {source.name}",
        )

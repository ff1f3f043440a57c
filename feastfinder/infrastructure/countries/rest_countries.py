"""REST Countries API adapter."""

import logging
from typing import List, Optional

import httpx

from feastfinder.domain.errors import ExternalServiceError
from feastfinder.domain.models.common import CountryName
from feastfinder.infrastructure.resilience.api_retry import wrap_error

logger = logging.getLogger(__name__)

REST_COUNTRIES_URL = "https://restcountries.com/v3.1/all?fields=name"
REQUEST_TIMEOUT_S = 10.0


class RestCountriesClient:
    """Fetches the list of country common names."""

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None, url: str = REST_COUNTRIES_URL):
        self.url = url
        self._http = http_client or httpx.AsyncClient()

    async def fetch_countries(self) -> List[CountryName]:
        """Returns sorted, non-empty `name.common` values.

        Raises:
            ServiceTimeoutError: The request exceeded its deadline.
            ExternalServiceError: Any other failure.
        """
        try:
            response = await self._http.get(
                self.url, headers={"Accept": "application/json"}, timeout=REQUEST_TIMEOUT_S
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"REST Countries request failed: {e!r}")
            raise wrap_error(e, "REST Countries request failed") from e

        if not isinstance(data, list):
            raise ExternalServiceError("REST Countries returned an unexpected payload")

        names = []
        for item in data:
            try:
                name = item["name"]["common"]
            except (KeyError, TypeError):
                continue
            if isinstance(name, str) and name.strip():
                names.append(CountryName(name))
        logger.info(f"Fetched {len(names)} countries from REST Countries")
        return sorted(names)

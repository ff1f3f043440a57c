"""
Core service for the list of valid countries.

Wraps the REST Countries adapter with a 10 minute cache and a stale
fallback, and validates user-supplied country names against the list.
"""

import logging
from typing import FrozenSet, List, Optional

from feastfinder.domain.errors import ExternalServiceError, ServiceError, ServiceTimeoutError
from feastfinder.domain.interfaces.cache import CacheService
from feastfinder.domain.models.common import CacheKey, CountryName
from feastfinder.domain.models.cultural import ValidationResult
from feastfinder.infrastructure.countries.rest_countries import RestCountriesClient

logger = logging.getLogger(__name__)

COUNTRIES_CACHE_KEY = CacheKey("countries")
COUNTRIES_CACHE_TTL = 10 * 60

TIMEOUT_MESSAGE = "Request timed out. Please try again."
UNAVAILABLE_MESSAGE = "Unable to load countries. Please try again later."
REQUIRED_MESSAGE = "Country name is required"
VALIDATION_UNAVAILABLE_MESSAGE = "Unable to validate country. Please try again later."


class CountriesService:
    """Provides the countries list and country-name validation."""

    def __init__(self, countries_client: RestCountriesClient, cache_service: CacheService):
        self.countries_client = countries_client
        self.cache_service = cache_service
        # The cache evicts on read, so the stale copy is kept here.
        self._last_known: Optional[List[CountryName]] = None
        self._normalized: FrozenSet[str] = frozenset()

    def _remember(self, countries: List[CountryName]) -> None:
        self._last_known = countries
        self._normalized = frozenset(c.lower() for c in countries)

    async def get_countries(self) -> List[CountryName]:
        """Returns the sorted countries list.

        Serves the cache when fresh, otherwise fetches. When the fetch fails
        the last successfully fetched list is returned instead.

        Raises:
            ServiceTimeoutError: Fetch timed out and no list was ever loaded.
            ExternalServiceError: Any other fetch failure with no list loaded.
        """
        cached = await self.cache_service.get(COUNTRIES_CACHE_KEY)
        if cached:
            logger.debug("Countries list served from cache")
            return cached

        try:
            countries = await self.countries_client.fetch_countries()
        except ServiceError as e:
            if self._last_known:
                logger.warning(
                    f"Countries fetch failed ({e.code.value}); serving stale list of {len(self._last_known)}"
                )
                return self._last_known
            logger.error(f"Countries fetch failed with no fallback available: {e.message}")
            if isinstance(e, ServiceTimeoutError):
                raise ServiceTimeoutError(TIMEOUT_MESSAGE) from e
            raise ExternalServiceError(UNAVAILABLE_MESSAGE) from e

        await self.cache_service.set(COUNTRIES_CACHE_KEY, countries, ttl=COUNTRIES_CACHE_TTL)
        self._remember(countries)
        return countries

    async def validate_country(self, country_name: Optional[str]) -> ValidationResult:
        """Checks a country name case-insensitively against the list."""
        if country_name is None or not isinstance(country_name, str):
            return ValidationResult(is_valid=False, country_name="", error=REQUIRED_MESSAGE)

        trimmed = country_name.strip()
        if not trimmed:
            return ValidationResult(is_valid=False, country_name="", error=REQUIRED_MESSAGE)

        try:
            countries = await self.get_countries()
        except ServiceError as e:
            logger.warning(f"Cannot validate country '{trimmed}': {e.message}")
            return ValidationResult(
                is_valid=False,
                country_name=trimmed,
                error=VALIDATION_UNAVAILABLE_MESSAGE,
                unavailable=True,
            )

        if countries is not self._last_known:
            self._remember(countries)

        if trimmed.lower() in self._normalized:
            return ValidationResult(is_valid=True, country_name=trimmed)
        return ValidationResult(
            is_valid=False,
            country_name=trimmed,
            error=f"Country '{trimmed}' is not recognized. Please select a valid country from the list.",
        )

    async def is_country_valid(self, country_name: Optional[str]) -> bool:
        result = await self.validate_country(country_name)
        return result.is_valid

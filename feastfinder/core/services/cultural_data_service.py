"""
Core service for Christmas dishes and carols.

Coordinates country validation, caching, the model query with its
format-driven retry, and the Spotify lookup for the carol.
"""

import logging
from typing import Optional

from feastfinder.core.prompts import build_combined_prompt, build_refined_combined_prompt
from feastfinder.core.response_parser import (
    parse_combined_response,
    stamp_dishes,
    validate_combined_data,
)
from feastfinder.core.services.countries_service import CountriesService
from feastfinder.domain.errors import ErrorCode, ResponseFormatError, ServiceError, ValidationError
from feastfinder.domain.interfaces.ai_model import AIModel
from feastfinder.domain.interfaces.cache import CacheService
from feastfinder.domain.models.common import (
    SEARCH_MODES,
    CachePrefix,
    DEFAULT_SEARCH_MODE,
    make_cache_key,
)
from feastfinder.domain.models.cultural import CountryCulturalData, DishesResponse
from feastfinder.infrastructure.ai.spotify.spotify_client import SpotifyClient
from feastfinder.infrastructure.config.settings import get_model_for_mode

logger = logging.getLogger(__name__)

CULTURAL_DATA_CACHE_PREFIX = CachePrefix("cultural-data")
DISHES_CACHE_PREFIX = CachePrefix("dishes")
CULTURAL_DATA_CACHE_TTL = 20 * 60

INVALID_MODE_MESSAGE = "Invalid mode. Must be 'fast' or 'detailed'"


def require_text(value: Optional[str], message: str) -> str:
    """Returns the trimmed value or raises ValidationError when it is blank."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message)
    return value.strip()


def require_mode(mode: Optional[str]) -> str:
    if mode is None:
        return DEFAULT_SEARCH_MODE
    if mode not in SEARCH_MODES:
        raise ValidationError(INVALID_MODE_MESSAGE)
    return mode


async def _query_once(ai_model: AIModel, prompt: str, country: str, model: str) -> CountryCulturalData:
    reply = await ai_model.complete_json(prompt, model=model)
    data = parse_combined_response(reply, country)
    if not validate_combined_data(data):
        raise ResponseFormatError("Invalid data: response does not meet validation requirements")
    return data


async def query_cultural_data_with_retry(
    ai_model: AIModel, country: str, mode: str = DEFAULT_SEARCH_MODE
) -> CountryCulturalData:
    """Asks the model for dishes and a carol, with one refined retry.

    A reply that fails parsing or validation earns exactly one more attempt
    with the stricter prompt. Upstream errors are not retried here.

    Raises:
        ResponseFormatError: Both attempts produced unusable replies.
        ServiceError: The model call itself failed.
    """
    model = get_model_for_mode(mode)
    try:
        data = await _query_once(ai_model, build_combined_prompt(country), country, model)
    except ResponseFormatError as first:
        logger.warning(f"Unusable cultural data reply for {country}: {first.message}; retrying with refined prompt")
        try:
            data = await _query_once(ai_model, build_refined_combined_prompt(country), country, model)
        except ResponseFormatError as second:
            logger.error(f"Cultural data reply for {country} still unusable after retry: {second.message}")
            raise ResponseFormatError(f"Failed to retrieve valid data after retry: {second.message}") from second

    stamp_dishes(data.dishes, country)
    return data


class CulturalDataService:
    """Orchestrates the cultural data lookups for a country."""

    def __init__(
        self,
        ai_model: AIModel,
        countries_service: CountriesService,
        spotify_client: SpotifyClient,
        cache_service: CacheService,
        cache_ttl: float = CULTURAL_DATA_CACHE_TTL,
    ):
        self.ai_model = ai_model
        self.countries_service = countries_service
        self.spotify_client = spotify_client
        self.cache_service = cache_service
        self.cache_ttl = cache_ttl
        logger.info(f"CulturalDataService initialized with AI model: {ai_model.__class__.__name__}")

    async def _require_known_country(self, country: str) -> str:
        result = await self.countries_service.validate_country(country)
        if result.is_valid:
            return result.country_name
        if result.unavailable:
            raise ServiceError(result.error, code=ErrorCode.SERVICE_UNAVAILABLE, retryable=True)
        raise ValidationError(result.error)

    async def get_cultural_data(self, country: Optional[str], mode: Optional[str] = None) -> CountryCulturalData:
        """Dishes, carol and Spotify link for a country.

        Only validated replies are cached. A failed Spotify lookup leaves
        `spotify_url` as None and does not fail the request.
        """
        country_name = require_text(country, "Country name is required")
        search_mode = require_mode(mode)
        country_name = await self._require_known_country(country_name)

        cache_key = make_cache_key(CULTURAL_DATA_CACHE_PREFIX, country_name.lower())
        cached = await self.cache_service.get(cache_key)
        if cached is not None:
            logger.debug(f"Cultural data for {country_name} served from cache")
            return cached

        data = await query_cultural_data_with_retry(self.ai_model, country_name, search_mode)
        if data.carol is not None:
            data.spotify_url = await self.spotify_client.find_carol_url(data.carol.name)

        await self.cache_service.set(cache_key, data, ttl=self.cache_ttl)
        logger.info(f"Cultural data for {country_name} retrieved ({len(data.dishes.present())} dishes)")
        return data

    async def get_dishes(self, country: Optional[str], mode: Optional[str] = None) -> DishesResponse:
        """Dishes only; cached under their own key."""
        country_name = require_text(country, "Country name is required")
        search_mode = require_mode(mode)
        country_name = await self._require_known_country(country_name)

        cache_key = make_cache_key(DISHES_CACHE_PREFIX, country_name)
        cached = await self.cache_service.get(cache_key)
        if cached is not None:
            return cached

        data = await query_cultural_data_with_retry(self.ai_model, country_name, search_mode)
        await self.cache_service.set(cache_key, data.dishes, ttl=self.cache_ttl)
        return data.dishes

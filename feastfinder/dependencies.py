"""Composition root: builds and wires every service once per process.

The web app and the CLI both receive the same container, so cache and
rate-limit state live in exactly one place.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from feastfinder.core.command_handler import CommandHandler
from feastfinder.core.services.ai_processing_service import AIProcessingService
from feastfinder.core.services.countries_service import CountriesService
from feastfinder.core.services.cultural_data_service import CulturalDataService
from feastfinder.core.services.external_data_service import ExternalDataService
from feastfinder.core.services.recipe_service import RecipeService
from feastfinder.domain.interfaces.ai_model import AIModel
from feastfinder.domain.interfaces.user_interface import UserInterface
from feastfinder.domain.models.config import ApplicationConfiguration
from feastfinder.infrastructure.ai.ai_service import AIServiceClient
from feastfinder.infrastructure.ai.openai.gpt_client import GptClient
from feastfinder.infrastructure.ai.spotify.spotify_client import SpotifyClient
from feastfinder.infrastructure.cache.caching_service import InMemoryCache
from feastfinder.infrastructure.cli.display import ConsoleDisplay
from feastfinder.infrastructure.config.settings import (
    get_config,
    get_openai_api_key,
    get_spotify_credentials,
    load_application_configuration,
)
from feastfinder.infrastructure.countries.rest_countries import RestCountriesClient
from feastfinder.infrastructure.http.external_data import ExternalDataClient
from feastfinder.infrastructure.monitoring.logger_setup import DEFAULT_LOG_FORMAT, setup_logging
from feastfinder.infrastructure.resilience.api_retry import ApiRetryService
from feastfinder.infrastructure.resilience.rate_limiter import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)


@dataclass
class Dependencies:
    config: ApplicationConfiguration
    cache_service: InMemoryCache
    rate_limiter: SlidingWindowRateLimiter
    http_client: httpx.AsyncClient
    ai_model: AIModel
    countries_service: CountriesService
    cultural_data_service: CulturalDataService
    recipe_service: RecipeService
    external_data_service: ExternalDataService
    ai_processing_service: AIProcessingService
    command_handler: CommandHandler
    ui: UserInterface

    async def aclose(self) -> None:
        await self.http_client.aclose()


def create_dependencies(
    ui: Optional[UserInterface] = None,
    ai_model: Optional[AIModel] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    configure_logging: bool = True,
) -> Dependencies:
    """Creates and wires up all dependencies for the application.

    Args:
        ui: Output for CLI commands; a rich ConsoleDisplay by default.
        ai_model: Language model; an OpenAI GptClient by default.
        http_client: Shared outbound client for every HTTP adapter.
        configure_logging: Apply the logging.* configuration keys.
    """
    config = load_application_configuration()
    if configure_logging:
        setup_logging(
            log_level=get_config("logging.level", "INFO"),
            log_format=get_config("logging.format", DEFAULT_LOG_FORMAT),
            log_file=get_config("logging.file"),
        )
    logger.info("Initializing application dependencies...")

    ui = ui or ConsoleDisplay()
    http = http_client or httpx.AsyncClient()
    cache_service = InMemoryCache()
    rate_limiter = SlidingWindowRateLimiter()
    retry_service = ApiRetryService(
        max_retries=int(get_config("retry.max_retries", 3)),
        initial_backoff_s=float(get_config("retry.initial_backoff_seconds", 1.0)),
        backoff_factor=float(get_config("retry.backoff_factor", 2.0)),
    )

    if ai_model is None:
        ai_model = GptClient(api_key=get_openai_api_key())
    client_id, client_secret = get_spotify_credentials()
    spotify_client = SpotifyClient(cache_service, client_id, client_secret, http_client=http)

    countries_service = CountriesService(RestCountriesClient(http_client=http), cache_service)
    cultural_data_service = CulturalDataService(ai_model, countries_service, spotify_client, cache_service)
    recipe_service = RecipeService(ai_model, cache_service)
    external_data_service = ExternalDataService(ExternalDataClient(config, retry_service, http_client=http))
    ai_processing_service = AIProcessingService(AIServiceClient(config, http_client=http), rate_limiter)

    command_handler = CommandHandler(
        countries_service=countries_service,
        cultural_data_service=cultural_data_service,
        recipe_service=recipe_service,
        ui=ui,
    )
    logger.info("All dependencies initialized successfully.")
    return Dependencies(
        config=config,
        cache_service=cache_service,
        rate_limiter=rate_limiter,
        http_client=http,
        ai_model=ai_model,
        countries_service=countries_service,
        cultural_data_service=cultural_data_service,
        recipe_service=recipe_service,
        external_data_service=external_data_service,
        ai_processing_service=ai_processing_service,
        command_handler=command_handler,
        ui=ui,
    )

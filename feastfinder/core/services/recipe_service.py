"""Core service for step-by-step recipes."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from feastfinder.core.prompts import build_recipe_prompt
from feastfinder.core.response_parser import parse_recipe_response
from feastfinder.core.services.cultural_data_service import require_mode, require_text
from feastfinder.domain.errors import ExternalServiceError, ResponseFormatError, ServiceError
from feastfinder.domain.interfaces.ai_model import AIModel
from feastfinder.domain.interfaces.cache import CacheService
from feastfinder.domain.models.common import CachePrefix, DEFAULT_SEARCH_MODE, make_cache_key
from feastfinder.domain.models.cultural import Recipe
from feastfinder.infrastructure.config.settings import get_model_for_mode
from feastfinder.infrastructure.resilience.api_retry import is_retryable_error

logger = logging.getLogger(__name__)

RECIPE_CACHE_PREFIX = CachePrefix("recipe")
RECIPE_CACHE_TTL = 20 * 60
RECIPE_MAX_ATTEMPTS = 3
RECIPE_BACKOFF_STEP_S = 1.0

SleepFunc = Callable[[float], Awaitable[None]]


def recipe_cache_key(dish_name: str, country: str, mode: str):
    dish_slug = "-".join(dish_name.lower().split())
    return make_cache_key(RECIPE_CACHE_PREFIX, dish_slug, country.lower(), mode)


async def query_recipe_with_retry(
    ai_model: AIModel,
    dish_name: str,
    country: str,
    mode: str = DEFAULT_SEARCH_MODE,
    max_attempts: int = RECIPE_MAX_ATTEMPTS,
    sleep: SleepFunc = asyncio.sleep,
) -> Recipe:
    """Asks the model for a recipe, retrying transient upstream failures.

    Waits 1 s, then 2 s between attempts. Format errors and non-retryable
    upstream errors are raised straight away.
    """
    model = get_model_for_mode(mode)
    prompt = build_recipe_prompt(dish_name, country)
    last_error: Optional[ServiceError] = None

    for attempt in range(1, max_attempts + 1):
        try:
            reply = await ai_model.complete_json(prompt, model=model)
            return parse_recipe_response(reply)
        except ResponseFormatError:
            raise
        except ServiceError as e:
            if not is_retryable_error(e):
                raise
            last_error = e
            if attempt == max_attempts:
                break
            delay = RECIPE_BACKOFF_STEP_S * attempt
            logger.warning(f"Recipe attempt {attempt}/{max_attempts} for '{dish_name}' failed: {e.message}. Retrying in {delay:.0f}s")
            await sleep(delay)

    logger.error(f"Recipe for '{dish_name}' failed after {max_attempts} attempts")
    if last_error is not None:
        raise last_error
    raise ExternalServiceError("Unable to generate recipe. Please try again later.")


class RecipeService:
    """Serves cached recipes, querying the model on a miss."""

    def __init__(
        self,
        ai_model: AIModel,
        cache_service: CacheService,
        cache_ttl: float = RECIPE_CACHE_TTL,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.ai_model = ai_model
        self.cache_service = cache_service
        self.cache_ttl = cache_ttl
        self._sleep = sleep

    async def get_recipe(self, dish_name: Optional[str], country: Optional[str], mode: Optional[str] = None) -> Recipe:
        country_name = require_text(country, "Country name is required")
        dish = require_text(dish_name, "Dish name is required")
        search_mode = require_mode(mode)

        cache_key = recipe_cache_key(dish, country_name, search_mode)
        cached = await self.cache_service.get(cache_key)
        if cached is not None:
            logger.debug(f"Recipe '{cache_key}' served from cache")
            return cached

        recipe = await query_recipe_with_retry(
            self.ai_model, dish, country_name, search_mode, sleep=self._sleep
        )
        await self.cache_service.set(cache_key, recipe, ttl=self.cache_ttl)
        logger.info(f"Recipe for '{dish}' ({country_name}) generated with {len(recipe.steps)} steps")
        return recipe

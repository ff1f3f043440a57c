"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py) and delegates the
work to the application services, reporting results and failures through
the UserInterface.
"""

import logging
from typing import Optional

from feastfinder.core.services.countries_service import CountriesService
from feastfinder.core.services.cultural_data_service import CulturalDataService
from feastfinder.core.services.recipe_service import RecipeService
from feastfinder.domain.errors import ServiceError
from feastfinder.domain.interfaces.user_interface import UserInterface

logger = logging.getLogger(__name__)


class CommandHandler:
    """Handles incoming commands and delegates to appropriate services.

    Every handler returns True on success so the CLI can set its exit code.
    """

    def __init__(
        self,
        countries_service: CountriesService,
        cultural_data_service: CulturalDataService,
        recipe_service: RecipeService,
        ui: UserInterface,
    ):
        self.countries_service = countries_service
        self.cultural_data_service = cultural_data_service
        self.recipe_service = recipe_service
        self.ui = ui

    def _report(self, action: str, error: Exception) -> None:
        if isinstance(error, ServiceError):
            logger.error(f"{action} failed [{error.code.value}]: {error.message}")
            self.ui.display_error(error.message)
            if error.retryable:
                self.ui.display_info("This error is temporary. Please try again.")
        else:
            logger.error(f"{action} failed: {error}", exc_info=True)
            self.ui.display_error(f"{action} failed: {error}")

    async def handle_countries(self) -> bool:
        logger.info("Handling 'countries' command.")
        try:
            countries = await self.countries_service.get_countries()
        except Exception as e:
            self._report("Loading countries", e)
            return False
        self.ui.display_countries(countries)
        return True

    async def handle_feast(self, country: str, mode: Optional[str] = None) -> bool:
        """Handles the 'feast' command: dishes, carol and Spotify link."""
        logger.info(f"Handling 'feast' command for country: {country} (mode: {mode or 'default'})")
        try:
            data = await self.cultural_data_service.get_cultural_data(country, mode)
        except Exception as e:
            self._report("Cultural data lookup", e)
            return False
        self.ui.display_cultural_data(country.strip(), data)
        return True

    async def handle_recipe(self, dish_name: str, country: str, mode: Optional[str] = None) -> bool:
        logger.info(f"Handling 'recipe' command for '{dish_name}' from {country}")
        try:
            recipe = await self.recipe_service.get_recipe(dish_name, country, mode)
        except Exception as e:
            self._report("Recipe lookup", e)
            return False
        self.ui.display_recipe(dish_name.strip(), recipe)
        return True

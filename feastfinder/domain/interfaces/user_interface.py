"""Interface for presenting results to the user.

Defines the contract for displaying information, errors, warnings and the
cultural data results, allowing different UI implementations.
"""

import abc
from typing import Any, List

from feastfinder.domain.models.cultural import CountryCulturalData, Recipe


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        pass

    @abc.abstractmethod
    def display_countries(self, countries: List[str]) -> None:
        pass

    @abc.abstractmethod
    def display_cultural_data(self, country: str, data: CountryCulturalData) -> None:
        """Renders dishes, the carol and its Spotify link for a country."""
        pass

    @abc.abstractmethod
    def display_recipe(self, dish_name: str, recipe: Recipe) -> None:
        pass

"""
Parsing and validation of model replies.

The model is asked for JSON, but nothing guarantees it complies. These
functions turn raw reply text into the cultural data models or raise
ResponseFormatError; the services decide whether a format error is worth
another attempt.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from feastfinder.domain.errors import ResponseFormatError
from feastfinder.domain.models.common import DISH_TYPES, CountryName
from feastfinder.domain.models.cultural import (
    ChristmasCarol,
    CountryCulturalData,
    Dish,
    DishesResponse,
    Recipe,
    RecipeStep,
)

logger = logging.getLogger(__name__)


def _is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _load_json_object(json_text: str, what: str) -> Dict[str, Any]:
    try:
        parsed = json.loads(json_text)
    except (TypeError, ValueError) as e:
        raise ResponseFormatError(f"Invalid JSON in {what} response: {e}") from e
    if not isinstance(parsed, dict):
        raise ResponseFormatError(f"Invalid {what} response format: expected object")
    return parsed


def parse_carol_data(carol_data: Any, country: str) -> Optional[ChristmasCarol]:
    """Returns a carol when `carol_data` has a usable name, otherwise None.

    Author is kept only when it is a non-empty string; anything else means
    unknown or traditional.
    """
    if not isinstance(carol_data, dict):
        return None
    name = carol_data.get("name")
    if not _is_non_empty_str(name):
        return None
    author = carol_data.get("author")
    return ChristmasCarol(
        name=name.strip(),
        country=CountryName(country),
        author=author.strip() if _is_non_empty_str(author) else None,
    )


def _parse_dish(raw: Any, category: str) -> Optional[Dish]:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ResponseFormatError(f"Invalid response format: '{category}' dish is not an object")
    # Field types are checked by validate_combined_data.
    return Dish(
        name=raw.get("name"),
        description=raw.get("description"),
        ingredients=raw.get("ingredients"),
    )


def parse_combined_response(json_text: str, country: str) -> CountryCulturalData:
    """Parses a dishes-and-carol reply.

    Accepts `{"dishes": {"entry": ..., "main": ..., "dessert": ...}, "carol": ...}`
    as well as the older shape with the categories at the top level.

    Raises:
        ResponseFormatError: Not JSON, not an object, or no dishes data.
    """
    response = _load_json_object(json_text, "combined")

    dishes_obj = response.get("dishes")
    if isinstance(dishes_obj, dict):
        source = dishes_obj
    elif any(category in response for category in DISH_TYPES):
        source = response
    else:
        raise ResponseFormatError("Invalid response format: missing dishes data")

    dishes = DishesResponse(
        entry=_parse_dish(source.get("entry"), "entry"),
        main=_parse_dish(source.get("main"), "main"),
        dessert=_parse_dish(source.get("dessert"), "dessert"),
    )
    return CountryCulturalData(dishes=dishes, carol=parse_carol_data(response.get("carol"), country))


def is_valid_dish(dish: Dish) -> bool:
    ingredients = dish.ingredients
    return (
        _is_non_empty_str(dish.name)
        and _is_non_empty_str(dish.description)
        and isinstance(ingredients, list)
        and len(ingredients) > 0
        and all(_is_non_empty_str(i) for i in ingredients)
    )


def validate_combined_data(data: CountryCulturalData) -> bool:
    """Every present dish must be complete, and at least one dish or the carol must exist."""
    present = data.dishes.present()
    if not all(is_valid_dish(d) for d in present):
        return False
    if data.carol is not None and not _is_non_empty_str(data.carol.name):
        return False
    return bool(present) or data.carol is not None


def stamp_dishes(dishes: DishesResponse, country: str) -> DishesResponse:
    """Sets `country` and `type` on every present dish."""
    for category in DISH_TYPES:
        dish = getattr(dishes, category)
        if dish is not None:
            dish.country = CountryName(country)
            dish.type = category
    return dishes


def parse_recipe_response(json_text: str) -> Recipe:
    """Parses a recipe reply into a Recipe with at least one step.

    Raises:
        ResponseFormatError: Invalid JSON, missing or empty steps, or a step
            without a positive integer number or a non-empty instruction.
    """
    response = _load_json_object(json_text, "recipe")
    raw_steps = response.get("steps")
    if not isinstance(raw_steps, list):
        raise ResponseFormatError("Invalid recipe format: missing steps array")
    if not raw_steps:
        raise ResponseFormatError("Invalid recipe format: steps array is empty")

    steps: List[RecipeStep] = []
    for index, raw in enumerate(raw_steps, start=1):
        if not isinstance(raw, dict):
            raise ResponseFormatError(f"Invalid recipe format: step {index} is not an object")
        number = raw.get("stepNumber")
        # bool is an int subclass; reject it explicitly.
        if isinstance(number, bool) or not isinstance(number, int) or number < 1:
            raise ResponseFormatError(f"Invalid recipe format: step {index} has invalid stepNumber")
        instruction = raw.get("instruction")
        if not _is_non_empty_str(instruction):
            raise ResponseFormatError(f"Invalid recipe format: step {index} has invalid instruction")
        details = raw.get("details")
        steps.append(
            RecipeStep(
                step_number=number,
                instruction=instruction.strip(),
                details=details if _is_non_empty_str(details) else None,
            )
        )
    return Recipe(steps=steps)

"""Domain models for the cultural data context: dishes, carols and recipes."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .common import CountryName, DishType


@dataclass
class Dish:
    """A famous Christmas dish from a country."""
    name: str
    description: str
    ingredients: List[str]
    country: Optional[CountryName] = None
    type: Optional[DishType] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "ingredients": list(self.ingredients),
        }
        if self.country is not None:
            data["country"] = self.country
        if self.type is not None:
            data["type"] = self.type
        return data


@dataclass
class DishesResponse:
    """One dish per category; a category with no famous dish is None."""
    entry: Optional[Dish] = None
    main: Optional[Dish] = None
    dessert: Optional[Dish] = None

    def present(self) -> List[Dish]:
        return [d for d in (self.entry, self.main, self.dessert) if d is not None]

    def has_any(self) -> bool:
        return bool(self.present())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entry": self.entry.to_dict() if self.entry else None,
            "main": self.main.to_dict() if self.main else None,
            "dessert": self.dessert.to_dict() if self.dessert else None,
        }


@dataclass
class ChristmasCarol:
    """A famous carol; author is None when unknown or traditional."""
    name: str
    country: CountryName
    author: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "author": self.author, "country": self.country}


@dataclass
class CountryCulturalData:
    """Aggregate returned for a country lookup."""
    dishes: DishesResponse
    carol: Optional[ChristmasCarol] = None
    spotify_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dishes": self.dishes.to_dict(),
            "carol": self.carol.to_dict() if self.carol else None,
            "spotifyUrl": self.spotify_url,
        }


@dataclass
class RecipeStep:
    step_number: int
    instruction: str
    details: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"stepNumber": self.step_number, "instruction": self.instruction}
        if self.details:
            data["details"] = self.details
        return data


@dataclass
class Recipe:
    """Step-by-step recipe; always holds at least one step once validated."""
    steps: List[RecipeStep] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"steps": [s.to_dict() for s in self.steps]}


@dataclass
class ValidationResult:
    """Outcome of checking a country name against the countries list.

    `unavailable` is set when the list itself could not be loaded, so the
    caller can tell "unknown country" apart from "cannot check right now".
    """
    is_valid: bool
    country_name: str
    error: Optional[str] = None
    unavailable: bool = False

import json
from typing import List, Optional, Union
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from feastfinder.core.services.countries_service import CountriesService
from feastfinder.domain.interfaces.ai_model import AIModel
from feastfinder.domain.interfaces.user_interface import UserInterface
from feastfinder.domain.models.ai import ChatMessage, StructuredAIResponse
from feastfinder.infrastructure.cache.caching_service import InMemoryCache
from feastfinder.infrastructure.config import settings
from feastfinder.infrastructure.countries.rest_countries import RestCountriesClient

COUNTRIES = ["Germany", "Mexico", "Poland"]

VALID_COMBINED_REPLY = json.dumps(
    {
        "dishes": {
            "entry": {
                "name": "Barszcz",
                "description": "Clear beetroot soup served on Christmas Eve.",
                "ingredients": ["beetroot", "mushrooms", "dill"],
            },
            "main": {
                "name": "Carp",
                "description": "Fried carp, the centrepiece of Wigilia.",
                "ingredients": ["carp", "flour", "butter"],
            },
            "dessert": None,
        },
        "carol": {"name": "Bóg się rodzi", "author": "Franciszek Karpiński"},
    }
)

VALID_RECIPE_REPLY = json.dumps(
    {
        "steps": [
            {"stepNumber": 1, "instruction": "Roast the beetroot.", "details": "About 1 hour at 200C"},
            {"stepNumber": 2, "instruction": "Simmer with stock."},
        ]
    }
)


class FakeClock:
    """Manually advanced clock for TTL and window tests."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedAIModel(AIModel):
    """Replays a fixed list of replies; exceptions in the list are raised."""

    def __init__(self, replies: List[Union[str, Exception]]):
        self.replies = list(replies)
        self.prompts: List[str] = []
        self.models: List[Optional[str]] = []

    async def send_messages(
        self,
        messages: List[ChatMessage],
        model: Optional[str] = None,
        json_mode: bool = False,
    ) -> StructuredAIResponse:
        self.prompts.append(messages[-1]["content"])
        self.models.append(model)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return StructuredAIResponse(content=reply, model_name=model)

    @property
    def call_count(self) -> int:
        return len(self.prompts)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keeps tests away from the developer's ~/.feastfinder and .env files."""
    monkeypatch.setattr(settings, "_config", {})
    monkeypatch.setattr(settings, "_loaded", True)
    for var in ("OPENAI_API_KEY", "SPOTIFY_CLIENT_ID", "SPOTIFY_CLIENT_SECRET", "PORT", "ENVIRONMENT"):
        monkeypatch.delenv(var, raising=False)
    yield
    settings.clear_test_config()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> InMemoryCache:
    return InMemoryCache(clock=clock)


@pytest.fixture
def mock_ui():
    return MagicMock(spec=UserInterface)


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def scripted_model():
    """Factory: scripted_model([reply, error, ...]) -> ScriptedAIModel."""
    return ScriptedAIModel


@pytest.fixture
def valid_combined_reply() -> str:
    return VALID_COMBINED_REPLY


@pytest.fixture
def valid_recipe_reply() -> str:
    return VALID_RECIPE_REPLY


@pytest.fixture
def countries_client():
    client = MagicMock(spec=RestCountriesClient)
    client.fetch_countries.return_value = list(COUNTRIES)
    return client


@pytest.fixture
def countries_service(countries_client, cache) -> CountriesService:
    return CountriesService(countries_client, cache)

"""Defines common Value Objects used across different domain contexts.

These objects represent simple values like cache keys, country names and
search modes, ensuring consistency and type safety.
"""

from typing import Literal, NewType, Optional, TypedDict

# === Core Value Objects ===

# Using NewType for semantic clarity, although they are strings at runtime.
CountryName = NewType("CountryName", str)      # Common country name, e.g. "Poland"
PromptText = NewType("PromptText", str)        # Prompt sent to a model

# === Caching Context ===
CacheKey = NewType("CacheKey", str)              # Unique key for a cache entry
CachePrefix = NewType("CachePrefix", str)      # e.g. 'cultural-data', 'recipe'

# === AI Context ===
MessageRole = NewType("MessageRole", str)      # 'user', 'system', 'assistant'

# 'fast' favours latency, 'detailed' a stronger model.
SearchMode = Literal["fast", "detailed"]
SEARCH_MODES = ("fast", "detailed")
DEFAULT_SEARCH_MODE: SearchMode = "fast"

DishType = Literal["entry", "main", "dessert"]
DISH_TYPES = ("entry", "main", "dessert")


class TokenUsage(TypedDict):
    """Represents token usage information from an AI call."""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


def make_cache_key(prefix: CachePrefix, *parts: Optional[str]) -> CacheKey:
    """Joins a prefix and key parts with ':'; None parts are skipped."""
    return CacheKey(":".join([prefix, *(p for p in parts if p is not None)]))

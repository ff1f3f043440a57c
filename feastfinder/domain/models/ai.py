"""Domain models related to AI interactions.

Includes structures for chat messages, model responses and requests to
configured AI processing services.
"""

from dataclasses import dataclass
from typing import Any, Optional, TypedDict

from .common import MessageRole, TokenUsage


class ChatMessage(TypedDict):
    """Represents a message structure expected by AI model APIs (like OpenAI)."""
    role: MessageRole
    content: str


@dataclass
class StructuredAIResponse:
    """Structured response from an AI model, including metadata."""
    content: str
    token_usage: Optional[TokenUsage] = None
    model_name: Optional[str] = None  # Which model generated the response
    latency_ms: Optional[float] = None


@dataclass
class AIRequest:
    """Request to a configured AI service; None options fall back to the service config."""
    prompt: str
    context: Any = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


@dataclass
class AIResult:
    result: str
    tokens_used: Optional[int] = None

"""Concrete implementation of the AIModel interface using the OpenAI API.

Hides the specifics of the OpenAI client library and translates its
exceptions into the domain error taxonomy.
"""

import asyncio
import logging
import os
import time
from typing import Any, Dict, List, Optional

from openai import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    AuthenticationError,
    OpenAI,
    RateLimitError,
)

from feastfinder.domain.errors import (
    AuthenticationFailedError,
    ExternalServiceError,
    ServiceTimeoutError,
)
from feastfinder.domain.interfaces.ai_model import AIModel
from feastfinder.domain.models.ai import ChatMessage, StructuredAIResponse
from feastfinder.domain.models.common import TokenUsage

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 60.0


class GptClient(AIModel):
    """OpenAI implementation of the AIModel interface."""

    DEFAULT_MODEL = "gpt-3.5-turbo"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_S,
        client: Optional[OpenAI] = None,
    ):
        """Initializes the OpenAI client.

        Args:
            api_key: OpenAI API key. Reads from OPENAI_API_KEY env var if None.
            model: The default OpenAI model to use.
            timeout: Per-request deadline in seconds.
            client: Pre-built OpenAI client (used by tests).
        """
        self.client: Optional[OpenAI] = client
        if self.client is None:
            effective_api_key = api_key or os.getenv("OPENAI_API_KEY")
            if effective_api_key:
                self.client = OpenAI(api_key=effective_api_key, timeout=timeout)
            else:
                # Fail per request so the rest of the application still runs.
                logger.warning("OpenAI API key not found; cultural data and recipes are unavailable.")

        self.model = model or self.DEFAULT_MODEL
        logger.info(f"GptClient initialized for model: {self.model}")

    def _parse_openai_response(self, response: Any) -> StructuredAIResponse:
        """Parses the response object from OpenAI API call."""
        try:
            content = response.choices[0].message.content or ""
        except (AttributeError, IndexError, TypeError) as e:
            logger.error(f"Failed to parse OpenAI response structure: {e}", exc_info=True)
            raise ExternalServiceError(f"Invalid response structure from OpenAI: {e}") from e

        if not content.strip():
            raise ExternalServiceError("OpenAI API returned empty response")

        token_usage = None
        usage = getattr(response, "usage", None)
        if usage:
            token_usage = TokenUsage(
                prompt_tokens=usage.prompt_tokens,
                completion_tokens=usage.completion_tokens,
                total_tokens=usage.total_tokens,
            )

        return StructuredAIResponse(
            content=content,
            token_usage=token_usage,
            model_name=getattr(response, "model", None),
        )

    async def send_messages(
        self,
        messages: List[ChatMessage],
        model: Optional[str] = None,
        json_mode: bool = False,
    ) -> StructuredAIResponse:
        """Sends messages to OpenAI asynchronously."""
        if self.client is None:
            raise AuthenticationFailedError("Service configuration error. Please contact support.")
        effective_model = model or self.model
        request: Dict[str, Any] = {"model": effective_model, "messages": messages}
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        logger.debug(f"Sending {len(messages)} messages to OpenAI model: {effective_model}")
        start_time = time.perf_counter()
        try:
            # The SDK call is synchronous; keep the event loop free.
            response = await asyncio.to_thread(self.client.chat.completions.create, **request)
        except AuthenticationError as e:
            logger.error(f"OpenAI Authentication Error: {e}")
            raise AuthenticationFailedError("Service configuration error. Please contact support.") from e
        except RateLimitError as e:
            logger.warning(f"OpenAI Rate Limit Error encountered: {e}")
            raise ExternalServiceError(
                "Service is temporarily unavailable. Please try again in a moment.",
                retryable=True,
            ) from e
        except APITimeoutError as e:
            logger.warning(f"OpenAI request timed out: {e}")
            raise ServiceTimeoutError("Request to the cultural data service timed out.") from e
        except APIConnectionError as e:
            logger.warning(f"OpenAI connection error: {e}")
            raise ExternalServiceError(
                "Unable to connect to cultural data service. Please try again later.",
                retryable=True,
            ) from e
        except APIStatusError as e:
            logger.warning(f"OpenAI API Error encountered (Status: {e.status_code}): {e}")
            if e.status_code in (500, 502, 503):
                raise ExternalServiceError(
                    "Unable to connect to cultural data service. Please try again later.",
                    retryable=True,
                ) from e
            raise ExternalServiceError(f"OpenAI request failed: {e.message}", retryable=e.status_code >= 500) from e
        except APIError as e:
            logger.error(f"OpenAI API Error: {e}")
            raise ExternalServiceError(f"OpenAI request failed: {e.message}") from e

        latency_ms = (time.perf_counter() - start_time) * 1000
        structured_response = self._parse_openai_response(response)
        structured_response.latency_ms = latency_ms
        logger.debug(f"Received response from OpenAI in {latency_ms:.2f}ms. Usage: {structured_response.token_usage}")
        return structured_response


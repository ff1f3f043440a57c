"""
Core service for prompts sent to configured AI services.

Validates the request, enforces the per-service sliding-window limits and
forwards the prompt to the AI service client.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from feastfinder.domain.errors import RateLimitExceededError, ValidationError
from feastfinder.domain.models.ai import AIRequest
from feastfinder.infrastructure.ai.ai_service import AIServiceClient
from feastfinder.infrastructure.resilience.rate_limiter import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again later."


@dataclass
class AIProcessingOutcome:
    result: str
    service_id: str
    model: str
    tokens_used: Optional[int]
    processing_time_ms: float

    def metadata(self) -> Dict[str, Any]:
        return {
            "serviceId": self.service_id,
            "model": self.model,
            "tokensUsed": self.tokens_used,
            "processingTime": round(self.processing_time_ms),
        }


class AIProcessingService:
    """Rate-limited front door to the configured AI services."""

    def __init__(self, ai_client: AIServiceClient, rate_limiter: SlidingWindowRateLimiter):
        self.ai_client = ai_client
        self.rate_limiter = rate_limiter

    async def process(
        self,
        service_id: Optional[str],
        prompt: Optional[str],
        context: Any = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> AIProcessingOutcome:
        """Processes a prompt with the named service.

        Raises:
            ValidationError: Missing service id or prompt, unknown service, bad options.
            RateLimitExceededError: A minute, hour or day window is full.
            ExternalServiceError: The service call failed.
        """
        start = time.perf_counter()
        if not service_id:
            raise ValidationError("serviceId is required")
        if not isinstance(prompt, str) or not prompt.strip():
            raise ValidationError("prompt is required and must be a non-empty string")
        if options is not None and not isinstance(options, dict):
            raise ValidationError("options must be an object")

        service = self.ai_client.get_service(service_id)
        if service is None:
            raise ValidationError(f"AI service '{service_id}' not found")

        decision = self.rate_limiter.check(service_id, service.rate_limit)
        if not decision.allowed:
            raise RateLimitExceededError(RATE_LIMIT_MESSAGE, reset_time=decision.reset_time)

        options = options or {}
        request = AIRequest(
            prompt=prompt,
            context=context,
            temperature=options.get("temperature"),
            max_tokens=options.get("maxTokens"),
        )
        result = await self.ai_client.process(service_id, request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(f"AI service '{service_id}' answered in {elapsed_ms:.0f}ms")
        return AIProcessingOutcome(
            result=result.result,
            service_id=service_id,
            model=service.model,
            tokens_used=result.tokens_used,
            processing_time_ms=elapsed_ms,
        )

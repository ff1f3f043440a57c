"""Client for configured AI processing services.

The 'demo' provider answers locally so the application runs without any
credentials; other providers are reached over HTTP at `{endpoint}/process`.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from feastfinder.domain.errors import ExternalServiceError, ValidationError
from feastfinder.domain.models.ai import AIRequest, AIResult
from feastfinder.domain.models.config import AIServiceConfig, ApplicationConfiguration
from feastfinder.infrastructure.http.auth_handler import apply_authentication
from feastfinder.infrastructure.http.external_data import build_url
from feastfinder.infrastructure.resilience.api_retry import describe_error

logger = logging.getLogger(__name__)

DEMO_PROVIDER = "demo"
DEMO_PREVIEW_CHARS = 50


def demo_response(request: AIRequest) -> AIResult:
    return AIResult(
        result=f'[Demo AI Response] Processed: "{request.prompt[:DEMO_PREVIEW_CHARS]}..."',
        tokens_used=len(request.prompt) // 4,
    )


def _tokens_from_payload(data: Dict[str, Any]) -> Optional[int]:
    """Token count reported by the provider; None when absent or not a number."""
    raw = data.get("tokensUsed")
    if raw is None:
        usage = data.get("usage")
        raw = usage.get("total_tokens") if isinstance(usage, dict) else None
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-numeric token count from AI service: {raw!r}")
        return None


class AIServiceClient:
    """Sends prompts to the AI services listed in the configuration."""

    def __init__(self, config: ApplicationConfiguration, http_client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._http = http_client or httpx.AsyncClient()

    def get_service(self, service_id: str) -> Optional[AIServiceConfig]:
        return self.config.find_ai_service(service_id)

    async def process(self, service_id: str, request: AIRequest) -> AIResult:
        """Processes a prompt with the given service.

        Raises:
            ValidationError: Unknown service id.
            ExternalServiceError: The upstream call failed (always retryable).
        """
        service = self.get_service(service_id)
        if service is None:
            raise ValidationError(f"AI service '{service_id}' not found")

        if service.provider == DEMO_PROVIDER:
            logger.debug(f"Answering '{service_id}' with the demo provider")
            return demo_response(request)

        body = {
            "prompt": request.prompt,
            "context": request.context,
            "model": service.model,
            "temperature": service.temperature if request.temperature is None else request.temperature,
            "max_tokens": service.max_tokens if request.max_tokens is None else request.max_tokens,
        }
        headers = apply_authentication(service.authentication, {"Content-Type": "application/json"})

        try:
            response = await self._http.post(
                build_url(service.endpoint_url, "process"),
                json=body,
                headers=headers,
                timeout=service.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"AI service '{service_id}' ({service.provider}) failed: {e}")
            raise ExternalServiceError(
                f"Failed to process AI request with {service.provider}: {describe_error(e)}",
                retryable=True,
            ) from e

        if isinstance(data, dict):
            result = data.get("result") or data.get("text") or str(data)
            return AIResult(result=str(result), tokens_used=_tokens_from_payload(data))
        return AIResult(result=str(data))

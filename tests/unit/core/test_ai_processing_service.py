from unittest.mock import AsyncMock, MagicMock

import pytest

from feastfinder.core.services.ai_processing_service import RATE_LIMIT_MESSAGE, AIProcessingService
from feastfinder.domain.errors import RateLimitExceededError, ValidationError
from feastfinder.domain.models.ai import AIResult
from feastfinder.domain.models.config import AIServiceConfig, RateLimitConfig
from feastfinder.infrastructure.ai.ai_service import AIServiceClient
from feastfinder.infrastructure.resilience.rate_limiter import SlidingWindowRateLimiter

SERVICE = AIServiceConfig(
    id="demo-ai",
    provider="demo",
    endpoint_url="https://api.example.com/ai",
    model="demo-model",
    rate_limit=RateLimitConfig(requests_per_minute=2),
)


@pytest.fixture
def ai_client():
    client = MagicMock(spec=AIServiceClient)
    client.get_service.side_effect = lambda sid: SERVICE if sid == "demo-ai" else None
    client.process = AsyncMock(return_value=AIResult(result="Merry Christmas", tokens_used=7))
    return client


@pytest.fixture
def service(ai_client, clock):
    return AIProcessingService(ai_client, SlidingWindowRateLimiter(clock=clock))


@pytest.mark.asyncio
async def test_process_returns_result_and_metadata(service, ai_client):
    outcome = await service.process("demo-ai", "Say hi", context={"lang": "pl"}, options={"temperature": 0.2})

    assert outcome.result == "Merry Christmas"
    meta = outcome.metadata()
    assert meta["serviceId"] == "demo-ai"
    assert meta["model"] == "demo-model"
    assert meta["tokensUsed"] == 7
    assert isinstance(meta["processingTime"], int)

    request = ai_client.process.await_args.args[1]
    assert request.prompt == "Say hi"
    assert request.context == {"lang": "pl"}
    assert request.temperature == 0.2
    assert request.max_tokens is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "service_id, prompt, options, message",
    [
        (None, "hi", None, "serviceId is required"),
        ("demo-ai", "", None, "prompt is required"),
        ("demo-ai", 42, None, "prompt is required"),
        ("demo-ai", "hi", ["temperature"], "options must be an object"),
        ("missing", "hi", None, "AI service 'missing' not found"),
    ],
)
async def test_process_validation(service, ai_client, service_id, prompt, options, message):
    with pytest.raises(ValidationError, match=message):
        await service.process(service_id, prompt, options=options)
    ai_client.process.assert_not_awaited()


@pytest.mark.asyncio
async def test_minute_limit_rejects_with_reset_time(service, ai_client, clock):
    start = clock()
    await service.process("demo-ai", "one")
    clock.advance(5)
    await service.process("demo-ai", "two")

    with pytest.raises(RateLimitExceededError) as exc_info:
        await service.process("demo-ai", "three")

    assert exc_info.value.message == RATE_LIMIT_MESSAGE
    assert exc_info.value.reset_time == start + 60
    assert ai_client.process.await_count == 2

    clock.advance(56)
    await service.process("demo-ai", "four")
    assert ai_client.process.await_count == 3

"""Core service for proxied calls to configured external data sources."""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from feastfinder.domain.errors import ValidationError
from feastfinder.infrastructure.http.external_data import ExternalDataClient

logger = logging.getLogger(__name__)


def parse_params(params_json: Optional[str]) -> Optional[Dict[str, str]]:
    """Decodes the `params` query value, a JSON object of query parameters."""
    if not params_json:
        return None
    try:
        params = json.loads(params_json)
    except ValueError as e:
        raise ValidationError("Invalid params format. Must be valid JSON") from e
    if not isinstance(params, dict):
        raise ValidationError("Invalid params format. Must be valid JSON")
    return {str(k): str(v) for k, v in params.items()}


@dataclass
class ExternalDataOutcome:
    data: Any
    source_id: str
    response_time_ms: float

    def metadata(self) -> Dict[str, Any]:
        return {"sourceId": self.source_id, "responseTime": round(self.response_time_ms)}


class ExternalDataService:
    """Validates proxy requests and times the upstream call."""

    def __init__(self, client: ExternalDataClient):
        self.client = client

    def require_source(self, source_id: Optional[str]) -> str:
        if not source_id:
            raise ValidationError("sourceId is required")
        if self.client.get_source(source_id) is None:
            raise ValidationError(f"External data source '{source_id}' not found")
        return source_id

    async def fetch(
        self,
        source_id: Optional[str],
        endpoint: Optional[str] = None,
        params: Optional[Dict[str, str]] = None,
        method: str = "GET",
        body: Any = None,
    ) -> ExternalDataOutcome:
        source = self.require_source(source_id)
        start = time.perf_counter()
        data = await self.client.fetch(source, endpoint=endpoint or None, params=params, method=method, body=body)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(f"{method} from source '{source}' completed in {elapsed_ms:.0f}ms")
        return ExternalDataOutcome(data=data, source_id=source, response_time_ms=elapsed_ms)

"""Configuration models for external data sources and AI services."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

AuthenticationMethod = Literal["none", "apiKey", "bearer", "basic"]
AUTHENTICATION_METHODS = ("none", "apiKey", "bearer", "basic")
DEFAULT_API_KEY_HEADER = "X-API-Key"

Environment = Literal["development", "production", "test"]


@dataclass
class AuthenticationConfig:
    method: AuthenticationMethod = "none"
    api_key: Optional[str] = None
    bearer_token: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    header_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AuthenticationConfig":
        if not data:
            return cls()
        method = data.get("method", "none")
        if method not in AUTHENTICATION_METHODS:
            raise ValueError(f"Unsupported authentication method: {method!r}")
        return cls(
            method=method,
            api_key=data.get("api_key"),
            bearer_token=data.get("bearer_token"),
            username=data.get("username"),
            password=data.get("password"),
            header_name=data.get("header_name"),
        )


@dataclass
class RateLimitConfig:
    """Requests allowed per trailing minute, hour and day."""
    requests_per_minute: int = 60
    requests_per_hour: int = 1000
    requests_per_day: int = 10000

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RateLimitConfig":
        data = data or {}
        return cls(
            requests_per_minute=int(data.get("requests_per_minute", 60)),
            requests_per_hour=int(data.get("requests_per_hour", 1000)),
            requests_per_day=int(data.get("requests_per_day", 10000)),
        )


@dataclass
class ExternalDataSource:
    """A configured HTTP data source. Timeout is in seconds."""
    id: str
    name: str
    endpoint_url: str
    authentication: AuthenticationConfig = field(default_factory=AuthenticationConfig)
    data_format: Literal["JSON", "XML", "CSV"] = "JSON"
    refresh_frequency: float = 0  # 0 = on demand
    timeout: float = 5.0
    retry_attempts: int = 3

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExternalDataSource":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            endpoint_url=data["endpoint_url"],
            authentication=AuthenticationConfig.from_dict(data.get("authentication")),
            data_format=data.get("data_format", "JSON"),
            refresh_frequency=float(data.get("refresh_frequency", 0)),
            timeout=float(data.get("timeout", 5.0)),
            retry_attempts=int(data.get("retry_attempts", 3)),
        )


@dataclass
class AIServiceConfig:
    """A configured AI processing service. Timeout is in seconds."""
    id: str
    provider: str
    endpoint_url: str
    model: str
    authentication: AuthenticationConfig = field(default_factory=AuthenticationConfig)
    max_tokens: int = 1000
    temperature: float = 0.7
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    timeout: float = 30.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AIServiceConfig":
        return cls(
            id=data["id"],
            provider=data["provider"],
            endpoint_url=data["endpoint_url"],
            model=data["model"],
            authentication=AuthenticationConfig.from_dict(data.get("authentication")),
            max_tokens=int(data.get("max_tokens", 1000)),
            temperature=float(data.get("temperature", 0.7)),
            rate_limit=RateLimitConfig.from_dict(data.get("rate_limit")),
            timeout=float(data.get("timeout", 30.0)),
        )


@dataclass
class ApplicationConfiguration:
    server_port: int = 3000
    environment: Environment = "development"
    external_data_sources: List[ExternalDataSource] = field(default_factory=list)
    ai_services: List[AIServiceConfig] = field(default_factory=list)

    def find_source(self, source_id: str) -> Optional[ExternalDataSource]:
        return next((s for s in self.external_data_sources if s.id == source_id), None)

    def find_ai_service(self, service_id: str) -> Optional[AIServiceConfig]:
        return next((s for s in self.ai_services if s.id == service_id), None)

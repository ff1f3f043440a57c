"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables and a YAML
configuration file (~/.feastfinder/config.yaml, or the path in
FEASTFINDER_CONFIG).
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from dotenv import load_dotenv

from feastfinder.domain.models.common import DEFAULT_SEARCH_MODE, SEARCH_MODES
from feastfinder.domain.models.config import (
    AIServiceConfig,
    ApplicationConfiguration,
    AuthenticationConfig,
    ExternalDataSource,
    RateLimitConfig,
)

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".feastfinder"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
CONFIG_FILE_ENV_VAR = "FEASTFINDER_CONFIG"
ENV_FILE_NAME = ".env"

DEFAULT_SERVER_PORT = 3000
MIN_SERVER_PORT = 1024
MAX_SERVER_PORT = 65535

DEFAULT_MODEL_MAP = {
    "fast": "gpt-3.5-turbo",
    "detailed": "o4-mini",
}

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


def load_configuration(config_file: Optional[Path] = None, env_file: Optional[Path] = None, force: bool = False) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Test overrides (set_config_for_testing)
    2. Environment Variables
    3. .env file
    4. YAML configuration file
    5. Default values passed to get_config

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
        force: Reload even if configuration was already loaded.
    """
    global _config, _loaded
    if _loaded and not force:
        logger.debug("Configuration already loaded.")
        return

    _config = {}
    config_path = config_file or Path(os.environ.get(CONFIG_FILE_ENV_VAR, DEFAULT_CONFIG_FILE))

    # 1. Load from YAML file (Lowest priority)
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(yaml_config)
                logger.info(f"Loaded configuration from YAML: {config_path}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_path} did not contain a dictionary.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_path}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_path}")

    # 2. Load from .env file. override=False: real environment variables win.
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug(".env file not found at or above current directory.")

    _loaded = True
    logger.info("Configuration loading process completed.")


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


def _coerce_env_value(value: str) -> Any:
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    try:
        return float(value) if "." in value else int(value)
    except ValueError:
        return value


def _lookup_nested(key: str) -> Tuple[bool, Any]:
    """Resolves dotted keys ('openai.models.fast') against the YAML tree."""
    if key in _config:
        return True, _config[key]
    node: Any = _config
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return False, None
        node = node[part]
    return True, node


def get_config(key: str, default: Any = None) -> Any:
    """Get a configuration value by key.

    Environment variables are matched on the upper-cased key with dots
    replaced by underscores, so 'logging.level' reads LOGGING_LEVEL.
    """
    if key in _test_config:
        return _test_config[key]

    env_key = key.upper().replace(".", "_")
    if env_key in os.environ:
        return _coerce_env_value(os.environ[env_key])

    found, value = _lookup_nested(key)
    if found:
        return value

    logger.debug(f"Config key '{key}' not found in environment or loaded config. Returning default: {default}")
    return default


# --- Convenience Functions ---

def get_openai_api_key() -> Optional[str]:
    key = get_config("OPENAI_API_KEY") or get_config("openai.api_key")
    return str(key) if key else None


def get_spotify_credentials() -> Tuple[Optional[str], Optional[str]]:
    client_id = get_config("SPOTIFY_CLIENT_ID") or get_config("spotify.client_id")
    client_secret = get_config("SPOTIFY_CLIENT_SECRET") or get_config("spotify.client_secret")
    return (str(client_id) if client_id else None, str(client_secret) if client_secret else None)


def get_model_for_mode(mode: str) -> str:
    """Maps a search mode to an OpenAI model name."""
    if mode not in SEARCH_MODES:
        logger.warning(f"Unknown search mode '{mode}', using '{DEFAULT_SEARCH_MODE}'.")
        mode = DEFAULT_SEARCH_MODE
    return str(get_config(f"openai.models.{mode}", DEFAULT_MODEL_MAP[mode]))


def get_server_port() -> int:
    """Reads PORT, falling back to the default when missing or out of range."""
    raw = get_config("PORT", get_config("server.port", DEFAULT_SERVER_PORT))
    try:
        port = int(raw)
    except (TypeError, ValueError):
        logger.warning(f"Invalid server port {raw!r}, using default {DEFAULT_SERVER_PORT}")
        return DEFAULT_SERVER_PORT
    if port < MIN_SERVER_PORT or port > MAX_SERVER_PORT:
        logger.warning(f"Invalid server port {port}, using default {DEFAULT_SERVER_PORT}")
        return DEFAULT_SERVER_PORT
    return port


def default_external_data_sources() -> List[ExternalDataSource]:
    return [
        ExternalDataSource(
            id="sample-api",
            name="Sample API",
            endpoint_url="https://jsonplaceholder.typicode.com",
            authentication=AuthenticationConfig(method="none"),
            data_format="JSON",
            refresh_frequency=0,
            timeout=5.0,
            retry_attempts=3,
        )
    ]


def default_ai_services() -> List[AIServiceConfig]:
    return [
        AIServiceConfig(
            id="demo-ai",
            provider="demo",
            endpoint_url="https://api.example.com/ai",
            model="demo-model",
            authentication=AuthenticationConfig(method="none"),
            max_tokens=1000,
            temperature=0.7,
            rate_limit=RateLimitConfig(requests_per_minute=60, requests_per_hour=1000, requests_per_day=10000),
            timeout=30.0,
        )
    ]


def load_application_configuration() -> ApplicationConfiguration:
    """Builds the ApplicationConfiguration from defaults plus YAML overrides.

    YAML entries in `external_data_sources` / `ai_services` replace a
    default with the same id and are appended otherwise.
    """
    load_configuration()

    sources = {s.id: s for s in default_external_data_sources()}
    for raw in get_config("external_data_sources", None) or []:
        source = ExternalDataSource.from_dict(raw)
        sources[source.id] = source

    services = {s.id: s for s in default_ai_services()}
    for raw in get_config("ai_services", None) or []:
        service = AIServiceConfig.from_dict(raw)
        services[service.id] = service

    environment = str(get_config("ENVIRONMENT", "development"))
    if environment not in ("development", "production", "test"):
        logger.warning(f"Unknown environment '{environment}', using 'development'")
        environment = "development"

    config = ApplicationConfiguration(
        server_port=get_server_port(),
        environment=environment,  # type: ignore[arg-type]
        external_data_sources=list(sources.values()),
        ai_services=list(services.values()),
    )

    if not config.external_data_sources:
        logger.warning("No external data sources configured.")
    if not config.ai_services:
        logger.warning("No AI services configured.")
    return config


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """Set configuration values that override every other source."""
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")

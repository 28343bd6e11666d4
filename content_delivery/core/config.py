"""
Configuration management for content-delivery-sync.

This module handles loading, validating, and providing access to the
configuration stored in config.yaml.

The configuration file contains:
    - Space credentials (space id, access token, environment)
    - API settings (host, preview mode, HTTPS, rate limiting, timeout)
    - Storage directory for the local sync database and logs

Secrets can be kept out of the file: CDA_SPACE_ID, CDA_ACCESS_TOKEN and
CDA_ENVIRONMENT environment variables (or a .env file) override the
corresponding YAML values.

Example config.yaml:
    space:
      id: "cfexampleapi"
      access_token: "b4c0n73n7fu1"
      environment: "master"

    api:
      preview: false
      secure: true
      rate_limiting: false
      requests_per_second: 7
      timeout: 30

    storage:
      directory: "~/.content_delivery"
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from content_delivery.core.exceptions import ConfigurationError


# Default configuration file name (always in current working directory)
CONFIG_FILENAME = "config.yaml"

DELIVERY_HOST = "cdn.contentful.com"
PREVIEW_HOST = "preview.contentful.com"
DEFAULT_ENVIRONMENT = "master"
DEFAULT_STORAGE_DIRECTORY = "~/.content_delivery"

# Environment variables that override values from the YAML file
ENV_SPACE_ID = "CDA_SPACE_ID"
ENV_ACCESS_TOKEN = "CDA_ACCESS_TOKEN"
ENV_ENVIRONMENT = "CDA_ENVIRONMENT"


@dataclass(frozen=True)
class SpaceConfig:
    """
    Identifies the space and environment to read from.

    Attributes:
        space_id: The space identifier.
        access_token: Delivery (or preview) API access token.
        environment: Environment id within the space. Default "master".
    """
    space_id: str
    access_token: str
    environment: str = DEFAULT_ENVIRONMENT


@dataclass(frozen=True)
class ApiConfig:
    """
    Settings for talking to the API.

    Attributes:
        host: Domain all requests go to.
        preview: True when the preview API is targeted. Synchronization
                 is refused in preview mode.
        secure: Use https (default) or plain http.
        rate_limiting: Throttle outgoing requests client-side.
        requests_per_second: Cap used when rate_limiting is on.
        timeout: Total request timeout in seconds.
    """
    host: str = DELIVERY_HOST
    preview: bool = False
    secure: bool = True
    rate_limiting: bool = False
    requests_per_second: int = 7
    timeout: float = 30.0

    @property
    def scheme(self) -> str:
        return "https" if self.secure else "http"


@dataclass(frozen=True)
class StorageConfig:
    """
    Local storage settings.

    Attributes:
        directory: Directory holding the sync database and the logs
                   subdirectory. ~ is expanded.
    """
    directory: Path

    @property
    def database_path(self) -> Path:
        return self.directory / "sync.db"


@dataclass(frozen=True)
class Config:
    """
    Complete configuration.

    Created by load_config() or parse_config() and treated as immutable.

    Example:
        config = load_config()
        print(f"Syncing space {config.space.space_id} from {config.api.host}")
    """
    space: SpaceConfig
    api: ApiConfig
    storage: StorageConfig

    @property
    def is_preview(self) -> bool:
        return self.api.preview


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from config.yaml.

    Args:
        config_path: Optional explicit path to config file.
                     If None, looks for config.yaml in current working directory.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigurationError: If the config file is not found, has invalid YAML
                            syntax, is missing required fields, or contains
                            invalid values.

    Behavior:
        1. Load .env into the process environment (existing vars win)
        2. Locate config file (explicit path or CWD/config.yaml)
        3. Read and parse YAML content
        4. Apply environment overrides and validate via parse_config()
    """
    load_dotenv()

    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    if not config_path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    if raw_config is None:
        raw_config = {}

    if not isinstance(raw_config, dict):
        raise ConfigurationError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    return parse_config(raw_config, environ=os.environ)


def parse_config(
    raw_config: dict[str, Any],
    environ: dict[str, str] | None = None
) -> Config:
    """
    Validate an already-parsed configuration mapping.

    Args:
        raw_config: Dictionary with 'space', 'api' and 'storage' sections.
        environ: Mapping consulted for CDA_* overrides. None disables overrides.

    Returns:
        Config with defaults applied.

    Raises:
        ConfigurationError: If validation fails.
    """
    for section in ("space", "api", "storage"):
        value = raw_config.get(section)
        if value is not None and not isinstance(value, dict):
            raise ConfigurationError(
                f"Section '{section}' must be a dictionary",
                details={"section": section}
            )

    space_section = dict(raw_config.get("space") or {})
    if environ:
        if environ.get(ENV_SPACE_ID):
            space_section["id"] = environ[ENV_SPACE_ID]
        if environ.get(ENV_ACCESS_TOKEN):
            space_section["access_token"] = environ[ENV_ACCESS_TOKEN]
        if environ.get(ENV_ENVIRONMENT):
            space_section["environment"] = environ[ENV_ENVIRONMENT]

    return Config(
        space=_parse_space_config(space_section),
        api=_parse_api_config(raw_config.get("api")),
        storage=_parse_storage_config(raw_config.get("storage"))
    )


def _require_string(section: dict[str, Any], key: str, field: str) -> str:
    value = section.get(key, "")
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(
            f"'{field}' must be a non-empty string",
            details={"field": field}
        )
    return value.strip()


def _parse_space_config(space_section: dict[str, Any]) -> SpaceConfig:
    """
    Parse and validate the space section.

    Raises:
        ConfigurationError: If id or access_token is missing or empty.
    """
    space_id = _require_string(space_section, "id", "space.id")
    access_token = _require_string(space_section, "access_token", "space.access_token")

    environment = DEFAULT_ENVIRONMENT
    if space_section.get("environment") is not None:
        environment = _require_string(space_section, "environment", "space.environment")

    return SpaceConfig(
        space_id=space_id,
        access_token=access_token,
        environment=environment
    )


def _parse_api_config(api_section: dict[str, Any] | None) -> ApiConfig:
    """
    Parse and validate the api section, applying defaults.

    The host defaults to the delivery host, or the preview host when
    preview is enabled.

    Raises:
        ConfigurationError: On wrongly typed flags or non-positive numbers.
    """
    api_section = api_section or {}

    flags = {}
    for key, default in (("preview", False), ("secure", True), ("rate_limiting", False)):
        value = api_section.get(key, default)
        if not isinstance(value, bool):
            raise ConfigurationError(
                f"'api.{key}' must be true or false",
                details={"field": f"api.{key}", "value": value}
            )
        flags[key] = value

    host = api_section.get("host")
    if host is None:
        host = PREVIEW_HOST if flags["preview"] else DELIVERY_HOST
    elif not isinstance(host, str) or not host.strip():
        raise ConfigurationError(
            "'api.host' must be a non-empty string",
            details={"field": "api.host"}
        )

    requests_per_second = api_section.get("requests_per_second", 7)
    if isinstance(requests_per_second, bool) or not isinstance(requests_per_second, int) \
            or requests_per_second < 1:
        raise ConfigurationError(
            "'api.requests_per_second' must be a positive integer",
            details={"field": "api.requests_per_second", "value": requests_per_second}
        )

    timeout = api_section.get("timeout", 30.0)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ConfigurationError(
            "'api.timeout' must be a positive number",
            details={"field": "api.timeout", "value": timeout}
        )

    return ApiConfig(
        host=host.strip(),
        preview=flags["preview"],
        secure=flags["secure"],
        rate_limiting=flags["rate_limiting"],
        requests_per_second=requests_per_second,
        timeout=float(timeout)
    )


def _parse_storage_config(storage_section: dict[str, Any] | None) -> StorageConfig:
    """
    Parse the storage section. Expands ~ and makes the path absolute.
    Does NOT create the directory (that happens when the store is opened).
    """
    directory = (storage_section or {}).get("directory", DEFAULT_STORAGE_DIRECTORY)

    if not isinstance(directory, str) or not directory.strip():
        raise ConfigurationError(
            "'storage.directory' must be a non-empty string",
            details={"field": "storage.directory"}
        )

    return StorageConfig(directory=Path(directory.strip()).expanduser().resolve())

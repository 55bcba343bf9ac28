from __future__ import annotations

import json
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from taskhooks.exception import ConfigError
from taskhooks.utils.logging import logger

DATA_DIR_ENV = "TASKHOOKS_SHARE_DIR"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_OUTPUT_BYTES = 1024 * 1024
DEFAULT_PROBE_TIMEOUT_SECONDS = 1.2


class LoggingConfig(BaseModel):
    """Per-module log level overrides."""

    levels: dict[str, str] = Field(
        default_factory=dict,
        description="Mapping of module path (or `default`) to log level name",
    )


class Config(BaseModel):
    """Configuration of the hook engine."""

    enabled: bool = Field(default=True, description="Whether hooks run at all")
    global_hooks_dir: Path | None = Field(
        default=None,
        description="Override for the global hooks directory",
    )
    timeout_seconds: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        gt=0,
        le=3600,
        description="Upper bound on a single hook process run",
    )
    max_output_bytes: int = Field(
        default=DEFAULT_MAX_OUTPUT_BYTES,
        ge=1024,
        description="Maximum bytes kept from a hook's stdout or stderr",
    )
    probe_timeout_seconds: float = Field(
        default=DEFAULT_PROBE_TIMEOUT_SECONDS,
        gt=0,
        le=60,
        description="Timeout for each PowerShell candidate probe",
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_default_config() -> Config:
    return Config()


def get_data_dir() -> Path:
    """Directory holding the config file and logs, created on first use.

    ``$TASKHOOKS_SHARE_DIR`` overrides the default ``~/.taskhooks``.
    """
    env_dir = os.getenv(DATA_DIR_ENV)
    data_dir = Path(env_dir).expanduser() if env_dir else Path.home() / ".taskhooks"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_config_file() -> Path:
    return get_data_dir() / "config.toml"


def get_log_file() -> Path:
    return get_data_dir() / "logs" / "taskhooks.log"


def load_config(config_file: Path | None = None) -> Config:
    """Load the configuration file, falling back to defaults when it does not exist.

    Raises:
        ConfigError: If the file cannot be parsed or holds invalid values.
    """
    config_file = config_file or get_config_file()
    if not config_file.exists():
        logger.debug("Config file {file} not found, using defaults", file=config_file)
        return get_default_config()

    logger.debug("Loading config from {file}", file=config_file)
    try:
        text = config_file.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read config file {config_file}: {e}") from e
    return load_config_from_string(text)


def load_config_from_string(text: str) -> Config:
    """Parse configuration from TOML or JSON text."""
    data: dict[str, object]
    stripped = text.strip()
    if stripped.startswith("{"):
        try:
            data = json.loads(stripped)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid configuration text: {e}") from e
    else:
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid configuration text: {e}") from e

    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

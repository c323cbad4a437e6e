"""Configuration model using Pydantic for validation."""
from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, Field, ValidationError, field_validator
import os

from check_graphite.errors import ConfigError
from check_graphite.thresholds import Direction

DEFAULT_HOSTNAME = "localhost"
DEFAULT_PORT = 80
DEFAULT_PROTOCOL = "http"
DEFAULT_PERIOD = "301s"
DEFAULT_TIMEOUT = 10.0
DEFAULT_LOG_LEVEL = "fatal"

LOG_LEVELS = ("debug", "info", "warn", "warning", "error", "fatal", "panic")

_TRUE_STRINGS = {"1", "true", "yes", "on"}


class CheckConfig(BaseModel):
    """Settings for a single check run."""
    hostname: str = DEFAULT_HOSTNAME
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    protocol: Literal["http", "https"] = DEFAULT_PROTOCOL
    metric_path: str
    time_period: str = DEFAULT_PERIOD
    warning: float = 0.0
    critical: float = 0.0
    direction: Direction = Direction.GT
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    log_level: str = DEFAULT_LOG_LEVEL
    debug: bool = False
    metrics_file: Optional[str] = None

    @field_validator('metric_path', 'hostname', 'time_period')
    @classmethod
    def validate_not_empty(cls, v):
        """Reject empty strings for URL parts."""
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator('protocol', mode='before')
    @classmethod
    def normalize_protocol(cls, v):
        return v.lower() if isinstance(v, str) else v

    @field_validator('direction', mode='before')
    @classmethod
    def normalize_direction(cls, v):
        """Anything that is not "gt" compares as less-than."""
        return Direction.parse(v)

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        level = v.lower()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level '{v}', expected one of {', '.join(LOG_LEVELS)}")
        return level

    @property
    def response_time_warning(self) -> float:
        """Half the timeout; only used as the perf-data warning level."""
        return self.timeout / 2


def _env_flag(value: str) -> bool:
    return value.strip().lower() in _TRUE_STRINGS


def load_config(config_path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> CheckConfig:
    """
    Build a CheckConfig from an optional YAML file, the environment and
    command line overrides, in increasing order of precedence.

    Args:
        config_path: Optional path to a YAML file with CheckConfig keys
        overrides: Values from the command line; None entries are ignored

    Raises:
        ConfigError: if the file is missing or the settings do not validate
    """
    import yaml

    raw_config: Dict[str, Any] = {}

    if config_path:
        if not os.path.exists(config_path):
            raise ConfigError(f"Configuration file not found: {config_path}")
        with open(config_path, 'r') as f:
            loaded = yaml.safe_load(f)
        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigError(f"Configuration file must contain a mapping: {config_path}")
        raw_config.update(loaded or {})

    # Apply environment variable overrides
    if env_log_level := os.getenv('LOG_LEVEL'):
        raw_config['log_level'] = env_log_level

    if env_debug := os.getenv('CHECK_GRAPHITE_DEBUG'):
        raw_config['debug'] = _env_flag(env_debug)

    if overrides:
        raw_config.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return CheckConfig(**raw_config)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}") from e

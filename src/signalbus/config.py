"""
SignalBus settings.

Defaults live on the model. Environment variables (optionally from a ``.env``
file) override them only if they are set, and keyword overrides win over both.
"""

import logging
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

LOGGER_NAME = "signalbus"

_BOOL_ENV = {
    "SIGNALBUS_CACHE_PATTERNS": "cache_patterns",
    "SIGNALBUS_TRACE_DISPATCH": "trace_dispatch",
}
_STR_ENV = {
    "SIGNALBUS_LOG_LEVEL": "log_level",
}


class SignalBusConfig(BaseModel):
    """Runtime options for a SignalBus instance."""

    cache_patterns: bool = Field(
        default=True,
        description="Memoise compiled wildcard patterns between dispatches"
    )
    trace_dispatch: bool = Field(
        default=False,
        description="Log every dispatch and every matching key at DEBUG"
    )
    log_level: str = Field(
        default="WARNING",
        description=(
            "Level for the signalbus logger. Only applied by configure_logging; "
            "creating a SignalBus never changes logger levels"
        )
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level


def load_config(**overrides: Any) -> SignalBusConfig:
    """Build a config from defaults, the environment and keyword overrides.

    Args:
        **overrides: Field values that take precedence over the environment

    Returns:
        SignalBusConfig: Validated settings
    """
    # Load any environment-specific overrides
    load_dotenv()

    values: Dict[str, Any] = {}
    for env_name, field_name in _BOOL_ENV.items():
        if env_name in os.environ:
            values[field_name] = os.getenv(env_name).lower() == "true"
    for env_name, field_name in _STR_ENV.items():
        if env_name in os.environ:
            values[field_name] = os.getenv(env_name)

    values.update(overrides)
    return SignalBusConfig(**values)


def configure_logging(config: Optional[SignalBusConfig] = None) -> logging.Logger:
    """Apply the configured level to the signalbus logger.

    Handlers are left to the application.
    """
    config = config or SignalBusConfig()
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(config.log_level)
    return logger

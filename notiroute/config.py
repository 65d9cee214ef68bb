"""Service configuration — env-driven via pydantic-settings.

Reads from a .env file and NOTIROUTE_* environment variables.  Also owns
logging setup so every entry point configures handlers the same way.
"""

from __future__ import annotations

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.logging import RichHandler


class ServiceConfig(BaseSettings):
    """Runtime configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export NOTIROUTE_LOG_LEVEL=DEBUG
        export NOTIROUTE_MAX_WORKERS=32
        export NOTIROUTE_SMS_FAILURE_RATE=0

    Or via .env file::

        NOTIROUTE_ENVIRONMENT=staging
        NOTIROUTE_RETRY_MAX_ATTEMPTS=5
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="NOTIROUTE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"

    # Dispatch
    max_workers: int = Field(default=8, ge=1)
    shard_count: int = Field(default=16, ge=1)

    # Retry policy
    retry_max_attempts: int = Field(default=3, ge=0)
    retry_base_delay_seconds: float = Field(default=1.0, ge=0)
    retry_max_delay_seconds: float = Field(default=60.0, ge=0)
    retry_jitter_ratio: float = Field(default=0.1, ge=0, le=1)

    # Simulated senders
    simulate_latency: bool = True
    email_failure_rate: float = Field(default=0.10, ge=0, le=1)
    sms_failure_rate: float = Field(default=0.15, ge=0, le=1)
    push_failure_rate: float = Field(default=0.08, ge=0, le=1)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def configure_logging(level: str = "INFO") -> None:
    """Route the ``notiroute`` logger hierarchy through a Rich handler.

    Safe to call more than once; the handler is only installed once.
    """
    root = logging.getLogger("notiroute")
    root.setLevel(level.upper())
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        root.addHandler(handler)


# Module-level singleton, import as `from notiroute.config import config`
config = ServiceConfig()

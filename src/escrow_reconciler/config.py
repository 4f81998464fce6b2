"""Reconciler configuration via pydantic-settings.

Reads from .env file or environment variables. Every component takes explicit
overrides in its constructor and falls back to these values otherwise.

Usage:
    from escrow_reconciler.config import get_settings
    settings = get_settings()
    print(settings.max_block_span)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the escrow reconciler."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_env: Literal["development", "staging", "production"] = "development"
    app_log_level: str = "INFO"
    log_json: bool = False

    # --- Event scanning ---
    # Blocks scanned per get_history call; longer histories resume from a later block.
    max_block_span: int = Field(default=100_000, gt=0)
    # Assumed distance to the head when the head-block query fails.
    head_fallback_span: int = Field(default=1_000_000, gt=0)

    # --- Dispute correlation ---
    reverse_lookup_cap: int = Field(default=100, ge=0)

    # --- Subscriptions ---
    subscription_queue_size: int = Field(default=256, gt=0)

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def use_json_logs(self) -> bool:
        """JSON logs are forced outside development."""
        return self.log_json or not self.is_development


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton of the reconciler settings."""
    return Settings()

"""
Central application configuration using pydantic-settings.

This module provides typed access to environment-based configuration for
the API process: logging, persistence toggle and room defaults.

Database configuration lives in `data.config.DatabaseSettings`; game rules
live in `core.game.config.GameConfig`.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.game.config import CreditFormula

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class AppSettings(BaseSettings):
    """
    Configuration for the Energy Money API process.

    Environment variables (prefix: ENERGY_):
        ENERGY_LOG_LEVEL           - DEBUG | INFO | WARNING | ERROR (default: INFO)
        ENERGY_PERSISTENCE_ENABLED - Save room state to the database (default: false)
        ENERGY_DEFAULT_SEED        - Seed for rooms created without one (default: random)
        ENERGY_CREDIT_FORMULA      - income_multiple | cashflow_hundreds
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="ENERGY_",
    )

    log_level: str = Field(default="INFO", description="Root log level.")
    persistence_enabled: bool = Field(
        default=False,
        description="Persist room state after every accepted mutation.",
    )
    default_seed: Optional[int] = Field(
        default=None,
        description="Seed used when a room is created without one.",
    )
    credit_formula: CreditFormula = Field(
        default=CreditFormula.INCOME_MULTIPLE,
        description="Maximum credit rule applied to new rooms.",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value}")
        return level


@lru_cache
def get_app_settings() -> AppSettings:
    """Return cached application settings instance."""
    return AppSettings()

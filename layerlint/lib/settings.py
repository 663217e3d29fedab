"""Environment-based settings for lint runs."""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from layerlint.lib.graph import UtilityPolicy

__all__ = ["LintSettings"]


class LintSettings(BaseSettings):
    """Lint settings using pydantic-settings.

    Automatically loads from environment variables with LAYERLINT_ prefix.

    Example:
        >>> # LAYERLINT_WORKERS=8
        >>> # LAYERLINT_UTILITY_LAYER_CHECKS=true
        >>> settings = LintSettings()
        >>> settings.utility_policy
        UtilityPolicy(layer_checks=True, cycle_checks=True)
    """

    workers: int = Field(default=4, ge=1, le=64, description="Worker threads for validation and cycle search")
    utility_layer_checks: bool = Field(default=False, description="Check utility model edges against the layer table")
    utility_cycle_checks: bool = Field(default=True, description="Include utility models in cycle detection")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Log format: 'json' or 'console'")
    log_file: Optional[str] = Field(default=None, description="Optional log file path")

    model_config = SettingsConfigDict(
        env_prefix="LAYERLINT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level is a known value."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate format is a known value."""
        valid_formats = ["json", "console"]
        if v.lower() not in valid_formats:
            raise ValueError(f"log_format must be one of: {valid_formats}")
        return v.lower()

    @property
    def utility_policy(self) -> UtilityPolicy:
        return UtilityPolicy(
            layer_checks=self.utility_layer_checks,
            cycle_checks=self.utility_cycle_checks,
        )

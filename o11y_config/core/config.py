# o11y_config/core/config.py
from __future__ import annotations

import logging
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Loader settings, read from O11Y_* environment variables and/or .env file.
    """

    # Environment settings
    APP_NAME: str = "o11y-config"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Configuration document
    CONFIG_PATH: Optional[str] = None

    # Environment overrides
    ENV_NESTED_DELIMITER: str = "__"
    ENV_PREFIX: str = ""
    STRICT_ENV_OVERRIDES: bool = True

    @property
    def is_development(self) -> bool:
        return self.APP_ENV.lower() in ("development", "dev", "local")

    @field_validator("LOG_LEVEL")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        """Accept any standard logging level name, case-insensitively."""
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {value}")
        return level

    @field_validator("ENV_NESTED_DELIMITER")
    @classmethod
    def _check_delimiter(cls, value: str) -> str:
        if not value:
            raise ValueError("ENV_NESTED_DELIMITER must not be empty")
        return value

    model_config = SettingsConfigDict(
        env_prefix="O11Y_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


settings = Settings()

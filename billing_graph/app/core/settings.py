from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="BILLING_GRAPH_", extra="ignore")

    # Logging
    log_level: LogLevel = "INFO"

    # Compiled dynamic-field matchers kept per (pattern, parent column)
    pattern_cache_size: int = 256

    # Registration must be finished before the first materialize call
    freeze_registry_on_use: bool = True


def get_settings() -> Settings:
    return Settings()

"""
Configuration loader for the flower classification service.

Environment variables are centralized here to keep the rest of the code
focused on business logic. The model itself ships inside the package and is
intentionally not configurable.
"""

from functools import lru_cache
import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # API
    log_level: str = Field("INFO")
    request_timeout_seconds: int = Field(30, gt=0)
    max_image_bytes: int = Field(10 * 1024 * 1024, gt=0)

    # ONNX Runtime; 0 lets the runtime pick
    ort_intra_op_threads: int = Field(0, ge=0)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError("LOG_LEVEL must be a standard logging level name")
        return level


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings to avoid reparsing env on every call."""
    return Settings()

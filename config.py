"""
Application configuration.

Settings are read from environment variables (prefix ``IMAGE_SERVICE_``,
nested sections separated by ``__``) or an ``image_service.env`` file,
e.g. ``IMAGE_SERVICE_API__PORT=9000``.
"""

from functools import lru_cache
from typing import Any, Dict, List

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.constants import StorageConstants


class SystemSettings(BaseModel):
    """Logging and debug settings"""

    log_level: str = "INFO"
    debug: bool = False

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


class ApiSettings(BaseModel):
    """HTTP server settings"""

    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    cors_enabled: bool = True
    cors_origins: List[str] = ["*"]


class StorageSettings(BaseModel):
    """Where uploaded files are stored"""

    files_dir: str = StorageConstants.DEFAULT_FILES_DIR


class Settings(BaseSettings):
    """Root settings object"""

    environment: str = "development"
    system: SystemSettings = SystemSettings()
    api: ApiSettings = ApiSettings()
    storage: StorageSettings = StorageSettings()

    model_config = SettingsConfigDict(
        env_prefix="IMAGE_SERVICE_",
        env_nested_delimiter="__",
        env_file="image_service.env",
        extra="ignore",
    )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


@lru_cache()
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()

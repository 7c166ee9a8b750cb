"""Configuration management for the EPWInsight API."""

from typing import Optional
from pydantic_settings import BaseSettings


class APIConfig(BaseSettings):
    """API configuration."""

    # API settings
    api_title: str = "EPWInsight API"
    api_version: str = "0.1.0"
    api_description: str = (
        "REST API for parsing EnergyPlus Weather (EPW) files, "
        "comfort analysis and wind-rose statistics"
    )

    # CORS settings
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Uploads larger than this are rejected before parsing
    max_upload_bytes: int = 32 * 1024 * 1024

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "EPWINSIGHT_API_"
        case_sensitive = False
        extra = "ignore"


# Global config instance
_config: Optional[APIConfig] = None


def get_config() -> APIConfig:
    """Get or create global configuration instance."""
    global _config
    if _config is None:
        _config = APIConfig()
    return _config

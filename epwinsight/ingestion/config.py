"""Configuration management for ingestion service."""
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings


class FetchConfig(BaseSettings):
    """Remote archive download configuration."""
    timeout: int = 60
    max_retries: int = 3
    retry_delay: float = 1.0
    user_agent: str = "epwinsight/0.1"

    class Config:
        env_file = ".env"
        env_prefix = "EPWINSIGHT_FETCH_"
        extra = "ignore"


class CacheConfig(BaseSettings):
    """Processed-dataset cache configuration."""
    cache_dir: Path = Path.home() / ".cache" / "epwinsight"
    key_prefix: str = "epw_cache_"
    max_bytes: int = 4 * 1024 * 1024  # 4 MiB
    max_age_seconds: int = 7 * 24 * 60 * 60  # 7 days
    eviction_target_ratio: float = 0.7
    near_limit_percent: float = 80.0
    compress: bool = True
    storage_capacity_bytes: Optional[int] = None  # hard backend quota, if any

    class Config:
        env_file = ".env"
        env_prefix = "EPWINSIGHT_CACHE_"
        extra = "ignore"

    @property
    def max_age_ms(self) -> int:
        return self.max_age_seconds * 1000


def get_fetch_config() -> FetchConfig:
    """Get fetch configuration instance."""
    return FetchConfig()


def get_cache_config() -> CacheConfig:
    """Get cache configuration instance."""
    return CacheConfig()

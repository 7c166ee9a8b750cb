"""
Configuration for processing service
"""
from pydantic_settings import BaseSettings


class ProcessingConfig(BaseSettings):
    """Processing service configuration"""

    # Document layout
    min_header_lines: int = 8  # LOCATION line + 7 reserved header lines
    min_record_fields: int = 35

    # Local file decoding, tried in order
    file_encodings: list[str] = ["utf-8", "latin-1"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "EPWINSIGHT_"
        extra = "ignore"


def get_config() -> ProcessingConfig:
    """Get processing configuration instance"""
    return ProcessingConfig()

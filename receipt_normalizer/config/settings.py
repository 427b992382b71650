"""
Configuration Management for Receipt Normalizer

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The output format, quality and size limits live in one place and are
validated at startup rather than scattered as constants across services.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class NormalizerSettings(BaseSettings):
    """Image normalization configuration."""

    model_config = SettingsConfigDict(
        env_prefix="IMAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    max_dimension: int = Field(
        default=512,
        ge=1,
        description="Upper bound in pixels for the larger side of the output"
    )
    output_format: str = Field(
        default="JPEG",
        description="Pillow format name used to re-encode every image"
    )
    output_mime_type: str = Field(
        default="image/jpeg",
        description="MIME type stamped on every normalized image"
    )
    quality: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Encoder quality on a 0-1 scale"
    )
    allow_upscale: bool = Field(
        default=False,
        description="Scale images smaller than max_dimension up to it"
    )
    background_color: str = Field(
        default="#ffffff",
        description="Fill colour for transparent pixels when the output has no alpha"
    )

    @field_validator('output_format')
    @classmethod
    def normalize_format(cls, v: str) -> str:
        """Pillow format names are upper case."""
        return v.strip().upper()

    @field_validator('output_mime_type')
    @classmethod
    def validate_mime_type(cls, v: str) -> str:
        """Only image MIME types make sense here."""
        v = v.strip().lower()
        if not v.startswith("image/"):
            raise ValueError(f"Output MIME type must be an image type, got {v}")
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Logging
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode (forces DEBUG logging)"
    )
    log_level: str = Field(
        default="INFO",
        description="Standard library logging level name"
    )

    # File upload limits
    max_upload_size_mb: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum upload file size in MB"
    )

    @property
    def effective_log_level(self) -> str:
        """Logging level after applying debug_mode."""
        return "DEBUG" if self.debug_mode else self.log_level

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def normalizer(self) -> NormalizerSettings:
        return NormalizerSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.normalizer
        results["normalizer"] = True
    except Exception as e:
        results["normalizer"] = False
        results["normalizer_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results

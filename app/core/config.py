"""
Application configuration using Pydantic Settings.
All configuration values can be overridden via environment variables or .env file.
"""
from pydantic_settings import BaseSettings
from pathlib import Path
from typing import Optional, Dict, Any, List


# Sizes the media library always knows about; their dimensions live in options
BUILTIN_IMAGE_SIZES = ("thumbnail", "medium", "large")


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application
    app_name: str = "Lazy Thumbnails API"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    logs_dir: Path = Path("logs")

    # Paths (relative to backend root)
    uploads_dir: Path = Path("static/uploads")
    metadata_dir: Path = Path("static/metadata")

    # Public base URL of the uploads directory (site-relative by default)
    uploads_url: str = "/static/uploads"

    # Built-in image sizes
    thumbnail_size_w: int = 150
    thumbnail_size_h: int = 150
    thumbnail_crop: bool = True
    medium_size_w: int = 300
    medium_size_h: int = 300
    medium_crop: bool = False
    large_size_w: int = 1024
    large_size_h: int = 1024
    large_crop: bool = False

    # Theme/plugin sizes: {"name": {"width": 640, "height": 360, "crop": true}}
    additional_image_sizes: Dict[str, Dict[str, Any]] = {}

    # Image encoding
    jpeg_quality: int = 82

    # Serialize ensure() per attachment with a file lock
    exclusive_resize: bool = False
    lock_timeout: float = 10.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    def list_preset_names(self) -> List[str]:
        """Names of every registered image size, built-ins first."""
        names = list(BUILTIN_IMAGE_SIZES)
        for name in self.additional_image_sizes:
            if name not in names:
                names.append(name)
        return names

    def get_option(self, name: str) -> Any:
        """
        Look up a media option such as ``medium_size_w`` or ``thumbnail_crop``.

        Args:
            name: Option name

        Returns:
            The option value, or None if no such option exists
        """
        if name not in type(self).model_fields:
            return None
        return getattr(self, name)

    def get_uploads_url(self) -> str:
        """Get the uploads base URL without a trailing slash."""
        return self.uploads_url.rstrip("/")


# Global settings instance (lazily initialized)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings

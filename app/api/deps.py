"""
Dependency injection for FastAPI endpoints.
Provides singleton instances and factory functions for services.
"""
from functools import lru_cache, partial
from typing import Optional

from app.core.config import Settings, get_settings
from app.repositories.metadata_repository import MetadataRepository
from app.services.image_editor import make_intermediate_size
from app.services.image_service import ImageService
from app.services.size_registry import SizeRegistry
from app.services.thumbnail_ensurer import ThumbnailEnsurer

# Global singleton instances
_size_registry: Optional[SizeRegistry] = None


@lru_cache()
def get_app_settings() -> Settings:
    """
    Get application settings (cached).

    Returns:
        Settings instance
    """
    return get_settings()


def get_size_registry() -> SizeRegistry:
    """
    Get the size registry singleton, built on first use.

    Returns:
        SizeRegistry instance
    """
    global _size_registry
    if _size_registry is None:
        _size_registry = SizeRegistry.from_settings(get_app_settings())
    return _size_registry


def get_metadata_repository() -> MetadataRepository:
    """
    Get attachment metadata repository.

    Returns:
        MetadataRepository instance
    """
    settings = get_app_settings()
    return MetadataRepository(
        settings.metadata_dir,
        uploads_dir=settings.uploads_dir,
        uploads_url=settings.get_uploads_url(),
        lock_timeout=settings.lock_timeout,
    )


def build_thumbnail_ensurer(settings: Settings, repository: MetadataRepository, registry: SizeRegistry) -> ThumbnailEnsurer:
    """Wire a ThumbnailEnsurer from explicit collaborators."""
    return ThumbnailEnsurer(
        metadata_store=repository,
        size_registry=registry,
        resizer=partial(make_intermediate_size, quality=settings.jpeg_quality),
        lock_factory=repository.resize_lock if settings.exclusive_resize else None,
    )


def get_thumbnail_ensurer() -> ThumbnailEnsurer:
    """
    Get the on-demand thumbnail generator.

    Returns:
        ThumbnailEnsurer instance
    """
    return build_thumbnail_ensurer(get_app_settings(), get_metadata_repository(), get_size_registry())


def get_image_service() -> ImageService:
    """
    Get the image service.

    Returns:
        ImageService instance
    """
    repository = get_metadata_repository()
    ensurer = build_thumbnail_ensurer(get_app_settings(), repository, get_size_registry())
    return ImageService(repository, ensurer)


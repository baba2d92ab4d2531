"""
Services layer for the Lazy Thumbnails application.
Contains the size generation logic and the image resizing primitives it relies on.
"""

from app.services.image_editor import (
    constrain_dimensions,
    resize_dimensions,
    intermediate_file_path,
    image_size,
    make_intermediate_size
)

from app.services.size_registry import SizeRegistry

from app.services.thumbnail_ensurer import ThumbnailEnsurer

from app.services.image_service import ImageService

__all__ = [
    # Image editor
    'constrain_dimensions',
    'resize_dimensions',
    'intermediate_file_path',
    'image_size',
    'make_intermediate_size',

    # Size registry
    'SizeRegistry',

    # Generation
    'ThumbnailEnsurer',
    'ImageService',
]

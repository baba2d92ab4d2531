"""
Repository layer exports.
"""
from app.repositories.base import BaseRepository
from app.repositories.metadata_repository import MetadataRepository

__all__ = [
    'BaseRepository',
    'MetadataRepository',
]

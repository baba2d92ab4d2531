"""
Shared fixtures: isolated settings, a metadata repository on tmp_path and
real images written with OpenCV.
"""

import os
import tempfile
from pathlib import Path

# Point module-level settings at a scratch directory before app modules are imported
_SCRATCH = Path(tempfile.mkdtemp(prefix="lazy-thumbnails-tests-"))
os.environ.setdefault("LOGS_DIR", str(_SCRATCH / "logs"))
os.environ.setdefault("UPLOADS_DIR", str(_SCRATCH / "uploads"))
os.environ.setdefault("METADATA_DIR", str(_SCRATCH / "metadata"))

import cv2
import numpy as np
import pytest

from app.core.config import Settings
from app.repositories.metadata_repository import MetadataRepository
from app.services.size_registry import SizeRegistry


ORIGINAL_FILE = "2024/05/image.jpg"


def write_image(path: Path, width: int, height: int) -> Path:
    """Write a gradient JPEG/PNG of the given size and return its path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[:, :, 0] = np.linspace(0, 255, width, dtype=np.uint8)[np.newaxis, :]
    image[:, :, 1] = np.linspace(0, 255, height, dtype=np.uint8)[:, np.newaxis]
    assert cv2.imwrite(str(path), image)
    return path


@pytest.fixture()
def settings(tmp_path):
    """Settings isolated from the environment and rooted in tmp_path."""
    return Settings(
        _env_file=None,
        uploads_dir=tmp_path / "uploads",
        metadata_dir=tmp_path / "metadata",
        logs_dir=tmp_path / "logs",
        uploads_url="/static/uploads",
    )


@pytest.fixture()
def repository(settings):
    return MetadataRepository(
        settings.metadata_dir,
        uploads_dir=settings.uploads_dir,
        uploads_url=settings.get_uploads_url(),
        lock_timeout=1.0,
    )


@pytest.fixture()
def registry(settings):
    return SizeRegistry.from_settings(settings)


@pytest.fixture()
def original(settings):
    """A 1200x800 original on disk under the uploads directory."""
    return write_image(settings.uploads_dir / ORIGINAL_FILE, 1200, 800)


@pytest.fixture()
def attachment_id(repository, original):
    """Attachment 42 pointing at the 1200x800 original, with no generated sizes."""
    repository.update(42, {"file": ORIGINAL_FILE, "width": 1200, "height": 800, "sizes": {}})
    return 42

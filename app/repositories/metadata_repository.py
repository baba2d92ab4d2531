"""
Repository for attachment metadata persistence.

Each attachment is stored as ``<metadata_dir>/<id>.json`` with the same shape
a media library keeps for uploads::

    {
        "file": "2024/05/photo.jpg",
        "width": 1600,
        "height": 1200,
        "sizes": {
            "medium": {"file": "photo-300x225.jpg", "width": 300, "height": 225,
                       "mime-type": "image/jpeg", "width_query": 300, "height_query": 300}
        }
    }
"""
import logging
import re
from pathlib import Path
from typing import Optional, Dict, Any, List

from filelock import FileLock

from app.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

_METADATA_FILE_RE = re.compile(r"^(\d+)\.json$")


class MetadataRepository(BaseRepository):
    """Repository for attachment metadata file operations."""

    def __init__(
        self,
        base_path: Path,
        uploads_dir: Path,
        uploads_url: str,
        lock_timeout: float = 10.0
    ):
        """
        Initialize metadata repository.

        Args:
            base_path: Path to the metadata directory
            uploads_dir: Directory original uploads live under
            uploads_url: Public base URL of uploads_dir
            lock_timeout: Seconds to wait for a per-attachment lock
        """
        super().__init__(base_path)
        self.uploads_dir = Path(uploads_dir)
        self.uploads_url = uploads_url.rstrip("/")
        self.lock_timeout = lock_timeout

    def _get_metadata_filename(self, attachment_id: int) -> str:
        return f"{int(attachment_id)}.json"

    def _get_lock(self, attachment_id: int, purpose: str) -> FileLock:
        lock_path = self.get_file_path(f"{int(attachment_id)}.{purpose}.lock")
        return FileLock(str(lock_path), timeout=self.lock_timeout)

    def get(self, attachment_id: int) -> Optional[Dict[str, Any]]:
        """
        Load metadata for an attachment.

        Args:
            attachment_id: Attachment ID

        Returns:
            Metadata dictionary, or None if the attachment is unknown
        """
        metadata = self.read_json(self._get_metadata_filename(attachment_id))

        if metadata is None:
            return None

        if not isinstance(metadata, dict):
            logger.warning(f"Metadata file for attachment {attachment_id} does not contain an object")
            return None

        return metadata

    def update(self, attachment_id: int, metadata: Dict[str, Any]) -> bool:
        """
        Replace the stored metadata for an attachment.

        Args:
            attachment_id: Attachment ID
            metadata: Full metadata dictionary

        Returns:
            True if successful, False otherwise
        """
        with self._get_lock(attachment_id, "write"):
            return self.write_json(self._get_metadata_filename(attachment_id), metadata)

    def exists(self, attachment_id: int) -> bool:
        """Check if metadata exists for an attachment."""
        return self.file_exists(self._get_metadata_filename(attachment_id))

    def all_ids(self) -> List[int]:
        """List known attachment IDs in ascending order."""
        ids = []
        for path in self.base_path.iterdir():
            match = _METADATA_FILE_RE.match(path.name)
            if match:
                ids.append(int(match.group(1)))
        return sorted(ids)

    def create(self, file: str, width: int, height: int) -> Optional[int]:
        """
        Store metadata for a new attachment under the next free ID.

        Args:
            file: Path of the original relative to the uploads directory
            width: Original width in pixels
            height: Original height in pixels

        Returns:
            The new attachment ID, or None if the save failed
        """
        with self._get_lock(0, "allocate"):
            ids = self.all_ids()
            attachment_id = ids[-1] + 1 if ids else 1
            metadata = {
                "file": file,
                "width": width,
                "height": height,
                "sizes": {},
            }
            if not self.update(attachment_id, metadata):
                return None

        logger.info(f"Created metadata for attachment {attachment_id}: {file}")
        return attachment_id

    def attached_file_path(self, attachment_id: int) -> Optional[Path]:
        """
        Resolve the absolute path of an attachment's original file.

        Returns:
            Path to the original, or None if the attachment is unknown
        """
        return self.original_path(self.get(attachment_id))

    def attachment_url(self, attachment_id: int) -> Optional[str]:
        """
        Resolve the public URL of an attachment's original file.

        Returns:
            URL of the original, or None if the attachment is unknown
        """
        return self.original_url(self.get(attachment_id))

    def original_path(self, metadata: Optional[Dict[str, Any]]) -> Optional[Path]:
        """Path of the original described by already loaded metadata."""
        if not metadata or not metadata.get("file"):
            return None
        return self.uploads_dir / metadata["file"].lstrip("/")

    def original_url(self, metadata: Optional[Dict[str, Any]]) -> Optional[str]:
        """URL of the original described by already loaded metadata."""
        if not metadata or not metadata.get("file"):
            return None
        return f"{self.uploads_url}/{metadata['file'].lstrip('/')}"

    def resize_lock(self, attachment_id: int) -> FileLock:
        """Lock that serializes resize work for one attachment across processes."""
        return self._get_lock(attachment_id, "resize")

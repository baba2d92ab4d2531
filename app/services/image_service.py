"""
Image source resolution and attachment registration.

``get_image_src`` gives the on-demand generator the first chance to answer a
request; when it declines, the size already recorded in metadata (or the
original at full size) is served instead.
"""
import logging
import posixpath
from pathlib import Path
from typing import Any, Dict

from app.core.exceptions import (
    AttachmentNotFoundException,
    FileOperationException,
    ValidationException,
)
from app.core.logging import operation_logger
from app.models.domain import NO_ACTION, ImageSource, NamedSize, Resized, parse_size_spec
from app.repositories.metadata_repository import MetadataRepository
from app.services.image_editor import image_size
from app.services.thumbnail_ensurer import ThumbnailEnsurer

logger = logging.getLogger(__name__)


class ImageService:
    """Resolves what to serve for an attachment at a given size."""

    def __init__(self, repository: MetadataRepository, ensurer: ThumbnailEnsurer):
        self.repository = repository
        self.ensurer = ensurer

    def get_metadata(self, attachment_id: int) -> Dict[str, Any]:
        """
        Get stored metadata for an attachment.

        Raises:
            AttachmentNotFoundException: If the attachment is unknown
        """
        metadata = self.repository.get(attachment_id)
        if metadata is None:
            raise AttachmentNotFoundException(attachment_id)
        return metadata

    def get_image_src(self, attachment_id: int, size: Any) -> ImageSource:
        """
        Resolve the URL and dimensions to display an attachment at ``size``.

        Args:
            attachment_id: Attachment ID
            size: Size name or [width, height] pair

        Raises:
            AttachmentNotFoundException: If the attachment is unknown
            ValidationException: If ``size`` is malformed
        """
        spec = parse_size_spec(size)

        outcome = self.ensurer.downsize_filter(NO_ACTION, attachment_id, spec)
        if isinstance(outcome, Resized):
            url, width, height, is_intermediate = outcome.as_downsize()
            return ImageSource(url=url, width=width, height=height, is_intermediate=is_intermediate)

        metadata = self.get_metadata(attachment_id)
        url = self.repository.attachment_url(attachment_id) or ""

        if isinstance(spec, NamedSize):
            entry = (metadata.get("sizes") or {}).get(spec.name)
            if isinstance(entry, dict) and entry.get("file"):
                return ImageSource(
                    url=f"{posixpath.dirname(url)}/{entry['file']}",
                    width=int(entry.get("width") or 0),
                    height=int(entry.get("height") or 0),
                    is_intermediate=True,
                )

        return ImageSource(
            url=url,
            width=int(metadata.get("width") or 0),
            height=int(metadata.get("height") or 0),
            is_intermediate=False,
        )

    @operation_logger("register_attachment")
    def register_attachment(self, file: str) -> int:
        """
        Register an image already present under the uploads directory.

        Args:
            file: Path relative to the uploads directory

        Returns:
            The new attachment ID

        Raises:
            ValidationException: If the file is missing or outside the uploads directory
            FileOperationException: If the metadata could not be saved
            ImageProcessingException: If the file is not a readable image
        """
        uploads_dir = self.repository.uploads_dir.resolve()
        relative = Path(file.lstrip("/"))
        full_path = (uploads_dir / relative).resolve()

        if uploads_dir not in full_path.parents:
            raise ValidationException(f"{file} is outside the uploads directory")
        if not full_path.is_file():
            raise ValidationException(f"{file} does not exist in the uploads directory")

        width, height = image_size(full_path)
        attachment_id = self.repository.create(relative.as_posix(), width, height)
        if attachment_id is None:
            raise FileOperationException("write", str(self.repository.base_path), "could not save metadata")

        logger.info(f"Registered attachment {attachment_id}: {relative.as_posix()} ({width}x{height})")
        return attachment_id

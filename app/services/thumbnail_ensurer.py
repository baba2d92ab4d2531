"""
On-demand generation of missing image sizes.

When an image is requested at a size that was never generated (or whose
preset dimensions changed since it was generated), the original is resized,
the new size is recorded in the attachment metadata, and the resized file is
served. Every other case returns NO_ACTION so the caller serves the image the
way it normally would.
"""
import logging
import posixpath
from contextlib import nullcontext
from pathlib import Path
from typing import Any, Callable, ContextManager, Dict, Optional, Protocol

from filelock import Timeout

from app.core.exceptions import ValidationException
from app.core.logging import log_event, log_operation_error
from app.models.domain import (
    NO_ACTION,
    ExplicitSize,
    IntermediateImage,
    NamedSize,
    Outcome,
    Resized,
    SizePreset,
    SizeSpec,
    parse_size_spec,
)
from app.services.size_registry import SizeRegistry

logger = logging.getLogger(__name__)

OPERATION = "ensure_thumbnail"


class MetadataStore(Protocol):
    def get(self, attachment_id: int) -> Optional[Dict[str, Any]]: ...
    def update(self, attachment_id: int, metadata: Dict[str, Any]) -> bool: ...
    def original_path(self, metadata: Optional[Dict[str, Any]]) -> Optional[Path]: ...
    def original_url(self, metadata: Optional[Dict[str, Any]]) -> Optional[str]: ...


Resizer = Callable[[Path, int, int, bool], Optional[IntermediateImage]]
LockFactory = Callable[[int], ContextManager]


def _log(level: str, event: str, message: str, **context) -> None:
    log_event(
        level=level,
        logger=__name__,
        function="ensure",
        operation=OPERATION,
        event=event,
        message=message,
        context=context,
    )


def _is_current(entry: Dict[str, Any], preset: SizePreset) -> bool:
    """Whether a recorded size was generated for the preset's current dimensions."""
    if entry.get("width") == preset.width and entry.get("height") == preset.height:
        return True

    # Fitted (uncropped) sizes rarely match the preset exactly, so the
    # dimensions they were requested with are stamped alongside them
    width_query = entry.get("width_query")
    height_query = entry.get("height_query")
    if width_query is not None and height_query is not None:
        return width_query == preset.width and height_query == preset.height

    return False


class ThumbnailEnsurer:
    """Makes sure a requested image size exists, generating it if needed."""

    def __init__(
        self,
        metadata_store: MetadataStore,
        size_registry: SizeRegistry,
        resizer: Resizer,
        lock_factory: Optional[LockFactory] = None
    ):
        """
        Args:
            metadata_store: Source and sink of attachment metadata
            size_registry: Named size presets
            resizer: Writes a resized copy of a file and describes it
            lock_factory: Optional per-attachment lock held for a whole ensure()
        """
        self.metadata_store = metadata_store
        self.size_registry = size_registry
        self.resizer = resizer
        self.lock_factory = lock_factory

    def ensure(self, attachment_id: int, size: SizeSpec) -> Outcome:
        """
        Make sure ``size`` exists for an attachment.

        Returns:
            Resized if a usable file is available for the request, otherwise NO_ACTION
        """
        lock = self.lock_factory(attachment_id) if self.lock_factory else nullcontext()
        try:
            with lock:
                if isinstance(size, NamedSize):
                    return self._ensure_named(attachment_id, size)
                if isinstance(size, ExplicitSize):
                    return self._ensure_explicit(attachment_id, size)
        except Timeout as e:
            log_operation_error(
                logger=__name__,
                function="ensure",
                operation=OPERATION,
                error=e,
                message=f"Timed out waiting for resize lock on attachment {attachment_id}",
                context={"attachment_id": attachment_id},
            )
            return NO_ACTION

        raise TypeError(f"Unsupported size specification: {size!r}")

    def downsize_filter(self, default: Any, attachment_id: int, size: Any) -> Outcome:
        """
        Hook-style entry point taking the size as a name or a [width, height] pair.

        ``default`` is the value earlier filters produced and is not consulted.
        """
        try:
            spec = parse_size_spec(size)
        except ValidationException as e:
            _log("WARNING", "invalid_size", e.message, attachment_id=attachment_id, size=repr(size))
            return NO_ACTION
        return self.ensure(attachment_id, spec)

    def _ensure_named(self, attachment_id: int, size: NamedSize) -> Outcome:
        preset = self.size_registry.get(size.name)
        if preset is None:
            _log("DEBUG", "unknown_size", f"Unknown image size '{size.name}'",
                 attachment_id=attachment_id, size=size.name)
            return NO_ACTION

        metadata = self.metadata_store.get(attachment_id)
        if metadata is None:
            _log("DEBUG", "unknown_attachment", f"Unknown attachment {attachment_id}",
                 attachment_id=attachment_id, size=size.name)
            return NO_ACTION

        sizes = metadata.get("sizes") or {}
        entry = sizes.get(size.name)
        if entry and _is_current(entry, preset):
            _log("DEBUG", "size_current", f"Size '{size.name}' already generated for attachment {attachment_id}",
                 attachment_id=attachment_id, size=size.name)
            return NO_ACTION

        resized = self._resize(attachment_id, metadata, preset.width, preset.height, preset.crop)
        if resized is None:
            return NO_ACTION

        new_entry = resized.to_dict()
        new_entry["width_query"] = preset.width
        new_entry["height_query"] = preset.height
        sizes[size.name] = new_entry
        metadata["sizes"] = sizes
        self._save(attachment_id, metadata)

        url = self._sibling_url(metadata, resized.file)
        _log("INFO", "size_resized", f"Generated size '{size.name}' for attachment {attachment_id}",
             attachment_id=attachment_id, size=size.name, file=resized.file,
             width=resized.width, height=resized.height, regenerated=bool(entry))
        return Resized(url=url, width=resized.width, height=resized.height)

    def _ensure_explicit(self, attachment_id: int, size: ExplicitSize) -> Outcome:
        metadata = self.metadata_store.get(attachment_id)
        source = self.metadata_store.original_path(metadata)
        if source is None:
            _log("DEBUG", "unknown_attachment", f"Unknown attachment {attachment_id}",
                 attachment_id=attachment_id, size=size.key)
            return NO_ACTION

        expected = source.with_name(f"{source.stem}-{size.width}x{size.height}{source.suffix}")
        if expected.exists():
            _log("DEBUG", "explicit_size_exists", f"Size {size.key} already on disk for attachment {attachment_id}",
                 attachment_id=attachment_id, file=expected.name)
            return Resized(
                url=self._sibling_url(metadata, expected.name),
                width=size.width,
                height=size.height,
            )

        resized = self._resize(attachment_id, metadata, size.width, size.height, True)
        if resized is None:
            return NO_ACTION

        sizes = metadata.get("sizes") or {}
        sizes[size.key] = resized.to_dict()
        metadata["sizes"] = sizes
        self._save(attachment_id, metadata)

        _log("INFO", "size_resized", f"Generated size {size.key} for attachment {attachment_id}",
             attachment_id=attachment_id, size=size.key, file=resized.file,
             width=resized.width, height=resized.height)
        return Resized(
            url=self._sibling_url(metadata, resized.file),
            width=resized.width,
            height=resized.height,
        )

    def _resize(
        self,
        attachment_id: int,
        metadata: Dict[str, Any],
        width: int,
        height: int,
        crop: bool
    ) -> Optional[IntermediateImage]:
        source = self.metadata_store.original_path(metadata)
        if source is None:
            _log("WARNING", "resize_failed", f"No original file recorded for attachment {attachment_id}",
                 attachment_id=attachment_id)
            return None

        try:
            resized = self.resizer(source, width, height, crop)
        except Exception as e:
            log_operation_error(
                logger=__name__,
                function="_resize",
                operation=OPERATION,
                error=e,
                message=f"Resizer raised for attachment {attachment_id}",
                context={"attachment_id": attachment_id, "source": str(source),
                         "width": width, "height": height, "crop": crop},
            )
            return None

        if resized is None:
            _log("WARNING", "resize_failed", f"Could not resize attachment {attachment_id} to {width}x{height}",
                 attachment_id=attachment_id, source=str(source), width=width, height=height, crop=crop)
        return resized

    def _save(self, attachment_id: int, metadata: Dict[str, Any]) -> None:
        if not self.metadata_store.update(attachment_id, metadata):
            # The file is on disk either way; the size is regenerated next time
            _log("WARNING", "metadata_update_failed", f"Could not save metadata for attachment {attachment_id}",
                 attachment_id=attachment_id)

    def _sibling_url(self, metadata: Dict[str, Any], filename: str) -> str:
        attachment_url = self.metadata_store.original_url(metadata) or ""
        return f"{posixpath.dirname(attachment_url)}/{filename}"

"""
Domain models for business logic.
These are internal representations separate from API schemas.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from app.core.exceptions import ValidationException


@dataclass(frozen=True)
class SizePreset:
    """A named target size. A zero width or height means unconstrained."""
    name: str
    width: int
    height: int
    crop: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "width": self.width,
            "height": self.height,
            "crop": self.crop,
        }


@dataclass(frozen=True)
class NamedSize:
    """A size requested by preset name, e.g. ``"medium"``."""
    name: str


@dataclass(frozen=True)
class ExplicitSize:
    """A size requested as literal dimensions. Always cropped."""
    width: int
    height: int

    @property
    def key(self) -> str:
        """Metadata key the generated size is stored under."""
        return f"{self.width}x{self.height}"


SizeSpec = Union[NamedSize, ExplicitSize]


def parse_size_spec(raw: Any) -> SizeSpec:
    """
    Convert a loosely typed size argument into a SizeSpec.

    Accepts a preset name, a ``[width, height]`` pair or an existing SizeSpec.

    Raises:
        ValidationException: If the value has neither shape
    """
    if isinstance(raw, (NamedSize, ExplicitSize)):
        return raw
    if isinstance(raw, str):
        if not raw:
            raise ValidationException("size name must not be empty")
        return NamedSize(raw)
    if isinstance(raw, Sequence) and len(raw) == 2:
        width, height = raw
        if isinstance(width, bool) or isinstance(height, bool):
            raise ValidationException(f"invalid size dimensions: {raw!r}")
        try:
            width, height = int(width), int(height)
        except (TypeError, ValueError):
            raise ValidationException(f"invalid size dimensions: {raw!r}")
        if width <= 0 or height <= 0:
            raise ValidationException(f"size dimensions must be positive: {raw!r}")
        return ExplicitSize(width, height)
    raise ValidationException(f"unsupported size: {raw!r}")


@dataclass(frozen=True)
class NoAction:
    """The caller should fall back to its default behavior."""


NO_ACTION = NoAction()


@dataclass(frozen=True)
class Resized:
    """A generated (or already present) image size ready to be served."""
    url: str
    width: int
    height: int

    def as_downsize(self) -> Tuple[str, int, int, bool]:
        """Return the ``(url, width, height, is_intermediate)`` tuple hosts expect."""
        return (self.url, self.width, self.height, True)


Outcome = Union[NoAction, Resized]


@dataclass(frozen=True)
class IntermediateImage:
    """Result of resizing a source image into a sibling file."""
    file: str
    width: int
    height: int
    mime_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Metadata entry for this size."""
        data: Dict[str, Any] = {
            "file": self.file,
            "width": self.width,
            "height": self.height,
        }
        if self.mime_type:
            data["mime-type"] = self.mime_type
        return data


@dataclass(frozen=True)
class ImageSource:
    """What to put in an <img> tag for an attachment at some size."""
    url: str
    width: int
    height: int
    is_intermediate: bool

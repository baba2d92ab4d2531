"""
Registry of named image sizes.

Built once from settings at startup and read-only afterwards. Built-in sizes
(thumbnail, medium, large) take their dimensions from the ``<name>_size_w``,
``<name>_size_h`` and ``<name>_crop`` options; every other size comes from the
``additional_image_sizes`` mapping.
"""
import logging
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional

from app.core.config import BUILTIN_IMAGE_SIZES, Settings
from app.models.domain import SizePreset

logger = logging.getLogger(__name__)


class SizeRegistry:
    """Immutable lookup of image size presets by name."""

    def __init__(self, presets: Mapping[str, SizePreset]):
        self._presets = MappingProxyType(dict(presets))

    @classmethod
    def from_settings(cls, settings: Settings) -> "SizeRegistry":
        """
        Build the registry from media options and additional sizes.

        Names without a usable definition are skipped.
        """
        presets: Dict[str, SizePreset] = {}

        for name in settings.list_preset_names():
            if name in BUILTIN_IMAGE_SIZES:
                presets[name] = SizePreset(
                    name=name,
                    width=int(settings.get_option(f"{name}_size_w") or 0),
                    height=int(settings.get_option(f"{name}_size_h") or 0),
                    crop=bool(settings.get_option(f"{name}_crop")),
                )
            elif name in settings.additional_image_sizes:
                definition = settings.additional_image_sizes[name] or {}
                presets[name] = SizePreset(
                    name=name,
                    width=int(definition.get("width") or 0),
                    height=int(definition.get("height") or 0),
                    crop=bool(definition.get("crop", False)),
                )

        logger.info(f"Size registry built with {len(presets)} sizes: {', '.join(presets)}")
        return cls(presets)

    def get(self, name: str) -> Optional[SizePreset]:
        """Get a preset by name, or None if no such size is registered."""
        return self._presets.get(name)

    def names(self) -> List[str]:
        return list(self._presets)

    def __contains__(self, name: object) -> bool:
        return name in self._presets

    def __iter__(self) -> Iterator[SizePreset]:
        return iter(self._presets.values())

    def __len__(self) -> int:
        return len(self._presets)

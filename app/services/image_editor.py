"""
Image resizing primitives.

Dimension maths follows the media-library conventions uploads are usually
generated with: sizes never upscale, a zero target dimension means
"unconstrained", and cropped sizes are cut from the center of the original.
Generated files are written next to the original as ``<stem>-<w>x<h><ext>``.
"""
import logging
import math
import mimetypes
from pathlib import Path
from typing import Optional, Tuple

import cv2

from app.core.exceptions import ImageProcessingException
from app.models.domain import IntermediateImage

logger = logging.getLogger(__name__)

DEFAULT_JPEG_QUALITY = 82

ResizeBox = Tuple[int, int, int, int, int, int, int, int]


def constrain_dimensions(
    current_width: int,
    current_height: int,
    max_width: int = 0,
    max_height: int = 0
) -> Tuple[int, int]:
    """
    Scale dimensions down proportionally to fit within max_width x max_height.

    A zero limit leaves that axis unconstrained. Dimensions are never enlarged.
    """
    if not max_width and not max_height:
        return current_width, current_height

    width_ratio = height_ratio = 1.0

    if max_width > 0 and current_width > 0 and current_width > max_width:
        width_ratio = max_width / current_width
    if max_height > 0 and current_height > 0 and current_height > max_height:
        height_ratio = max_height / current_height

    smaller_ratio = min(width_ratio, height_ratio)
    larger_ratio = max(width_ratio, height_ratio)

    if (
        int(round(current_width * larger_ratio)) > max_width
        or int(round(current_height * larger_ratio)) > max_height
    ):
        ratio = smaller_ratio
    else:
        ratio = larger_ratio

    width = max(1, int(round(current_width * ratio)))
    height = max(1, int(round(current_height * ratio)))
    return width, height


def resize_dimensions(
    orig_w: int,
    orig_h: int,
    dest_w: int,
    dest_h: int,
    crop: bool = False
) -> Optional[ResizeBox]:
    """
    Work out the source region and output size for a resize.

    Args:
        orig_w: Original width
        orig_h: Original height
        dest_w: Target width (0 = unconstrained)
        dest_h: Target height (0 = unconstrained)
        crop: Crop to exactly dest_w x dest_h instead of fitting inside it

    Returns:
        (dst_x, dst_y, src_x, src_y, dst_w, dst_h, src_w, src_h), or None when
        the inputs are invalid or the result would not be smaller than the original
    """
    if orig_w <= 0 or orig_h <= 0:
        return None
    if dest_w <= 0 and dest_h <= 0:
        return None

    if crop:
        aspect_ratio = orig_w / orig_h
        new_w = min(dest_w, orig_w)
        new_h = min(dest_h, orig_h)

        if not new_w:
            new_w = int(round(new_h * aspect_ratio))
        if not new_h:
            new_h = int(round(new_w / aspect_ratio))

        size_ratio = max(new_w / orig_w, new_h / orig_h)

        crop_w = int(round(new_w / size_ratio))
        crop_h = int(round(new_h / size_ratio))

        s_x = int(math.floor((orig_w - crop_w) / 2))
        s_y = int(math.floor((orig_h - crop_h) / 2))
    else:
        crop_w = orig_w
        crop_h = orig_h
        s_x = s_y = 0
        new_w, new_h = constrain_dimensions(orig_w, orig_h, dest_w, dest_h)

    # No upscaling and no same-size copies
    if new_w >= orig_w and new_h >= orig_h:
        return None

    return 0, 0, s_x, s_y, int(new_w), int(new_h), crop_w, crop_h


def intermediate_file_path(source: Path, width: int, height: int) -> Path:
    """Path a ``width`` x ``height`` copy of ``source`` is written to."""
    source = Path(source)
    return source.with_name(f"{source.stem}-{width}x{height}{source.suffix}")


def image_size(path: Path) -> Tuple[int, int]:
    """
    Read the pixel dimensions of an image.

    Raises:
        ImageProcessingException: If the file cannot be decoded
    """
    image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise ImageProcessingException(str(path), "could not decode image")
    height, width = image.shape[:2]
    return int(width), int(height)


def _write_params(path: Path, quality: int) -> list:
    suffix = path.suffix.lower()
    if suffix in (".jpg", ".jpeg", ".jpe"):
        return [cv2.IMWRITE_JPEG_QUALITY, int(quality)]
    if suffix == ".webp":
        return [cv2.IMWRITE_WEBP_QUALITY, int(quality)]
    return []


def make_intermediate_size(
    file: Path,
    width: int,
    height: int,
    crop: bool = False,
    quality: int = DEFAULT_JPEG_QUALITY
) -> Optional[IntermediateImage]:
    """
    Resize an image into a sibling file.

    Args:
        file: Path to the original image
        width: Target width (0 = unconstrained)
        height: Target height (0 = unconstrained)
        crop: Crop to the exact target size
        quality: JPEG/WebP quality for the output

    Returns:
        The generated image, or None if nothing was (or could be) generated
    """
    if not width and not height:
        return None

    file = Path(file)
    image = cv2.imread(str(file), cv2.IMREAD_UNCHANGED)
    if image is None:
        logger.warning(f"Could not read image for resizing: {file}")
        return None

    orig_h, orig_w = image.shape[:2]
    box = resize_dimensions(orig_w, orig_h, width, height, crop)
    if box is None:
        logger.debug(f"No resize needed for {file} at {width}x{height} (crop={crop})")
        return None

    _, _, src_x, src_y, dst_w, dst_h, src_w, src_h = box
    region = image[src_y:src_y + src_h, src_x:src_x + src_w]

    output_path = intermediate_file_path(file, dst_w, dst_h)
    try:
        resized = cv2.resize(region, (dst_w, dst_h), interpolation=cv2.INTER_AREA)
        success = cv2.imwrite(str(output_path), resized, _write_params(output_path, quality))
    except cv2.error as e:
        logger.error(f"Error resizing {file} to {dst_w}x{dst_h}: {str(e)}")
        return None

    if not success:
        logger.error(f"Could not save resized image to: {output_path}")
        return None

    logger.info(f"Generated {dst_w}x{dst_h} size: {output_path}")
    mime_type, _ = mimetypes.guess_type(output_path.name)
    return IntermediateImage(
        file=output_path.name,
        width=dst_w,
        height=dst_h,
        mime_type=mime_type,
    )

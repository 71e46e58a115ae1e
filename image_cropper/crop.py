"""Crop export backend using pyvips.

Pure functions for writing the visible square region to a PNG, no Qt
dependencies.
"""

import contextlib
from typing import Any

from image_cropper.errors import ExportFailure
from image_cropper.logger import get_logger
from image_cropper.ops.viewport_transform import CropRect, ImageMetadata

_logger = get_logger("crop")

try:
    import pyvips  # type: ignore
except ImportError:
    pyvips = None  # type: ignore
    _logger.warning("pyvips is not available; export will fail when used")


def _get_pyvips_module() -> Any:
    """Return the pyvips module or raise ImportError if unavailable."""
    if pyvips is None:
        _logger.error("pyvips requested but not available")
        raise ImportError("pyvips is not available")
    return pyvips


def validate_crop_bounds(img_width: int, img_height: int, crop: tuple[int, int, int, int]) -> bool:
    """Validate that crop rectangle is within image bounds.

    Args:
        img_width: Original image width
        img_height: Original image height
        crop: (left, top, width, height) crop rectangle

    Returns:
        True if crop is valid, False otherwise
    """
    left, top, width, height = crop
    if left < 0 or top < 0:
        return False
    if width <= 0 or height <= 0:
        return False
    if left + width > img_width:
        return False
    return not top + height > img_height


def export_crop(source_path: str, rect: CropRect, output_path: str, expected: ImageMetadata | None = None) -> str:
    """Write the source region under `rect` to `output_path` as a PNG at 1:1.

    Args:
        source_path: Path to the loaded source image
        rect: Crop rectangle in source coordinates (from `crop_rectangle`)
        output_path: Destination file; always encoded as PNG
        expected: Size of the image `rect` was computed against; the file on
            disk must still have this size

    Returns:
        Path to saved file (same as output_path)

    Raises:
        ExportFailure: If the source cannot be re-read, changed size since it
            was loaded, or the PNG cannot be written
    """
    try:
        vips = _get_pyvips_module()
    except ImportError as e:
        raise ExportFailure("Image export is not available (pyvips missing).") from e

    with contextlib.suppress(AttributeError):
        vips.cache_set_max(0)

    try:
        image = vips.Image.new_from_file(source_path)
    except vips.Error as e:
        _logger.error("Failed to open source image %s: %s", source_path, e, exc_info=True)
        raise ExportFailure(f"Failed to read the source image:\n{source_path}", {"path": source_path}) from e

    on_disk = (int(image.width), int(image.height))
    if expected is not None and on_disk != (expected.natural_width, expected.natural_height):
        _logger.error(
            "Source %s changed size since it was loaded: %dx%d -> %dx%d",
            source_path,
            expected.natural_width,
            expected.natural_height,
            on_disk[0],
            on_disk[1],
        )
        raise ExportFailure(
            f"The source image changed on disk since it was opened:\n{source_path}",
            {"path": source_path, "loaded_size": (expected.natural_width, expected.natural_height), "current_size": on_disk},
        )

    box = rect.to_pixels(expected or ImageMetadata(natural_width=on_disk[0], natural_height=on_disk[1]))
    if not validate_crop_bounds(image.width, image.height, box):
        _logger.error("Crop bounds %s invalid for image size %dx%d", box, image.width, image.height)
        raise ExportFailure(f"Crop bounds {box} invalid for image size {image.width}x{image.height}")

    _logger.debug("Cropping %s: rect=%s box=%s -> %s", source_path, rect, box, output_path)
    try:
        cropped = image.crop(*box)
        cropped.pngsave(output_path)
    except vips.Error as e:
        _logger.error("Error during crop/write operation for %s -> %s: %s", source_path, output_path, e, exc_info=True)
        raise ExportFailure(f"Failed to save the cropped image:\n{output_path}", {"path": output_path}) from e

    _logger.info("Crop saved: %s (%dx%d)", output_path, box[2], box[3])
    return output_path

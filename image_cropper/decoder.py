"""Input boundary: validate the selected file and decode it with pyvips."""

import contextlib
import mimetypes
import os
from dataclasses import dataclass
from typing import Any

import numpy as np

from image_cropper.errors import FileReadFailure, ImageDecodeFailure, NoFileSelected, UnsupportedFileType
from image_cropper.logger import get_logger
from image_cropper.ops.viewport_transform import ImageMetadata

_logger = get_logger("decoder")

ACCEPTED_MIME_TYPES = ("image/jpeg", "image/png")
RGB_CHANNELS = 3


_ENV_KEYS = ("LIBVIPS_BIN",)


def _load_env_file(env_path: str = ".env") -> None:
    """Pick up libvips location keys from a local `.env`; other keys are ignored."""
    try:
        if not os.path.exists(env_path):
            return
        with open(env_path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                k, v = line.split("=", 1)
                k, v = k.strip(), v.strip()
                if k in _ENV_KEYS and v and k not in os.environ:
                    os.environ[k] = v
    except (OSError, UnicodeError) as e:
        # .env load failure is not critical
        _logger.debug("env load skipped: %s", e)


_load_env_file()
_LIBVIPS_BIN = os.environ.get("LIBVIPS_BIN")
if _LIBVIPS_BIN and os.name == "nt":
    # Best-effort only; decoding will report import errors if any
    with contextlib.suppress(OSError):
        os.add_dll_directory(_LIBVIPS_BIN)


_pyvips: Any | None = None


def _get_pyvips_module() -> Any:
    global _pyvips
    if _pyvips is None:
        import pyvips  # type: ignore

        # Keep libvips' operation cache from growing across loads.
        pyvips.cache_set_max(0)
        pyvips.cache_set_max_mem(0)
        pyvips.cache_set_max_files(0)
        _pyvips = pyvips
    return _pyvips


@dataclass(frozen=True)
class LoadedImage:
    """A decoded source image ready for display."""

    path: str
    metadata: ImageMetadata
    pixels: np.ndarray  # (H, W, 3) uint8 RGB


def guess_mime_type(path: str) -> str | None:
    mime, _ = mimetypes.guess_type(path)
    return mime


def validate_selection(paths: str | list[str] | tuple[str, ...] | None) -> str:
    """Return the single selected path or raise the matching selection error."""
    if paths is None:
        raise NoFileSelected("No file was selected.")
    if isinstance(paths, str):
        paths = [paths] if paths else []
    paths = [p for p in paths if p]
    if not paths:
        raise NoFileSelected("No file was selected.")
    if len(paths) > 1:
        raise UnsupportedFileType("Select exactly one image file.", path=paths[0])

    path = str(paths[0])
    mime = guess_mime_type(path)
    if mime not in ACCEPTED_MIME_TYPES:
        _logger.debug("rejected %s (mime=%s)", path, mime)
        raise UnsupportedFileType("Please choose a JPG, JPEG or PNG image file.", path=path, mime_type=mime)
    return path


def _to_rgb_array(image: Any) -> np.ndarray:
    """Convert a pyvips image into a contiguous (H, W, 3) uint8 array."""
    pyvips = _get_pyvips_module()
    image = image.colourspace("srgb")
    if image.hasalpha():
        image = image.flatten(background=[0, 0, 0])
    if image.bands > RGB_CHANNELS:
        image = image.extract_band(0, n=RGB_CHANNELS)
    elif image.bands < RGB_CHANNELS:
        image = pyvips.Image.bandjoin([image] * RGB_CHANNELS)
    if image.format != "uchar":
        image = image.cast("uchar")

    mem = image.write_to_memory()
    array = np.frombuffer(mem, dtype=np.uint8).reshape(image.height, image.width, image.bands)
    return array.copy()


def load_image(path: str | None) -> LoadedImage:
    """Validate, read and decode one JPEG/PNG file.

    Raises:
        NoFileSelected, UnsupportedFileType: the selection itself is wrong
        FileReadFailure: the file is missing or unreadable
        ImageDecodeFailure: the bytes could not be decoded as an image
    """
    path = validate_selection(path)

    if not os.path.isfile(path) or not os.access(path, os.R_OK):
        raise FileReadFailure(f"Could not read the file:\n{path}", {"path": path})

    try:
        pyvips = _get_pyvips_module()
    except ImportError as e:
        _logger.error("pyvips is not available: %s", e)
        raise ImageDecodeFailure("Image decoding is not available (pyvips missing).", {"path": path}) from e

    try:
        image = pyvips.Image.new_from_file(path, access="sequential")
        metadata = ImageMetadata(natural_width=int(image.width), natural_height=int(image.height))
        pixels = _to_rgb_array(image)
    except pyvips.Error as e:
        _logger.debug("decode failed for %s: %s", path, e)
        raise ImageDecodeFailure(f"Failed to load the image:\n{path}", {"path": path}) from e
    except ValueError as e:
        raise ImageDecodeFailure(f"Failed to load the image:\n{path}", {"path": path}) from e

    _logger.info("loaded %s (%dx%d)", path, metadata.natural_width, metadata.natural_height)
    return LoadedImage(path=path, metadata=metadata, pixels=pixels)

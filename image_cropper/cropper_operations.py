"""Cropper workflow operations.

Bridges the window and the backend for opening an image and exporting the
visible square. Every failure is reported to the user and leaves the current
transform untouched.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from PySide6.QtWidgets import QFileDialog, QMessageBox, QWidget

from image_cropper.crop import export_crop
from image_cropper.decoder import ACCEPTED_MIME_TYPES, load_image
from image_cropper.errors import CropperError, ExportFailure, NoFileSelected, UnsupportedFileType
from image_cropper.logger import get_logger

if TYPE_CHECKING:
    from image_cropper.ui_cropper import CropperWindow

_logger = get_logger("cropper_operations")

OPEN_FILTER = "Images (*.png *.jpg *.jpeg)"
SAVE_FILTER = "PNG Image (*.png)"


def report_error(parent: QWidget | None, error: CropperError) -> None:
    """Log a cropper error and show it in a blocking message box."""
    if isinstance(error, (NoFileSelected, UnsupportedFileType)):
        _logger.warning("%s: %s", error.title, error)
        QMessageBox.warning(parent, error.title, error.message)
    else:
        _logger.error("%s: %s", error.title, error)
        QMessageBox.critical(parent, error.title, error.message)


def open_image_workflow(window: CropperWindow, path: str | None = None) -> bool:
    """Load an image into the window's canvas.

    Args:
        window: Main CropperWindow instance
        path: File to open; asks with a file dialog when omitted

    Returns:
        True if a new image is now displayed
    """
    if path is None:
        path, _ = QFileDialog.getOpenFileName(window, "Open Image", "", OPEN_FILTER)

    try:
        loaded = load_image(path)
        window.canvas.reset(loaded)
    except CropperError as e:
        report_error(window, e)
        return False
    except ValueError as e:
        # Shape/size problems in the decoded buffer.
        report_error(window, UnsupportedFileType(f"Unsupported image data:\n{e}", path=path))
        return False

    window.setWindowTitle(f"Image Cropper - {os.path.basename(loaded.path)}")
    _logger.info("Opened %s (accepted types: %s)", loaded.path, ", ".join(ACCEPTED_MIME_TYPES))
    return True


def png_output_path(path: str) -> str:
    """Give `path` a `.png` suffix; the export is always PNG-encoded."""
    root, ext = os.path.splitext(path)
    if ext.lower() == ".png":
        return path
    if ext:
        _logger.debug("Replacing suffix %s of %s with .png", ext, path)
    return f"{root}.png"


def _default_save_path(window: CropperWindow) -> str:
    filename = window.settings.export_filename
    image = window.canvas.image
    if image is not None:
        return os.path.join(os.path.dirname(image.path), filename)
    return filename


def export_workflow(window: CropperWindow, output_path: str | None = None) -> str | None:
    """Export the visible square of the current image as a PNG.

    Args:
        window: Main CropperWindow instance
        output_path: Destination; asks with a save dialog (pre-filled with the
            default filename) when omitted

    Returns:
        Path of the written file, or None if nothing was written
    """
    image = window.canvas.image
    rect = window.canvas.crop_rectangle()
    if image is None or rect is None:
        report_error(window, NoFileSelected("No image has been loaded."))
        return None

    if output_path is None:
        output_path, _ = QFileDialog.getSaveFileName(window, "Save Cropped Image", _default_save_path(window), SAVE_FILTER)
        if not output_path:
            _logger.debug("Save cancelled by user")
            return None

    output_path = png_output_path(output_path)

    try:
        result_path = export_crop(image.path, rect, output_path, image.metadata)
    except ExportFailure as e:
        report_error(window, e)
        return None

    QMessageBox.information(window, "Crop Saved", f"Cropped image saved successfully to:\n{result_path}")
    return result_path

"""Error types reported to the user by the cropper workflows.

All of them are recoverable: the workflow that raised shows a message box and
the current transform state stays as it was. Only `RenderContextUnavailable`
disables the canvas, since nothing can be drawn without a paint surface.
"""

from __future__ import annotations

from typing import Any


class CropperError(Exception):
    """Base class for user-facing cropper errors."""

    title = "Error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class NoFileSelected(CropperError):
    title = "No Image"


class UnsupportedFileType(CropperError):
    title = "Unsupported File"

    def __init__(self, message: str, path: str | None = None, mime_type: str | None = None):
        details: dict[str, Any] = {}
        if path:
            details["path"] = path
        if mime_type:
            details["mime_type"] = mime_type
        super().__init__(message, details)
        self.path = path
        self.mime_type = mime_type


class FileReadFailure(CropperError):
    title = "Read Failed"


class ImageDecodeFailure(CropperError):
    title = "Decode Failed"


class RenderContextUnavailable(CropperError):
    title = "Rendering Unavailable"


class ExportFailure(CropperError):
    title = "Save Failed"

"""Pytest configuration.

The canvas and window tests use PySide6 widgets. Create a single
`QApplication` for the whole session as early as possible (before collection
imports Qt widget modules) and shut it down cleanly at the end.
"""

from __future__ import annotations

import os
from typing import Any

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

_APP: Any | None = None


def pytest_configure(config) -> None:  # noqa: ARG001
    """Ensure a QApplication exists before collecting/running tests."""

    # Import lazily so non-Qt environments can still import this conftest.
    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    global _APP

    app = QApplication.instance()
    # Keep a strong ref so it isn't GC'd mid-session.
    _APP = QApplication([]) if app is None else app


def pytest_sessionfinish(session, exitstatus) -> None:  # noqa: ARG001
    """Attempt a clean Qt shutdown to avoid lingering threads at interpreter exit."""

    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    app = QApplication.instance()
    if app is None:
        return

    app.quit()
    app.processEvents()


@pytest.fixture
def write_png(tmp_path):
    """Return a helper writing a solid-colour RGB PNG of the given size."""
    pyvips = pytest.importorskip("pyvips")

    def _write(name: str, width: int, height: int, rgb: tuple[int, int, int] = (255, 0, 0)) -> str:
        img = (pyvips.Image.black(width, height, bands=3) + list(rgb)).cast("uchar").copy(interpretation="srgb")
        path = tmp_path / name
        img.write_to_file(str(path))
        return str(path)

    return _write

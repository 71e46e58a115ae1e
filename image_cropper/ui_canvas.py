"""Square viewport widget: paints the transformed image and routes gestures.

Raw Qt mouse/touch/wheel events are reduced to `GestureEvent` values by an
event filter that the canvas installs on itself in `attach()` and removes in
`detach()`; the filter owns no state beyond the drag flag, and the
`GestureAdapter` owns the per-gesture anchors.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import numpy as np
from PySide6.QtCore import QEvent, QObject, QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QEventPoint, QImage, QPainter, QPixmap
from PySide6.QtWidgets import QSizePolicy, QWidget

from image_cropper.app.state.viewport_state import ViewportState
from image_cropper.decoder import RGB_CHANNELS, LoadedImage
from image_cropper.logger import get_logger
from image_cropper.ops import viewport_transform as vt
from image_cropper.ops.gestures import End, GestureAdapter, GestureEvent, Pan, Pinch, Point, Wheel

_logger = get_logger("ui_canvas")

_EXPECTED_NDIM = 3
_PINCH_POINTS = 2


def pixmap_from_array(pixels: np.ndarray) -> QPixmap:
    """Convert an (H, W, 3) uint8 RGB array into a QPixmap."""
    arr = np.ascontiguousarray(pixels)
    if arr.ndim != _EXPECTED_NDIM or arr.shape[2] != RGB_CHANNELS:
        raise ValueError(f"unexpected image array shape: {arr.shape}")
    height, width = arr.shape[0], arr.shape[1]
    # .copy() detaches the QImage from the numpy buffer.
    qimg = QImage(arr.data, width, height, RGB_CHANNELS * width, QImage.Format.Format_RGB888).copy()
    return QPixmap.fromImage(qimg)


def _point_of(pos: QPointF) -> Point:
    return Point(float(pos.x()), float(pos.y()))


class _CanvasGestureFilter(QObject):
    """Translate viewport input events into gesture events for the canvas."""

    def __init__(self, canvas: CropperCanvas):
        super().__init__(canvas)
        self._canvas = canvas
        self._dragging = False

    def eventFilter(self, obj: QObject, event: QEvent) -> bool:  # type: ignore[override]
        et = event.type()
        if et == QEvent.Type.Wheel:
            pos = event.position()  # type: ignore[attr-defined]
            self._canvas.dispatch_gesture(Wheel(_point_of(pos), float(event.angleDelta().y())))  # type: ignore[attr-defined]
            event.accept()
            return True

        if et == QEvent.Type.MouseButtonPress:
            if event.button() != Qt.MouseButton.LeftButton:  # type: ignore[attr-defined]
                return False
            self._dragging = True
            self._canvas.dispatch_gesture(Pan(_point_of(event.position())))  # type: ignore[attr-defined]
            return True
        if et == QEvent.Type.MouseMove:
            if not self._dragging:
                return False
            self._canvas.dispatch_gesture(Pan(_point_of(event.position())))  # type: ignore[attr-defined]
            return True
        if et in (QEvent.Type.MouseButtonRelease, QEvent.Type.Leave):
            if self._dragging:
                self._dragging = False
                self._canvas.dispatch_gesture(End())
            return et == QEvent.Type.MouseButtonRelease

        if et in (QEvent.Type.TouchBegin, QEvent.Type.TouchUpdate):
            points = [
                _point_of(p.position())
                for p in event.points()  # type: ignore[attr-defined]
                if p.state() != QEventPoint.State.Released
            ]
            if len(points) == 1:
                self._canvas.dispatch_gesture(Pan(points[0]))
            elif len(points) == _PINCH_POINTS:
                self._canvas.dispatch_gesture(Pinch(points[0], points[1]))
            event.accept()
            return True
        if et in (QEvent.Type.TouchEnd, QEvent.Type.TouchCancel):
            self._canvas.dispatch_gesture(End())
            event.accept()
            return True
        return False


class CropperCanvas(QWidget):
    """Fixed-size square viewport over one loaded image."""

    renderUnavailable = Signal(str)

    def __init__(self, config: vt.ViewportConfig, parent: QWidget | None = None):
        super().__init__(parent)
        self._config = config
        self._state = ViewportState(self)
        self._adapter = GestureAdapter()
        self._image: LoadedImage | None = None
        self._pixmap: QPixmap | None = None
        self._gesture_filter: _CanvasGestureFilter | None = None
        self._render_failed = False

        self.setFixedSize(config.width, config.height)
        self.setSizePolicy(QSizePolicy.Policy.Fixed, QSizePolicy.Policy.Fixed)
        self.setAttribute(Qt.WidgetAttribute.WA_AcceptTouchEvents, True)
        self.setMouseTracking(False)
        self.setCursor(Qt.CursorShape.OpenHandCursor)
        self.attach()

    # ---- lifetime ----
    def attach(self) -> None:
        if self._gesture_filter is not None:
            return
        self._gesture_filter = _CanvasGestureFilter(self)
        self.installEventFilter(self._gesture_filter)
        _logger.debug("gesture filter attached")

    def detach(self) -> None:
        if self._gesture_filter is None:
            return
        self.removeEventFilter(self._gesture_filter)
        self._gesture_filter.deleteLater()
        self._gesture_filter = None
        self._adapter.reset()
        _logger.debug("gesture filter detached")

    # ---- read access ----
    @property
    def config(self) -> vt.ViewportConfig:
        return self._config

    @property
    def state(self) -> ViewportState:
        return self._state

    @property
    def transform(self) -> vt.TransformState | None:
        return self._state.transform

    @property
    def image(self) -> LoadedImage | None:
        return self._image

    @property
    def render_failed(self) -> bool:
        return self._render_failed

    # ---- engine calls ----
    def reset(self, image: LoadedImage) -> None:
        """Show a newly loaded image, fitted to the viewport."""
        pixmap = pixmap_from_array(image.pixels)
        new = vt.fit_to_viewport(image.metadata, self._config)
        self._adapter.reset()
        self._image = image
        self._pixmap = pixmap
        self._state._apply(new)
        self.update()

    def _update_transform(self, op: Callable[..., vt.TransformState], *args: Any) -> bool:
        cur = self._state.transform
        if cur is None:
            return False
        try:
            new = op(cur, *args)
        except ValueError as e:
            _logger.debug("transform op %s rejected: %s", getattr(op, "__name__", op), e)
            return False
        self._state._apply(new)
        self.update()
        return True

    def pan_to(self, x: float, y: float) -> bool:
        return self._update_transform(vt.pan_to, x, y)

    def pan_by(self, dx: float, dy: float) -> bool:
        return self._update_transform(vt.pan_by, dx, dy)

    def zoom_at(self, x: float, y: float, factor: float) -> bool:
        return self._update_transform(vt.zoom_at, x, y, factor)

    def zoom_at_center(self, factor: float) -> bool:
        return self._update_transform(vt.zoom_at_center, factor)

    def set_slider_value(self, value: float) -> bool:
        return self._update_transform(vt.set_slider_value, value)

    def dispatch_gesture(self, event: GestureEvent) -> bool:
        return self._update_transform(self._adapter.dispatch, event)

    def crop_rectangle(self) -> vt.CropRect | None:
        cur = self._state.transform
        return vt.crop_rectangle(cur) if cur is not None else None

    # ---- painting ----
    def paintEvent(self, event) -> None:  # type: ignore[override]
        if self._render_failed:
            return
        painter = QPainter(self)
        if not painter.isActive():
            self._render_failed = True
            self.setEnabled(False)
            _logger.error("paint surface unavailable for cropper canvas")
            self.renderUnavailable.emit("Could not acquire a drawing surface for the image canvas.")
            return
        try:
            painter.fillRect(self.rect(), QColor(0, 0, 0))
            cur = self._state.transform
            if cur is None or self._pixmap is None:
                return
            painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
            w, h = cur.scaled_size
            painter.drawPixmap(QRectF(cur.offset_x, cur.offset_y, w, h), self._pixmap, QRectF(self._pixmap.rect()))
        finally:
            painter.end()

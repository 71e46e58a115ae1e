from __future__ import annotations

from PySide6.QtCore import Property, QObject, Signal

from image_cropper.ops.viewport_transform import TransformState


class ViewportState(QObject):
    """Observable holder of the current `TransformState`.

    Design:
    - The engine produces immutable `TransformState` values; this object only
      swaps its reference and emits change signals for the widgets.
    - Widgets never write scale/offset/slider directly; they go through the
      engine and hand the result to `_apply`.
    """

    imageLoadedChanged = Signal(bool)
    scaleChanged = Signal(float)
    offsetChanged = Signal(float, float)
    offsetXChanged = Signal(float)
    offsetYChanged = Signal(float)
    sliderValueChanged = Signal(float)
    transformChanged = Signal()

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._transform: TransformState | None = None

    @property
    def transform(self) -> TransformState | None:
        return self._transform

    # ---- read-only properties (mutate via _apply) ----
    def _get_image_loaded(self) -> bool:
        return self._transform is not None

    imageLoaded = Property(bool, _get_image_loaded, notify=imageLoadedChanged)  # type: ignore[arg-type]

    def _get_scale(self) -> float:
        return float(self._transform.scale) if self._transform is not None else 1.0

    scale = Property(float, _get_scale, notify=scaleChanged)  # type: ignore[arg-type]

    def _get_offset_x(self) -> float:
        return float(self._transform.offset_x) if self._transform is not None else 0.0

    offsetX = Property(float, _get_offset_x, notify=offsetXChanged)  # type: ignore[arg-type]

    def _get_offset_y(self) -> float:
        return float(self._transform.offset_y) if self._transform is not None else 0.0

    offsetY = Property(float, _get_offset_y, notify=offsetYChanged)  # type: ignore[arg-type]

    def _get_slider_value(self) -> float:
        return float(self._transform.slider_value) if self._transform is not None else 0.0

    sliderValue = Property(float, _get_slider_value, notify=sliderValueChanged)  # type: ignore[arg-type]

    # ---- internal mutation helpers ----
    def _apply(self, new: TransformState) -> None:
        old = self._transform
        if new is old:
            return
        self._transform = new
        if old is None:
            self.imageLoadedChanged.emit(True)
        if old is None or new.scale != old.scale:
            self.scaleChanged.emit(float(new.scale))
        if old is None or (new.offset_x, new.offset_y) != (old.offset_x, old.offset_y):
            self.offsetChanged.emit(float(new.offset_x), float(new.offset_y))
        if old is None or new.offset_x != old.offset_x:
            self.offsetXChanged.emit(float(new.offset_x))
        if old is None or new.offset_y != old.offset_y:
            self.offsetYChanged.emit(float(new.offset_y))
        if old is None or new.slider_value != old.slider_value:
            self.sliderValueChanged.emit(float(new.slider_value))
        self.transformChanged.emit()

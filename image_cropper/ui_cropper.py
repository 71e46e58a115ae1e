"""Main cropper window: canvas, zoom slider and open/save actions."""

from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QHBoxLayout, QLabel, QMainWindow, QPushButton, QSlider, QVBoxLayout, QWidget

from image_cropper import cropper_operations
from image_cropper.errors import RenderContextUnavailable
from image_cropper.logger import get_logger
from image_cropper.ops.viewport_transform import SLIDER_MAX, SLIDER_MIN
from image_cropper.settings_manager import SettingsManager
from image_cropper.ui_canvas import CropperCanvas

_logger = get_logger("ui_cropper")


class CropperWindow(QMainWindow):
    def __init__(self, settings: SettingsManager, parent: QWidget | None = None):
        super().__init__(parent)
        self.setWindowTitle("Image Cropper")
        self._settings = settings

        self.canvas = CropperCanvas(settings.viewport_config())
        self._setup_ui()

        state = self.canvas.state
        state.sliderValueChanged.connect(self._on_state_slider_changed)
        state.imageLoadedChanged.connect(self._on_image_loaded_changed)
        self.canvas.renderUnavailable.connect(self._on_render_unavailable)
        self._on_image_loaded_changed(False)

    @property
    def settings(self) -> SettingsManager:
        return self._settings

    def _setup_ui(self) -> None:
        central = QWidget()
        layout = QVBoxLayout(central)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(10)

        self.open_btn = QPushButton("Open Image...")
        self.open_btn.clicked.connect(lambda: cropper_operations.open_image_workflow(self))
        layout.addWidget(self.open_btn)

        layout.addWidget(self.canvas, alignment=Qt.AlignmentFlag.AlignHCenter)

        zoom_row = QHBoxLayout()
        zoom_row.addWidget(QLabel("Zoom:"))
        self.zoom_slider = QSlider(Qt.Orientation.Horizontal)
        self.zoom_slider.setRange(int(SLIDER_MIN), int(SLIDER_MAX))
        self.zoom_slider.setValue(0)
        self.zoom_slider.valueChanged.connect(self._on_slider_moved)
        zoom_row.addWidget(self.zoom_slider, stretch=1)
        layout.addLayout(zoom_row)

        self.save_btn = QPushButton("Save Crop...")
        self.save_btn.clicked.connect(lambda: cropper_operations.export_workflow(self))
        layout.addWidget(self.save_btn)

        self.setCentralWidget(central)

    def _on_slider_moved(self, value: int) -> None:
        self.canvas.set_slider_value(float(value))

    def _on_state_slider_changed(self, value: float) -> None:
        # Mirror gesture zoom into the slider without re-entering the engine.
        self.zoom_slider.blockSignals(True)
        try:
            self.zoom_slider.setValue(int(round(value)))
        finally:
            self.zoom_slider.blockSignals(False)

    def _on_image_loaded_changed(self, loaded: bool) -> None:
        self.zoom_slider.setEnabled(bool(loaded) and not self.canvas.render_failed)
        self.save_btn.setEnabled(bool(loaded) and not self.canvas.render_failed)

    def _on_render_unavailable(self, message: str) -> None:
        self.open_btn.setEnabled(False)
        self.zoom_slider.setEnabled(False)
        self.save_btn.setEnabled(False)
        cropper_operations.report_error(self, RenderContextUnavailable(message))

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self.canvas.detach()
        _logger.debug("cropper window closed")
        super().closeEvent(event)

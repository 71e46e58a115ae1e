"""Viewport transform engine.

Holds the pan/zoom state of one loaded image inside the square viewport and
the pure functions that move it. Every function takes a `TransformState` and
returns a new one; callers swap their reference only after a call succeeds,
so a failing operation never leaves a half-updated state behind.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from image_cropper.logger import get_logger

_logger = get_logger("transform")

SLIDER_MIN = 0.0
SLIDER_MAX = 100.0

_PIXEL_SNAP = 1e-6


@dataclass(frozen=True, slots=True)
class ViewportConfig:
    """Fixed per-session viewport settings."""

    width: int = 400
    height: int = 400
    max_zoom: float = 3.0
    zoom_speed: float = 0.1

    def __post_init__(self) -> None:
        if int(self.width) <= 0 or int(self.height) <= 0:
            raise ValueError(f"viewport size must be positive, got {self.width}x{self.height}")
        if not self.max_zoom > 1.0:
            raise ValueError(f"max_zoom must be > 1, got {self.max_zoom}")
        if not 0.0 < self.zoom_speed < 1.0:
            raise ValueError(f"zoom_speed must be in (0, 1), got {self.zoom_speed}")

    @property
    def center(self) -> tuple[float, float]:
        return self.width / 2.0, self.height / 2.0


@dataclass(frozen=True, slots=True)
class ImageMetadata:
    """Source pixel dimensions of the loaded image."""

    natural_width: int
    natural_height: int

    def __post_init__(self) -> None:
        if int(self.natural_width) <= 0 or int(self.natural_height) <= 0:
            raise ValueError(f"image size must be positive, got {self.natural_width}x{self.natural_height}")

    @property
    def aspect(self) -> float:
        return self.natural_width / self.natural_height


@dataclass(frozen=True, slots=True)
class CropRect:
    """Visible square region in source-image coordinates."""

    x: float
    y: float
    side: float

    def to_pixels(self, image: ImageMetadata) -> tuple[int, int, int, int]:
        """Snap to an integer (left, top, width, height) box inside `image`.

        The side is truncated the way a raster surface truncates its
        dimensions (ignoring float noise just below an integer); left/top are
        rounded and then pulled back inside the image.
        """
        side = max(1, int(self.side + _PIXEL_SNAP))
        side = min(side, image.natural_width, image.natural_height)
        left = min(max(0, int(round(self.x))), image.natural_width - side)
        top = min(max(0, int(round(self.y))), image.natural_height - side)
        return left, top, side, side


@dataclass(frozen=True, slots=True)
class TransformState:
    """Scale and image-origin offset of the image inside the viewport.

    `offset_x`/`offset_y` are the viewport coordinates of the scaled image's
    top-left corner; they are never positive while the image covers the
    viewport.
    """

    config: ViewportConfig
    image: ImageMetadata
    scale: float
    offset_x: float
    offset_y: float
    baseline_scale: float
    slider_value: float = 0.0

    @property
    def max_scale(self) -> float:
        return self.baseline_scale * self.config.max_zoom

    @property
    def relative_zoom(self) -> float:
        """Current zoom relative to the fitted baseline (1.0 .. max_zoom)."""
        return self.scale / self.baseline_scale

    @property
    def scaled_size(self) -> tuple[float, float]:
        return self.image.natural_width * self.scale, self.image.natural_height * self.scale


def zoom_from_slider(value: float, max_zoom: float) -> float:
    return 1.0 + (float(value) / 100.0) * (max_zoom - 1.0)


def slider_from_zoom(zoom: float, max_zoom: float) -> float:
    return 100.0 * (float(zoom) - 1.0) / (max_zoom - 1.0)


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def _slider_for(scale: float, baseline_scale: float, max_zoom: float) -> float:
    return _clamp(slider_from_zoom(scale / baseline_scale, max_zoom), SLIDER_MIN, SLIDER_MAX)


def fit_to_viewport(image: ImageMetadata, config: ViewportConfig) -> TransformState:
    """Return the initial state for a freshly loaded image.

    The image fills the viewport on its relatively shorter axis and is
    centered on the other one, so it covers the viewport with no gaps.
    """
    viewport_aspect = config.width / config.height
    if image.aspect > viewport_aspect:
        scale = config.height / image.natural_height
        offset_x = (config.width - image.natural_width * scale) / 2.0
        offset_y = 0.0
    else:
        scale = config.width / image.natural_width
        offset_x = 0.0
        offset_y = (config.height - image.natural_height * scale) / 2.0

    _logger.debug(
        "fit %dx%d into %dx%d: scale=%.6f offset=(%.3f, %.3f)",
        image.natural_width,
        image.natural_height,
        config.width,
        config.height,
        scale,
        offset_x,
        offset_y,
    )
    return TransformState(
        config=config,
        image=image,
        scale=scale,
        offset_x=offset_x,
        offset_y=offset_y,
        baseline_scale=scale,
        slider_value=0.0,
    )


def clamp_position(state: TransformState, x: float, y: float, scale: float | None = None) -> tuple[float, float]:
    """Clamp an image origin so the scaled image still covers the viewport."""
    s = state.scale if scale is None else float(scale)
    min_x = state.config.width - state.image.natural_width * s
    min_y = state.config.height - state.image.natural_height * s
    return min(0.0, max(float(x), min_x)), min(0.0, max(float(y), min_y))


def pan_to(state: TransformState, x: float, y: float) -> TransformState:
    nx, ny = clamp_position(state, x, y)
    return replace(state, offset_x=nx, offset_y=ny)


def pan_by(state: TransformState, dx: float, dy: float) -> TransformState:
    return pan_to(state, state.offset_x + float(dx), state.offset_y + float(dy))


def zoom_at(state: TransformState, x: float, y: float, factor: float) -> TransformState:
    """Zoom by `factor` keeping the viewport point (x, y) fixed on screen.

    A factor that would leave the [baseline, baseline * max_zoom] range is
    re-derived so the scale lands exactly on the bound.
    """
    factor = float(factor)
    if not math.isfinite(factor) or factor <= 0:
        raise ValueError(f"zoom factor must be a positive finite number, got {factor}")

    scale = state.scale * factor
    if scale < state.baseline_scale:
        scale = state.baseline_scale
        factor = scale / state.scale
    elif scale > state.max_scale:
        scale = state.max_scale
        factor = scale / state.scale

    # Anchor relative to the image origin, before scaling.
    rel_x = x - state.offset_x
    rel_y = y - state.offset_y

    offset_x, offset_y = clamp_position(state, x - rel_x * factor, y - rel_y * factor, scale)
    _logger.debug("zoom at (%.1f, %.1f) factor=%.4f -> scale=%.6f", x, y, factor, scale)
    return replace(
        state,
        scale=scale,
        offset_x=offset_x,
        offset_y=offset_y,
        slider_value=_slider_for(scale, state.baseline_scale, state.config.max_zoom),
    )


def zoom_at_center(state: TransformState, factor: float) -> TransformState:
    cx, cy = state.config.center
    return zoom_at(state, cx, cy, factor)


def set_slider_value(state: TransformState, value: float) -> TransformState:
    """Zoom around the viewport center to the level the slider position maps to."""
    v = _clamp(float(value), SLIDER_MIN, SLIDER_MAX)
    factor = zoom_from_slider(v, state.config.max_zoom) / state.relative_zoom
    return zoom_at_center(state, factor)


def wheel_zoom_factor(config: ViewportConfig, angle_delta: float) -> float:
    """Per-notch zoom factor; positive deltas (wheel forward) zoom in."""
    if angle_delta > 0:
        return 1.0 + config.zoom_speed
    if angle_delta < 0:
        return 1.0 - config.zoom_speed
    return 1.0


def crop_rectangle(state: TransformState) -> CropRect:
    """Map the whole viewport back to source-image coordinates."""
    return CropRect(
        x=-state.offset_x / state.scale,
        y=-state.offset_y / state.scale,
        side=state.config.width / state.scale,
    )

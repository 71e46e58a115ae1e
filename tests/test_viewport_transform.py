from __future__ import annotations

import math
import random

import pytest

from image_cropper.ops.viewport_transform import (
    CropRect,
    ImageMetadata,
    TransformState,
    ViewportConfig,
    clamp_position,
    crop_rectangle,
    fit_to_viewport,
    pan_by,
    pan_to,
    set_slider_value,
    slider_from_zoom,
    wheel_zoom_factor,
    zoom_at,
    zoom_at_center,
    zoom_from_slider,
)

EPS = 1e-9

CONFIG = ViewportConfig(width=400, height=400, max_zoom=3.0, zoom_speed=0.1)


def _fit(w: int, h: int) -> TransformState:
    return fit_to_viewport(ImageMetadata(w, h), CONFIG)


def assert_invariants(state: TransformState) -> None:
    cfg, img = state.config, state.image
    assert state.baseline_scale - EPS <= state.scale <= state.baseline_scale * cfg.max_zoom + EPS
    assert state.offset_x <= EPS
    assert state.offset_y <= EPS
    assert state.offset_x >= cfg.width - img.natural_width * state.scale - 1e-6
    assert state.offset_y >= cfg.height - img.natural_height * state.scale - 1e-6
    expected = 100.0 * (state.scale / state.baseline_scale - 1.0) / (cfg.max_zoom - 1.0)
    assert state.slider_value == pytest.approx(min(100.0, max(0.0, expected)), abs=1e-6)


def test_fit_wide_image_fills_height_and_centers_horizontally() -> None:
    state = _fit(800, 400)

    assert state.scale == 1.0
    assert state.baseline_scale == 1.0
    assert state.offset_x == -200.0
    assert state.offset_y == 0.0
    assert state.slider_value == 0.0
    assert_invariants(state)


def test_fit_tall_image_fills_width_and_centers_vertically() -> None:
    state = _fit(300, 600)

    assert state.scale == pytest.approx(400 / 300)
    assert state.offset_x == 0.0
    assert state.offset_y == pytest.approx(-200.0)
    assert_invariants(state)


def test_fit_square_image_touches_all_edges() -> None:
    state = _fit(1000, 1000)

    assert state.scale == pytest.approx(0.4)
    assert (state.offset_x, state.offset_y) == (0.0, 0.0)


def test_zoom_at_center_point_of_wide_image() -> None:
    state = zoom_at(_fit(800, 400), 200, 200, 2.0)

    assert state.scale == 2.0
    assert state.offset_x == -600.0
    assert state.offset_y == -200.0
    assert state.slider_value == pytest.approx(50.0)
    assert_invariants(state)


def test_zoom_keeps_source_point_under_anchor() -> None:
    before = _fit(800, 400)
    px, py = 100.0, 150.0
    src_before = ((px - before.offset_x) / before.scale, (py - before.offset_y) / before.scale)

    after = zoom_at(before, px, py, 1.5)
    src_after = ((px - after.offset_x) / after.scale, (py - after.offset_y) / after.scale)

    assert src_after[0] == pytest.approx(src_before[0])
    assert src_after[1] == pytest.approx(src_before[1])


def test_zoom_out_stops_exactly_at_baseline() -> None:
    state = zoom_at_center(_fit(640, 480), 2.5)
    for _ in range(50):
        state = zoom_at_center(state, 1 - CONFIG.zoom_speed)
        assert state.scale >= state.baseline_scale
    assert state.scale == state.baseline_scale
    assert state.slider_value == 0.0


def test_zoom_in_stops_exactly_at_ceiling() -> None:
    state = _fit(640, 480)
    for _ in range(50):
        state = zoom_at(state, 37, 211, 1 + CONFIG.zoom_speed)
        assert state.scale <= state.max_scale
    assert state.scale == state.baseline_scale * CONFIG.max_zoom
    assert state.slider_value == pytest.approx(100.0)


def test_single_large_factor_lands_on_bound() -> None:
    state = _fit(800, 400)

    assert zoom_at(state, 0, 0, 100.0).scale == state.max_scale
    assert zoom_at(state, 0, 0, 0.001).scale == state.baseline_scale


@pytest.mark.parametrize("factor", [0.0, -1.0, math.nan, math.inf])
def test_zoom_rejects_invalid_factor(factor: float) -> None:
    with pytest.raises(ValueError):
        zoom_at(_fit(800, 400), 200, 200, factor)


def test_zoom_near_edge_is_clamped_to_cover_viewport() -> None:
    # Zooming out from a corner would expose the background without the clamp.
    state = zoom_at(_fit(800, 400), 0, 0, 3.0)
    state = pan_to(state, -2000, -2000)
    state = zoom_at(state, 0, 0, 0.5)

    assert_invariants(state)
    assert state.offset_x == pytest.approx(400 - 800 * state.scale)


def test_clamp_position_is_idempotent() -> None:
    state = zoom_at_center(_fit(800, 400), 2.0)
    once = clamp_position(state, 123.0, -5000.0)
    twice = clamp_position(state, *once)

    assert once == (0.0, 400 - 400 * 2.0)
    assert twice == once


def test_pan_translates_without_scaling() -> None:
    state = _fit(800, 400)

    moved = pan_by(state, 50, 30)

    assert moved.scale == state.scale
    assert moved.offset_x == -150.0
    # Height exactly fills the viewport, so vertical panning is pinned.
    assert moved.offset_y == 0.0
    assert pan_by(moved, 500, 0).offset_x == 0.0
    assert pan_by(moved, -5000, 0).offset_x == -400.0


def test_slider_mapping_round_trip() -> None:
    for v in range(0, 101):
        assert slider_from_zoom(zoom_from_slider(v, 3.0), 3.0) == pytest.approx(v)
    assert zoom_from_slider(0, 3.0) == 1.0
    assert zoom_from_slider(100, 3.0) == 3.0


def test_set_slider_value_reads_back() -> None:
    state = _fit(800, 400)
    for v in (0, 12.5, 50, 73, 100, 40, 0):
        state = set_slider_value(state, v)
        assert state.slider_value == pytest.approx(v)
        assert_invariants(state)


def test_set_slider_value_zooms_around_center() -> None:
    state = set_slider_value(_fit(800, 400), 50)

    assert state.scale == pytest.approx(2.0)
    assert state.offset_x == pytest.approx(-600.0)
    assert state.offset_y == pytest.approx(-200.0)


def test_set_slider_value_clamps_out_of_range_input() -> None:
    state = _fit(800, 400)

    assert set_slider_value(state, 150).scale == pytest.approx(3.0)
    assert set_slider_value(state, -10).scale == pytest.approx(1.0)


def test_wheel_zoom_factor_direction() -> None:
    assert wheel_zoom_factor(CONFIG, 120) == pytest.approx(1.1)
    assert wheel_zoom_factor(CONFIG, -120) == pytest.approx(0.9)
    assert wheel_zoom_factor(CONFIG, 0) == 1.0


def test_crop_rectangle_after_zoom() -> None:
    rect = crop_rectangle(zoom_at(_fit(800, 400), 200, 200, 2.0))

    assert rect == CropRect(x=300.0, y=100.0, side=200.0)


def test_crop_rectangle_of_fitted_image_is_centered_square() -> None:
    rect = crop_rectangle(_fit(800, 400))

    assert rect == CropRect(x=200.0, y=0.0, side=400.0)


def test_crop_rect_to_pixels_stays_inside_image() -> None:
    img = ImageMetadata(800, 400)

    assert CropRect(300.4, 99.6, 200.9).to_pixels(img) == (300, 100, 200, 200)
    assert CropRect(599.7, 0.0, 200.5).to_pixels(img) == (600, 0, 200, 200)
    assert CropRect(0.0, 0.0, 0.4).to_pixels(img) == (0, 0, 1, 1)


def test_random_operation_sequences_preserve_invariants() -> None:
    rng = random.Random(20241019)
    for w, h in ((800, 400), (300, 600), (1234, 987), (401, 4000), (50, 50)):
        state = _fit(w, h)
        assert_invariants(state)
        for _ in range(300):
            op = rng.randrange(5)
            if op == 0:
                state = pan_by(state, rng.uniform(-300, 300), rng.uniform(-300, 300))
            elif op == 1:
                state = zoom_at(state, rng.uniform(0, 400), rng.uniform(0, 400), rng.uniform(0.5, 2.0))
            elif op == 2:
                state = set_slider_value(state, rng.uniform(-20, 120))
            elif op == 3:
                state = zoom_at_center(state, rng.uniform(0.8, 1.25))
            else:
                state = pan_to(state, rng.uniform(-5000, 100), rng.uniform(-5000, 100))
            assert_invariants(state)

            rect = crop_rectangle(state)
            assert rect.x >= -1e-6
            assert rect.y >= -1e-6
            assert rect.x + rect.side <= w + 1e-6
            assert rect.y + rect.side <= h + 1e-6


def test_operations_return_new_state_and_leave_input_untouched() -> None:
    state = _fit(800, 400)
    snapshot = (state.scale, state.offset_x, state.offset_y, state.slider_value)

    zoom_at(state, 10, 10, 2.0)
    pan_by(state, -40, 0)
    set_slider_value(state, 80)

    assert (state.scale, state.offset_x, state.offset_y, state.slider_value) == snapshot


@pytest.mark.parametrize(
    "kwargs",
    [
        {"width": 0},
        {"height": -1},
        {"max_zoom": 1.0},
        {"zoom_speed": 0.0},
        {"zoom_speed": 1.0},
    ],
)
def test_viewport_config_rejects_invalid_values(kwargs) -> None:
    with pytest.raises(ValueError):
        ViewportConfig(**kwargs)


def test_image_metadata_rejects_empty_image() -> None:
    with pytest.raises(ValueError):
        ImageMetadata(0, 10)

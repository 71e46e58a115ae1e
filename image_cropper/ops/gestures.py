"""Gesture events and the adapter that turns them into engine calls.

Qt-side handlers reduce raw mouse, touch and wheel events to one of the
`GestureEvent` variants below; `GestureAdapter.dispatch` owns the transient
per-gesture anchors (drag start, previous pinch distance) and returns the next
`TransformState`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import NamedTuple, Union

from image_cropper.logger import get_logger

from .viewport_transform import TransformState, pan_to, wheel_zoom_factor, zoom_at

_logger = get_logger("gestures")


class Point(NamedTuple):
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class Pan:
    """One active pointer (mouse drag or single touch)."""

    point: Point


@dataclass(frozen=True, slots=True)
class Pinch:
    """Two active touch points."""

    point_a: Point
    point_b: Point

    @property
    def distance(self) -> float:
        return math.hypot(self.point_a.x - self.point_b.x, self.point_a.y - self.point_b.y)

    @property
    def midpoint(self) -> Point:
        return Point((self.point_a.x + self.point_b.x) / 2.0, (self.point_a.y + self.point_b.y) / 2.0)


@dataclass(frozen=True, slots=True)
class Wheel:
    point: Point
    angle_delta: float


@dataclass(frozen=True, slots=True)
class End:
    """All pointers released (or left the viewport)."""


GestureEvent = Union[Pan, Pinch, Wheel, End]


class GestureAdapter:
    """Translate a stream of gesture events into transform updates."""

    def __init__(self) -> None:
        self._pan_anchor: Point | None = None
        self._pan_anchor_offset: tuple[float, float] = (0.0, 0.0)
        self._pinch_distance: float = 0.0

    def reset(self) -> None:
        self._pan_anchor = None
        self._pan_anchor_offset = (0.0, 0.0)
        self._pinch_distance = 0.0

    def dispatch(self, state: TransformState, event: GestureEvent) -> TransformState:
        if isinstance(event, Pan):
            return self._on_pan(state, event)
        if isinstance(event, Pinch):
            return self._on_pinch(state, event)
        if isinstance(event, Wheel):
            factor = wheel_zoom_factor(state.config, event.angle_delta)
            if factor == 1.0:
                return state
            return zoom_at(state, event.point.x, event.point.y, factor)
        if isinstance(event, End):
            self.reset()
            return state
        raise TypeError(f"unknown gesture event: {event!r}")

    def _on_pan(self, state: TransformState, event: Pan) -> TransformState:
        # A pinch that drops to one finger starts a fresh drag.
        self._pinch_distance = 0.0
        if self._pan_anchor is None:
            self._pan_anchor = event.point
            self._pan_anchor_offset = (state.offset_x, state.offset_y)
            _logger.debug("pan start at %s offset=%s", tuple(event.point), self._pan_anchor_offset)
            return state
        x = event.point.x - self._pan_anchor.x + self._pan_anchor_offset[0]
        y = event.point.y - self._pan_anchor.y + self._pan_anchor_offset[1]
        return pan_to(state, x, y)

    def _on_pinch(self, state: TransformState, event: Pinch) -> TransformState:
        self._pan_anchor = None
        distance = event.distance
        previous = self._pinch_distance
        self._pinch_distance = distance
        if previous <= 0 or distance <= 0:
            _logger.debug("pinch start distance=%.2f", distance)
            return state
        center = event.midpoint
        return zoom_at(state, center.x, center.y, distance / previous)

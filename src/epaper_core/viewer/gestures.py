"""Touch sequence classification: pinch, double tap and horizontal swipe."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from .geometry import distance, midpoint

Point = tuple[float, float]


class GestureKind(str, Enum):
    NONE = "none"
    PINCH_START = "pinch_start"
    PINCH = "pinch"
    DOUBLE_TAP = "double_tap"
    SWIPE_NEXT = "swipe_next"
    SWIPE_PREV = "swipe_prev"


@dataclass(frozen=True)
class Gesture:
    kind: GestureKind = GestureKind.NONE
    x: float = 0.0
    y: float = 0.0
    scale: float = 1.0


NO_GESTURE = Gesture()


@dataclass
class GestureTracker:
    """Classifies one touch sequence at a time.

    A pinch seen anywhere in a sequence suppresses the double tap and swipe
    that its final touch-end would otherwise produce.
    """

    double_tap_delay_ms: float = 300
    swipe_min_distance: float = 50
    swipe_max_vertical_deviation: float = 75

    def __post_init__(self):
        self.start: Point = (0.0, 0.0)
        self.pinch_start_distance = 0.0
        self.pinching = False
        self.pinched_this_sequence = False
        self.last_tap_ms: float | None = None

    def reset(self) -> None:
        """Drop the in-progress sequence (crop mode, resize)."""
        self.pinching = False
        self.pinched_this_sequence = False
        self.pinch_start_distance = 0.0

    def touch_start(self, points: Sequence[Point]) -> Gesture:
        if len(points) == 1:
            self.start = points[0]
            return NO_GESTURE
        if len(points) >= 2:
            self.pinching = True
            self.pinched_this_sequence = True
            self.pinch_start_distance = distance(points[0], points[1])
            mx, my = midpoint(points[0], points[1])
            return Gesture(GestureKind.PINCH_START, mx, my)
        return NO_GESTURE

    def touch_move(self, points: Sequence[Point]) -> Gesture:
        if not self.pinching or len(points) < 2:
            return NO_GESTURE
        self.pinched_this_sequence = True
        current = distance(points[0], points[1])
        mx, my = midpoint(points[0], points[1])
        if self.pinch_start_distance == 0:
            self.pinch_start_distance = current
            return Gesture(GestureKind.PINCH_START, mx, my)
        return Gesture(GestureKind.PINCH, mx, my, current / self.pinch_start_distance)

    def touch_end(
        self, point: Point, timestamp_ms: float, swipe_allowed: bool = True, remaining: int = 0
    ) -> Gesture:
        """Classify the end of a sequence at `point`.

        `swipe_allowed` is False while the page is zoomed above fit-to-width.
        `remaining` is the number of fingers still down; the sequence only
        ends when it reaches zero.
        """
        self.pinching = False
        if remaining > 0:
            return NO_GESTURE
        if self.pinched_this_sequence:
            self.pinched_this_sequence = False
            return NO_GESTURE

        dx = point[0] - self.start[0]
        dy = point[1] - self.start[1]

        if abs(dx) < self.swipe_min_distance and abs(dy) < self.swipe_min_distance:
            previous = self.last_tap_ms
            if previous is not None and 0 < timestamp_ms - previous < self.double_tap_delay_ms:
                self.last_tap_ms = None
                return Gesture(GestureKind.DOUBLE_TAP, point[0], point[1])
            self.last_tap_ms = timestamp_ms
            return NO_GESTURE

        self.last_tap_ms = None
        if swipe_allowed and abs(dx) > self.swipe_min_distance and abs(dy) < self.swipe_max_vertical_deviation:
            kind = GestureKind.SWIPE_NEXT if dx < 0 else GestureKind.SWIPE_PREV
            return Gesture(kind, point[0], point[1])
        return NO_GESTURE

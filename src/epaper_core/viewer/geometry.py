"""Pure zoom and scroll arithmetic shared by the session and the browser script.

Zoom is expressed relative to the image's natural pixel size (1.0 = natural).
Scroll offsets are the viewport origin in rendered-content pixels; a negative
offset means the content is narrower than the viewport and centered in it.
"""

from __future__ import annotations

import math


def baseline_zoom(viewport_width: float, natural_width: float) -> float:
    """Zoom at which the image width exactly fills the viewport width."""
    if natural_width <= 0 or viewport_width <= 0:
        return 1.0
    return viewport_width / natural_width


def upper_zoom(baseline: float, max_zoom: float) -> float:
    """Upper zoom bound; never below the fit-to-width baseline."""
    return max(max_zoom, baseline)


def clamp_zoom(zoom: float, baseline: float, max_zoom: float) -> float:
    """Clamp a zoom level into `[baseline, max(max_zoom, baseline)]`."""
    if math.isnan(zoom):
        return baseline
    return min(max(zoom, baseline), upper_zoom(baseline, max_zoom))


def clamp_scroll(offset: float, content: float, viewport: float) -> float:
    """Clamp one scroll axis.

    Content no larger than the viewport is centered (the returned offset is
    `(content - viewport) / 2`, zero or negative); larger content can be
    scrolled between its two edges only.
    """
    if content <= viewport:
        return (content - viewport) / 2
    return max(0.0, min(offset, content - viewport))


def anchored_scroll(anchor: float, scroll: float, old_zoom: float, new_zoom: float) -> float:
    """Scroll offset that keeps the image point under `anchor` fixed across a zoom change.

    `anchor` is a viewport-relative coordinate (pinch midpoint, viewport center).
    """
    if old_zoom <= 0:
        return scroll
    image_point = (anchor + scroll) / old_zoom
    return image_point * new_zoom - anchor


def centered_scroll(anchor: float, scroll: float, old_zoom: float, new_zoom: float, viewport: float) -> float:
    """Scroll offset that brings the image point under `anchor` to the viewport center."""
    if old_zoom <= 0:
        return scroll
    image_point = (anchor + scroll) / old_zoom
    return image_point * new_zoom - viewport / 2


def distance(a: tuple[float, float], b: tuple[float, float]) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def midpoint(a: tuple[float, float], b: tuple[float, float]) -> tuple[float, float]:
    return (a[0] + b[0]) / 2, (a[1] + b[1]) / 2

"""Authoritative viewer state machine.

One `ViewerSession` per page load. The session owns the page index, zoom,
scroll offsets and crop sub-state; the UI layer only reflects `snapshot()`
and plays back queued notices and feedback cues.

States: LOADING -> READY <-> CROPPING. READY is re-entered at fit-to-width
whenever the page changes, the viewport resizes or fullscreen toggles.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..logger import get_logger
from . import geometry
from .gestures import GestureKind, GestureTracker, Point
from .notices import DEFAULT_NOTICE_MS, Notice, Tone

logger = get_logger(__name__)

MESSAGES = {
    "first_page": "Already on the first page.",
    "last_page": "Already on the last page.",
    "page_label": "Page {page} / {total}",
    "max_zoom": "Maximum zoom level reached.",
    "zoom_reset": "Zoom reset to fit width.",
    "zoom_tap": "Zoomed in to tapped area.",
    "crop_canceled": "Cropping canceled.",
    "crop_escape": "Cropping canceled by Escape key.",
    "crop_inactive": "Cropper not active for download.",
    "no_pages": "No edition found for selected date ({date}).",
}

PAGE_NOTICE_MS = 1000


class Mode(str, Enum):
    LOADING = "loading"
    READY = "ready"
    CROPPING = "cropping"


class Control(str, Enum):
    PREV = "prev"
    NEXT = "next"
    ZOOM_IN = "zoom_in"
    ZOOM_OUT = "zoom_out"
    RESET_ZOOM = "reset_zoom"
    FULLSCREEN = "fullscreen"
    DATE_PICKER = "date_picker"
    PDF_DOWNLOAD = "pdf_download"
    TOGGLE_CROP = "toggle_crop"
    SHARE = "share"
    CROP_DOWNLOAD = "crop_download"
    CROP_SHARE = "crop_share"
    CROP_CANCEL = "crop_cancel"


PAGE_CONTROLS = frozenset(
    {Control.PREV, Control.NEXT, Control.ZOOM_IN, Control.ZOOM_OUT, Control.RESET_ZOOM, Control.TOGGLE_CROP}
)
CROP_LOCKED_CONTROLS = frozenset(
    {
        Control.PREV,
        Control.NEXT,
        Control.ZOOM_IN,
        Control.ZOOM_OUT,
        Control.RESET_ZOOM,
        Control.FULLSCREEN,
        Control.DATE_PICKER,
        Control.PDF_DOWNLOAD,
    }
)
CROP_TOOLBAR = frozenset({Control.CROP_DOWNLOAD, Control.CROP_SHARE, Control.CROP_CANCEL})


@dataclass(frozen=True)
class ViewerSettings:
    """Tunables of the viewer, read from the `viewer.*` config group."""

    max_zoom: float = 4.0
    zoom_step: float = 1.2
    double_tap_zoom: float = 0.4
    double_tap_delay_ms: float = 300
    swipe_min_distance: float = 50
    swipe_max_vertical_deviation: float = 75
    zoom_epsilon: float = 0.01
    crop_auto_area: float = 0.8
    vibrate_ms: int = 50
    notice_ms: int = DEFAULT_NOTICE_MS

    @classmethod
    def from_config(cls, config=None) -> ViewerSettings:
        if config is None:
            from ..config_manager import get_config_manager

            config = get_config_manager()
        defaults = cls()
        return cls(
            max_zoom=float(config.get_setting("viewer.max_zoom", defaults.max_zoom)),
            zoom_step=float(config.get_setting("viewer.zoom_step", defaults.zoom_step)),
            double_tap_zoom=float(config.get_setting("viewer.double_tap_zoom", defaults.double_tap_zoom)),
            double_tap_delay_ms=float(config.get_setting("viewer.double_tap_delay_ms", defaults.double_tap_delay_ms)),
            swipe_min_distance=float(config.get_setting("viewer.swipe_min_distance", defaults.swipe_min_distance)),
            swipe_max_vertical_deviation=float(
                config.get_setting("viewer.swipe_max_vertical_deviation", defaults.swipe_max_vertical_deviation)
            ),
            zoom_epsilon=float(config.get_setting("viewer.zoom_epsilon", defaults.zoom_epsilon)),
            crop_auto_area=float(config.get_setting("viewer.crop_auto_area", defaults.crop_auto_area)),
            notice_ms=int(config.get_setting("ui.toast_duration", defaults.notice_ms)),
        )

    def to_client(self) -> dict[str, Any]:
        """Constants shipped to the browser script in the JSON boundary."""
        return {
            "maxZoom": self.max_zoom,
            "zoomStep": self.zoom_step,
            "doubleTapZoom": self.double_tap_zoom,
            "doubleTapDelayMs": self.double_tap_delay_ms,
            "swipeMinDistance": self.swipe_min_distance,
            "swipeMaxVerticalDeviation": self.swipe_max_vertical_deviation,
            "zoomEpsilon": self.zoom_epsilon,
            "cropAutoArea": self.crop_auto_area,
            "vibrateMs": self.vibrate_ms,
            "noticeMs": self.notice_ms,
            "pageNoticeMs": PAGE_NOTICE_MS,
        }


@dataclass(frozen=True)
class CropRegion:
    """Crop rectangle in natural image pixels."""

    x: int
    y: int
    width: int
    height: int

    def clamped(self, natural_width: int, natural_height: int) -> CropRegion:
        """Clamp the rectangle inside `natural_width` x `natural_height` (at least 1x1)."""
        x = min(max(0, int(round(self.x))), max(0, natural_width - 1))
        y = min(max(0, int(round(self.y))), max(0, natural_height - 1))
        width = min(max(1, int(round(self.width))), natural_width - x)
        height = min(max(1, int(round(self.height))), natural_height - y)
        return CropRegion(x, y, max(1, width), max(1, height))

    def as_box(self) -> tuple[int, int, int, int]:
        """Pillow crop box `(left, upper, right, lower)`."""
        return self.x, self.y, self.x + self.width, self.y + self.height


@dataclass(frozen=True)
class FeedbackCue:
    """Page-turn feedback the UI plays when it can (sound and vibration)."""

    direction: str
    sound: bool = True
    vibrate_ms: int = 50


@dataclass(frozen=True)
class ViewModel:
    """Everything the UI needs to render the viewer regions."""

    mode: Mode
    page_index: int
    page_count: int
    page_label: str
    current_image: str | None
    active_thumbnail: int | None
    zoom: float
    baseline_zoom: float
    image_width: float
    image_height: float
    scroll_x: float
    scroll_y: float
    controls: dict[Control, bool]
    crop_toolbar_visible: bool
    crop_region: CropRegion | None
    empty_message: str = ""

    def enabled(self, control: Control) -> bool:
        return self.controls.get(control, False)


@dataclass
class ViewerSession:
    """Client viewer state for one edition's page images."""

    images: Sequence[str]
    viewport_width: float = 0.0
    viewport_height: float = 0.0
    settings: ViewerSettings = field(default_factory=ViewerSettings)
    selected_date: str = ""

    def __post_init__(self):
        self.images = list(self.images)
        self.page_index = 0
        self.mode = Mode.LOADING
        self.zoom = 1.0
        self.scroll_x = 0.0
        self.scroll_y = 0.0
        self.crop_region: CropRegion | None = None
        self._natural: dict[int, tuple[int, int]] = {}
        self._pinch_zoom_start = 1.0
        self._notices: list[Notice] = []
        self._cues: list[FeedbackCue] = []
        self.gestures = GestureTracker(
            double_tap_delay_ms=self.settings.double_tap_delay_ms,
            swipe_min_distance=self.settings.swipe_min_distance,
            swipe_max_vertical_deviation=self.settings.swipe_max_vertical_deviation,
        )
        if not self.images:
            # Disabled Ready: nothing to load, every page control inert.
            self.mode = Mode.READY

    # --- Derived values ---

    @property
    def page_count(self) -> int:
        return len(self.images)

    @property
    def is_empty(self) -> bool:
        return not self.images

    @property
    def natural_size(self) -> tuple[int, int] | None:
        return self._natural.get(self.page_index)

    @property
    def baseline(self) -> float:
        size = self.natural_size
        if size is None:
            return 1.0
        return geometry.baseline_zoom(self.viewport_width, size[0])

    @property
    def zoomed_in(self) -> bool:
        return self.zoom > self.baseline + self.settings.zoom_epsilon

    def _content_size(self) -> tuple[float, float]:
        size = self.natural_size
        if size is None:
            return 0.0, 0.0
        return size[0] * self.zoom, size[1] * self.zoom

    # --- Notices and cues ---

    def _notify(self, message: str, tone: Tone = Tone.SUCCESS, duration_ms: int | None = None) -> None:
        self._notices.append(Notice(message, tone, duration_ms or self.settings.notice_ms))

    def drain_notices(self) -> list[Notice]:
        notices, self._notices = self._notices, []
        return notices

    def drain_cues(self) -> list[FeedbackCue]:
        cues, self._cues = self._cues, []
        return cues

    # --- Rendering helpers ---

    def _clamp_scroll(self) -> None:
        width, height = self._content_size()
        self.scroll_x = geometry.clamp_scroll(self.scroll_x, width, self.viewport_width)
        self.scroll_y = geometry.clamp_scroll(self.scroll_y, height, self.viewport_height)

    def _fit_to_width(self) -> None:
        self.zoom = self.baseline
        self._clamp_scroll()

    def _render_current(self, reset_scroll: bool) -> None:
        """Show the current page at fit-to-width once its natural size is known."""
        if reset_scroll:
            self.scroll_x = 0.0
            self.scroll_y = 0.0
        if self.natural_size is None:
            self.mode = Mode.LOADING
            return
        if self.mode == Mode.LOADING:
            self.mode = Mode.READY
        self._fit_to_width()

    def image_loaded(self, index: int, natural_width: int, natural_height: int) -> None:
        """Record a decoded page's natural size; renders it if it is the current page."""
        if not 0 <= index < self.page_count or natural_width <= 0 or natural_height <= 0:
            logger.debug("Ignoring image load for page %s (%sx%s)", index, natural_width, natural_height)
            return
        self._natural[index] = (int(natural_width), int(natural_height))
        if index == self.page_index and self.mode == Mode.LOADING:
            self._render_current(reset_scroll=True)

    # --- Navigation ---

    def go_to(self, index: int, *, announce: bool = False, direction: str | None = None) -> bool:
        """Show page `index` (thumbnail click); boundaries produce a notice."""
        if self.is_empty or self.mode == Mode.CROPPING:
            return False
        if index < 0:
            self._notify(MESSAGES["first_page"], Tone.ERROR, PAGE_NOTICE_MS)
            return False
        if index >= self.page_count:
            self._notify(MESSAGES["last_page"], Tone.ERROR, PAGE_NOTICE_MS)
            return False
        if index == self.page_index and self.mode != Mode.LOADING:
            self._render_current(reset_scroll=False)
            return False

        self.page_index = index
        self._render_current(reset_scroll=True)
        if direction:
            self._cues.append(FeedbackCue(direction=direction, vibrate_ms=self.settings.vibrate_ms))
        if announce:
            self._notify(
                MESSAGES["page_label"].format(page=index + 1, total=self.page_count), Tone.SUCCESS, PAGE_NOTICE_MS
            )
        return True

    def navigate(self, step: int, *, announce: bool = False) -> bool:
        """Move by `step` pages (+1 next, -1 previous)."""
        if self.is_empty or self.mode != Mode.READY:
            return False
        direction = "next" if step > 0 else "prev"
        return self.go_to(self.page_index + step, announce=announce, direction=direction)

    def next_page(self, announce: bool = False) -> bool:
        return self.navigate(1, announce=announce)

    def prev_page(self, announce: bool = False) -> bool:
        return self.navigate(-1, announce=announce)

    # --- Zoom and pan ---

    def _zoom_ready(self) -> bool:
        return self.mode == Mode.READY and self.natural_size is not None

    def zoom_to(self, level: float, anchor: Point | None = None) -> float:
        """Set the zoom (clamped) keeping `anchor` (viewport coordinates) fixed."""
        if not self._zoom_ready():
            return self.zoom
        old = self.zoom
        new = geometry.clamp_zoom(level, self.baseline, self.settings.max_zoom)
        ax, ay = anchor if anchor is not None else (self.viewport_width / 2, self.viewport_height / 2)
        self.scroll_x = geometry.anchored_scroll(ax, self.scroll_x, old, new)
        self.scroll_y = geometry.anchored_scroll(ay, self.scroll_y, old, new)
        self.zoom = new
        self._clamp_scroll()
        return new

    def zoom_in(self) -> float:
        if not self._zoom_ready():
            return self.zoom
        old = self.zoom
        upper = geometry.upper_zoom(self.baseline, self.settings.max_zoom)
        new = self.zoom_to(min(old * self.settings.zoom_step, upper))
        if new == upper and old < upper:
            self._notify(MESSAGES["max_zoom"])
        return new

    def zoom_out(self) -> float:
        if not self._zoom_ready():
            return self.zoom
        old = self.zoom
        baseline = self.baseline
        new = self.zoom_to(max(old / self.settings.zoom_step, baseline))
        eps = self.settings.zoom_epsilon
        if abs(new - baseline) < eps and abs(old - baseline) >= eps:
            self._notify(MESSAGES["zoom_reset"])
        return new

    def reset_zoom(self, announce: bool = True) -> float:
        if not self._zoom_ready():
            return self.zoom
        self._fit_to_width()
        if announce:
            self._notify(MESSAGES["zoom_reset"])
        return self.zoom

    def pan(self, dx: float, dy: float) -> tuple[float, float]:
        """Scroll by `(dx, dy)` content pixels, clamped to the content edges."""
        if self._zoom_ready():
            self.scroll_x += dx
            self.scroll_y += dy
            self._clamp_scroll()
        return self.scroll_x, self.scroll_y

    # --- Touch gestures ---

    def touch_start(self, points: Sequence[Point]) -> None:
        if self.mode != Mode.READY or self.is_empty:
            self.gestures.reset()
            return
        if self.gestures.touch_start(points).kind == GestureKind.PINCH_START:
            self._pinch_zoom_start = self.zoom

    def touch_move(self, points: Sequence[Point]) -> None:
        if self.mode != Mode.READY or self.is_empty:
            return
        gesture = self.gestures.touch_move(points)
        if gesture.kind == GestureKind.PINCH_START:
            self._pinch_zoom_start = self.zoom
        elif gesture.kind == GestureKind.PINCH:
            self.zoom_to(self._pinch_zoom_start * gesture.scale, anchor=(gesture.x, gesture.y))

    def touch_end(self, point: Point, timestamp_ms: float, remaining: int = 0) -> None:
        if self.mode != Mode.READY or self.is_empty:
            self.gestures.reset()
            return
        zoomed_in = self.zoomed_in
        gesture = self.gestures.touch_end(point, timestamp_ms, swipe_allowed=not zoomed_in, remaining=remaining)

        if gesture.kind == GestureKind.DOUBLE_TAP:
            self._double_tap((gesture.x, gesture.y), zoomed_in)
        elif gesture.kind == GestureKind.SWIPE_NEXT:
            self.navigate(1, announce=True)
        elif gesture.kind == GestureKind.SWIPE_PREV:
            self.navigate(-1, announce=True)

    def _double_tap(self, point: Point, zoomed_in: bool) -> None:
        if not self._zoom_ready():
            return
        if zoomed_in:
            self._fit_to_width()
            self._notify(MESSAGES["zoom_reset"])
            return
        old = self.zoom
        target = geometry.clamp_zoom(
            max(self.settings.double_tap_zoom, self.baseline), self.baseline, self.settings.max_zoom
        )
        self.scroll_x = geometry.centered_scroll(point[0], self.scroll_x, old, target, self.viewport_width)
        self.scroll_y = geometry.centered_scroll(point[1], self.scroll_y, old, target, self.viewport_height)
        self.zoom = target
        self._clamp_scroll()
        self._notify(MESSAGES["zoom_tap"])

    # --- Crop sub-state ---

    def enter_crop(self) -> bool:
        """Start cropping the current page with the default centered rectangle."""
        if self.mode != Mode.READY or self.is_empty or self.natural_size is None:
            logger.debug("Crop requested while not ready (mode=%s)", self.mode)
            return False
        width, height = self.natural_size
        area = min(max(self.settings.crop_auto_area, 0.0), 1.0)
        crop_w, crop_h = max(1, round(width * area)), max(1, round(height * area))
        self.crop_region = CropRegion((width - crop_w) // 2, (height - crop_h) // 2, crop_w, crop_h)
        self.mode = Mode.CROPPING
        self.gestures.reset()
        return True

    def adjust_crop(self, x: float, y: float, width: float, height: float) -> CropRegion | None:
        """Move/resize the crop rectangle; it always stays inside the image."""
        if self.mode != Mode.CROPPING or self.natural_size is None:
            return None
        self.crop_region = CropRegion(int(x), int(y), int(width), int(height)).clamped(*self.natural_size)
        return self.crop_region

    def exit_crop(self, reason: str = "cancel") -> bool:
        """Leave crop mode and discard the rectangle.

        `reason` picks the notice: "cancel", "escape", or "silent" (resize,
        fullscreen, finished export).
        """
        if self.mode != Mode.CROPPING:
            return False
        self.crop_region = None
        self.mode = Mode.READY
        if reason == "cancel":
            self._notify(MESSAGES["crop_canceled"], Tone.ERROR)
        elif reason == "escape":
            self._notify(MESSAGES["crop_escape"], Tone.ERROR)
        return True

    def toggle_crop(self) -> bool:
        """Crop button: enter crop mode, or leave it without a notice."""
        if self.mode == Mode.CROPPING:
            self.exit_crop("silent")
            return False
        return self.enter_crop()

    def take_crop(self) -> CropRegion | None:
        """Hand the current rectangle to the export path and leave crop mode."""
        if self.mode != Mode.CROPPING or self.crop_region is None:
            self._notify(MESSAGES["crop_inactive"], Tone.ERROR)
            return None
        region = self.crop_region
        self.exit_crop("silent")
        return region

    def key_press(self, key: str) -> None:
        if key == "Escape" and self.mode == Mode.CROPPING:
            self.exit_crop("escape")

    # --- Viewport changes ---

    def resize(self, viewport_width: float, viewport_height: float) -> None:
        """Viewport resized: drop any crop and re-render at fit-to-width."""
        self.exit_crop("silent")
        self.gestures.reset()
        self.viewport_width = float(viewport_width)
        self.viewport_height = float(viewport_height)
        if not self.is_empty:
            self._render_current(reset_scroll=False)

    def fullscreen_changed(
        self, active: bool, viewport_width: float | None = None, viewport_height: float | None = None
    ) -> None:
        """Fullscreen toggled: same as a resize, without a notice."""
        logger.debug("Fullscreen %s", "entered" if active else "left")
        self.resize(
            self.viewport_width if viewport_width is None else viewport_width,
            self.viewport_height if viewport_height is None else viewport_height,
        )

    # --- View-model ---

    def _controls(self) -> dict[Control, bool]:
        controls = {control: True for control in Control}
        for control in CROP_TOOLBAR:
            controls[control] = self.mode == Mode.CROPPING
        if self.is_empty or self.mode == Mode.LOADING:
            for control in PAGE_CONTROLS:
                controls[control] = False
        if self.mode == Mode.CROPPING:
            for control in CROP_LOCKED_CONTROLS:
                controls[control] = False
        if self.is_empty:
            controls[Control.FULLSCREEN] = False
        return controls

    def snapshot(self) -> ViewModel:
        width, height = self._content_size()
        current = None if self.is_empty else self.images[self.page_index]
        page_number = 0 if self.is_empty else self.page_index + 1
        empty_message = MESSAGES["no_pages"].format(date=self.selected_date) if self.is_empty else ""
        return ViewModel(
            mode=self.mode,
            page_index=self.page_index,
            page_count=self.page_count,
            page_label=f"{page_number} / {self.page_count}",
            current_image=current,
            active_thumbnail=None if self.is_empty else self.page_index,
            zoom=self.zoom,
            baseline_zoom=self.baseline,
            image_width=width,
            image_height=height,
            scroll_x=self.scroll_x,
            scroll_y=self.scroll_y,
            controls=self._controls(),
            crop_toolbar_visible=self.mode == Mode.CROPPING,
            crop_region=self.crop_region,
            empty_message=empty_message,
        )

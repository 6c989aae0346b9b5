"""Crop toolbar shown above the selection while crop mode is active."""

from fasthtml.common import Button, Div, Span


def render_crop_toolbar() -> Div:
    """Download / share / cancel buttons, hidden until crop mode starts."""
    return Div(
        Button(
            Span("⬇"),
            Span("Download", cls="hidden sm:inline"),
            id="cropDownloadBtn",
            type="button",
            cls="btn-theme flex items-center gap-1",
            data_control="crop_download",
            disabled=True,
        ),
        Button(
            Span("↗"),
            Span("Share", cls="hidden sm:inline"),
            id="shareCropBtn",
            type="button",
            cls="btn-theme flex items-center gap-1",
            data_control="crop_share",
            disabled=True,
        ),
        Button(
            Span("✕"),
            Span("Cancel", cls="hidden sm:inline"),
            id="cancelCropBtn",
            type="button",
            cls="btn-theme flex items-center gap-1",
            data_control="crop_cancel",
            disabled=True,
        ),
        id="cropperButtons",
        cls="absolute z-30 hidden gap-2 rounded-lg bg-white/95 p-1 shadow-lg",
    )

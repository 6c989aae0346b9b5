"""Share and clipboard outcomes for cropped images and page URLs.

Every path ends in notices (never an exception): native share first, then a
clipboard fallback on genuine failures. The browser script receives the
catalog (`share_catalog`) and the decision table (`share_policy`) and only
plays them back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..viewer.notices import DEFAULT_NOTICE_MS, Notice, Tone

CLIPBOARD_NOTICE_MS = 5000

IMAGE_SHARE_TITLE = "E-Paper Cropped Image"
IMAGE_SHARE_TEXT = "Check out this cropped image from page {page} of the E-Paper!"
URL_SHARE_TEXT = "Check out this E-Paper page: {title}"


class ShareKind(str, Enum):
    IMAGE = "image"
    URL = "url"


class ShareResult(str, Enum):
    SHARED = "shared"
    CANCELED = "canceled"
    FAILED = "failed"
    UNAVAILABLE = "unavailable"
    PREPARE_FAILED = "prepare_failed"


_CATALOG: dict[str, tuple[str, Tone, int]] = {
    "image_shared": ("Cropped image shared successfully!", Tone.SUCCESS, DEFAULT_NOTICE_MS),
    "image_canceled": ("Image share canceled.", Tone.ERROR, DEFAULT_NOTICE_MS),
    "image_failed": ("Error sharing cropped image. Falling back to clipboard.", Tone.ERROR, DEFAULT_NOTICE_MS),
    "image_unavailable": (
        "Native share not available. Copying cropped image to clipboard.",
        Tone.ERROR,
        DEFAULT_NOTICE_MS,
    ),
    "image_prepare_failed": ("Error preparing cropped image for sharing.", Tone.ERROR, DEFAULT_NOTICE_MS),
    "image_copied": (
        "Image data (base64) copied to clipboard! You may need to paste into an image editor.",
        Tone.SUCCESS,
        CLIPBOARD_NOTICE_MS,
    ),
    "image_copy_failed": (
        "Could not copy image to clipboard manually. Please try using native share if available.",
        Tone.ERROR,
        CLIPBOARD_NOTICE_MS,
    ),
    "url_shared": ("Page URL shared successfully!", Tone.SUCCESS, DEFAULT_NOTICE_MS),
    "url_canceled": ("Page URL share canceled.", Tone.ERROR, DEFAULT_NOTICE_MS),
    "url_failed": ("Error sharing page URL. Falling back to clipboard.", Tone.ERROR, DEFAULT_NOTICE_MS),
    "url_unavailable": ("Native share not available. Copying page URL to clipboard.", Tone.ERROR, DEFAULT_NOTICE_MS),
    "url_copied": ("Page URL copied to clipboard!", Tone.SUCCESS, DEFAULT_NOTICE_MS),
    "url_copy_failed": ("Could not copy page URL to clipboard.", Tone.ERROR, DEFAULT_NOTICE_MS),
    "downloaded": ("Cropped image downloaded successfully!", Tone.SUCCESS, DEFAULT_NOTICE_MS),
    "download_failed": ("Error preparing cropped image for download.", Tone.ERROR, DEFAULT_NOTICE_MS),
}


def notice(key: str) -> Notice:
    message, tone, duration = _CATALOG[key]
    return Notice(message, tone, duration)


def share_catalog() -> dict[str, dict]:
    """All share/download notices keyed by name, ready for JSON."""
    return {key: notice(key).to_dict() for key in _CATALOG}


@dataclass(frozen=True)
class ShareOutcome:
    """Notices to show for one share attempt and whether to try the clipboard."""

    notices: list[Notice] = field(default_factory=list)
    use_clipboard: bool = False


def _outcome_keys(kind: ShareKind, result: ShareResult) -> tuple[list[str], bool]:
    prefix = kind.value
    if result == ShareResult.SHARED:
        return [f"{prefix}_shared"], False
    if result == ShareResult.CANCELED:
        return [f"{prefix}_canceled"], False
    if result in (ShareResult.FAILED, ShareResult.UNAVAILABLE):
        return [f"{prefix}_{result.value}"], True
    if kind == ShareKind.IMAGE:
        return ["image_prepare_failed"], False
    # A page URL needs no preparation; treat it as a failed native share.
    return ["url_failed"], True


def share_policy() -> dict[str, dict]:
    """Outcome table the viewer script looks decisions up in.

    `policy[kind]["outcomes"][result]` names the notices to show and whether
    to fall back to the clipboard; `policy[kind]["clipboard"]` names the
    notices for the clipboard result.
    """
    policy: dict[str, dict] = {}
    for kind in ShareKind:
        outcomes = {}
        for result in ShareResult:
            keys, use_clipboard = _outcome_keys(kind, result)
            outcomes[result.value] = {"notices": keys, "use_clipboard": use_clipboard}
        policy[kind.value] = {
            "outcomes": outcomes,
            "clipboard": {"copied": f"{kind.value}_copied", "failed": f"{kind.value}_copy_failed"},
        }
    return policy


def share_outcome(kind: ShareKind, result: ShareResult) -> ShareOutcome:
    """Classify a native share attempt.

    Cancellation is reported, not escalated; genuine failures and a missing
    share capability fall back to the clipboard.
    """
    step = share_policy()[kind.value]["outcomes"][result.value]
    return ShareOutcome([notice(key) for key in step["notices"]], use_clipboard=step["use_clipboard"])


def clipboard_outcome(kind: ShareKind, copied: bool) -> Notice:
    """Notice for the clipboard fallback result."""
    keys = share_policy()[kind.value]["clipboard"]
    return notice(keys["copied"] if copied else keys["failed"])


def share_templates() -> dict[str, dict[str, str]]:
    """Native share sheet texts; `{page}` and `{title}` are filled in by the browser."""
    return {
        "image": {"title": IMAGE_SHARE_TITLE, "text": IMAGE_SHARE_TEXT},
        "url": {"text": URL_SHARE_TEXT},
    }

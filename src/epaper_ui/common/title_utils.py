"""Title shortening for the site header and the edition cards."""

from __future__ import annotations

TITLE_MAX_LEN = 70
TITLE_ELLIPSIS = "[...]"


def truncate_title(text: str, max_len: int = TITLE_MAX_LEN, suffix: str = TITLE_ELLIPSIS) -> str:
    """Collapse whitespace and cut to `max_len` characters including `suffix`.

    The cut moves back to the previous word boundary unless that would drop
    more than 40% of the room left for text.
    """
    value = " ".join((text or "").split())
    if len(value) <= max_len:
        return value

    room = max(1, max_len - len(suffix))
    head = value[:room].rstrip()
    word_cut = head.rsplit(" ", 1)[0]
    if " " in head and len(word_cut) >= int(room * 0.6):
        head = word_cut.rstrip()
    return f"{head}{suffix}"

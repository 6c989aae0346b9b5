"""Transient user-facing notices (the viewer's message box)."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum

DEFAULT_NOTICE_MS = 3000


class Tone(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Notice:
    """A message shown briefly and dismissed automatically."""

    message: str
    tone: Tone = Tone.SUCCESS
    duration_ms: int = DEFAULT_NOTICE_MS

    def to_dict(self) -> dict:
        data = asdict(self)
        data["tone"] = self.tone.value
        return data

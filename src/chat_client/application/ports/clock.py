from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from typing import Protocol


class Clock(Protocol):
    """Timestamps for records created locally, before the server has seen them."""

    def now(self) -> datetime: ...


class SystemClock:
    def __init__(self, tz: tzinfo = timezone.utc) -> None:
        self._tz = tz

    def now(self) -> datetime:
        return datetime.now(self._tz)

"""Debounced lookup bound to a single search field."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Generic, TypeVar

from chat_client.application.exceptions import AppError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Fetch = Callable[[str], Awaitable[list[T]]]


class SearchDebouncer(Generic[T]):
    """Collapses keystrokes into one lookup per quiet interval.

    Each issued lookup is tagged with the text it was issued for; its result is
    shown only if the field still holds exactly that text.
    """

    def __init__(
        self,
        fetch: Fetch[T],
        *,
        quiet_interval: float,
        exclude: Callable[[T], bool] | None = None,
        on_error: Callable[[Exception], None] | None = None,
    ) -> None:
        if quiet_interval <= 0:
            raise ValueError("quiet_interval must be positive")
        self._fetch = fetch
        self._quiet_interval = quiet_interval
        self._exclude = exclude
        self._on_error = on_error

        self.text = ""
        self.results: list[T] = []
        self.is_searching = False
        self._timer: asyncio.Future[None] | None = None

    async def query(self, text: str) -> list[T] | None:
        """Record a keystroke and, once input settles, look it up.

        Returns the displayed results, or None if this call was superseded by
        later input (or its lookup failed).
        """
        self.text = text
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        if not text.strip():
            self.results = []
            self.is_searching = False
            return self.results

        timer = asyncio.ensure_future(asyncio.sleep(self._quiet_interval))
        self._timer = timer
        try:
            await timer
        except asyncio.CancelledError:
            if self._timer is timer:
                # Our own task was cancelled, not superseded.
                self._timer = None
                raise
            return None
        self._timer = None

        self.is_searching = True
        try:
            found = await self._fetch(text.strip())
        except AppError as exc:
            if self.text != text:
                return None
            self.is_searching = False
            if self._on_error is not None:
                self._on_error(exc)
            else:
                logger.error("Search for %r failed: %s", text, exc)
            return None

        if self.text != text:
            logger.debug("Discarding stale results for %r", text)
            return None

        self.is_searching = False
        self.results = [item for item in found if not (self._exclude and self._exclude(item))]
        return self.results

    def clear(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.text = ""
        self.results = []
        self.is_searching = False

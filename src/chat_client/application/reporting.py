"""User-facing error surfacing: the dismissible banner and fatal session end."""
from __future__ import annotations

import logging
from typing import Callable

from chat_client.application.exceptions import SessionExpiredError

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class ErrorBanner:
    """Single dismissible error line. A newer error replaces the older one."""

    def __init__(self) -> None:
        self.message: str | None = None
        self._listeners: list[Listener] = []

    def show(self, message: str) -> None:
        self.message = message
        self._notify()

    def dismiss(self) -> None:
        if self.message is None:
            return
        self.message = None
        self._notify()

    def on_change(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener()


class ErrorReporter:
    """Routes failures to the banner, the log, or session termination."""

    def __init__(self, banner: ErrorBanner) -> None:
        self.banner = banner
        self.session_expired = False
        self._expiry_listeners: list[Callable[[SessionExpiredError], None]] = []

    def on_session_expired(self, listener: Callable[[SessionExpiredError], None]) -> None:
        self._expiry_listeners.append(listener)

    def transient(self, message: str, exc: Exception) -> None:
        """Recoverable failure: banner, component stays usable."""
        if isinstance(exc, SessionExpiredError):
            self.fatal(exc)
            return
        logger.error("%s: %s", message, exc)
        self.banner.show(message)

    def background(self, message: str, exc: Exception) -> None:
        """Non-fatal background failure: logged only."""
        if isinstance(exc, SessionExpiredError):
            self.fatal(exc)
            return
        logger.warning("%s: %s", message, exc)

    def fatal(self, exc: SessionExpiredError) -> None:
        if self.session_expired:
            return
        self.session_expired = True
        logger.error("Session terminated: %s", exc.detail or exc)
        for listener in self._expiry_listeners:
            listener(exc)

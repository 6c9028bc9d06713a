"""Cooperative cancellation for long walks."""

from __future__ import annotations

import threading


class CancelToken:
    """Flag checked by the walker once per directory.

    May be set from another thread; the walk stops before expanding the next
    directory.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: str | None = None

    def cancel(self, reason: str | None = None) -> None:
        if self._event.is_set():
            return
        self._reason = reason or "canceled"
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

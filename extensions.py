"""
Shared app-level objects: the rate limiter, the in-flight guard and store access.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from flask import current_app
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from store import StudyStore

limiter = Limiter(key_func=get_remote_address, default_limits=["600 per hour"])


class ActionInProgress(Exception):
    """An identical AI action is already running."""

    def __init__(self, action: str) -> None:
        super().__init__(f"Already processing: {action}")
        self.action = action


class InFlightGuard:
    """Rejects a second concurrent run of the same action key."""

    def __init__(self) -> None:
        self._active: set[str] = set()
        self._lock = threading.Lock()

    def is_active(self, action: str) -> bool:
        with self._lock:
            return action in self._active

    @contextmanager
    def hold(self, action: str) -> Iterator[None]:
        with self._lock:
            if action in self._active:
                raise ActionInProgress(action)
            self._active.add(action)
        try:
            yield
        finally:
            with self._lock:
                self._active.discard(action)


def get_store() -> StudyStore:
    return current_app.extensions["study_store"]


def get_guard() -> InFlightGuard:
    return current_app.extensions["inflight_guard"]

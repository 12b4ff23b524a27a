from __future__ import annotations

import threading
from typing import List

from repo_triage.shared.errors import CancellationError


class CancellationToken:
    """Cooperative cancellation signal shared by every step of a run."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._children: List[CancellationToken] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            self._event.set()
            children = list(self._children)
            self._children.clear()

        for child in children:
            child.cancel()

    def child(self) -> "CancellationToken":
        """Return a token that is cancelled together with this one.

        Cancelling the child does not affect the parent.
        """
        token = CancellationToken()
        with self._lock:
            if self._event.is_set():
                token._event.set()
            else:
                self._children.append(token)
        return token

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancellationError("Triage run was cancelled")

    def wait(self, seconds: float) -> bool:
        """Block for up to ``seconds``; returns True as soon as the token is cancelled."""
        return self._event.wait(timeout=max(0.0, seconds))

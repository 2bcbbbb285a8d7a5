from __future__ import annotations

import threading


class CancellationToken:
    """Cooperative cancellation signal scoped to a single scan.

    The scanner arms a fresh token per scan; workers only poll
    ``is_cancelled()``. Setting is monotonic until ``reset()``.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def reset(self) -> None:
        self._event.clear()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled()})"

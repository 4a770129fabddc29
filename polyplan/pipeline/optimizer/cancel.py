"""Cooperative cancellation for a running optimisation.

The grid search polls the token between raster cells; nothing is
interrupted mid-validation, so whatever was committed before the stop
is a valid partial result.
"""

from __future__ import annotations

import threading
import time

from .models import StopReason


class CancelToken:
    """Thread-safe cancel flag with an optional deadline."""

    def __init__(self, timeout_s: float | None = None) -> None:
        self._event = threading.Event()
        self._deadline = (
            time.monotonic() + timeout_s if timeout_s is not None else None
        )

    def cancel(self) -> None:
        self._event.set()

    def limit(self, timeout_s: float) -> None:
        """Add a deadline *timeout_s* from now.  An earlier existing
        deadline is kept."""
        deadline = time.monotonic() + timeout_s
        if self._deadline is None or deadline < self._deadline:
            self._deadline = deadline

    @property
    def reason(self) -> StopReason | None:
        """Why the run should stop, or None to keep going."""
        if self._event.is_set():
            return StopReason.CANCELLED
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return StopReason.TIMEOUT
        return None

    @property
    def cancelled(self) -> bool:
        return self.reason is not None

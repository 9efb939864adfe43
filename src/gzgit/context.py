"""Cancellable invocation context.

Every gzgit operation accepts an optional InvocationContext.  Cancelling it
(from another thread, a signal handler, or by letting its deadline pass)
terminates the git process currently running on its behalf.
"""

from __future__ import annotations

import threading
import time
from typing import Optional

from gzgit.exceptions import CancelledError


class InvocationContext:
    """Cancellation token with an optional deadline.

    Example::

        ctx = InvocationContext(timeout=30)
        ws.merge("feature/x", ctx=ctx)

        # elsewhere
        ctx.cancel()
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    @classmethod
    def background(cls) -> InvocationContext:
        """A context that is never cancelled and has no deadline."""
        return cls()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def done(self) -> bool:
        return self.cancelled or self.expired

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when unbounded."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self) -> None:
        """Raise CancelledError if the context is cancelled or expired."""
        if self.cancelled:
            raise CancelledError(reason="cancelled")
        if self.expired:
            raise CancelledError(reason="deadline exceeded")

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "expired" if self.expired else "active"
        return f"InvocationContext({state})"

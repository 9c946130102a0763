# -*- coding: utf-8 -*-
"""Caller supplied deadline and cancellation for blocking cluster calls."""

import threading
import time

from .exceptions import ContextExpiredError


class Context:
    """Carries an optional deadline and a cancellation flag through a request.

    Each remote call checks the context before it starts and bounds its own timeout by
    the time remaining. Sleeps wait on an event so cancelling from another thread wakes
    a sleeping retry loop straight away.
    """

    def __init__(self, timeout=None):
        self._deadline = None if timeout is None else time.monotonic() + timeout
        self._cancelled = threading.Event()

    @classmethod
    def background(cls):
        """A context that never expires."""
        return cls()

    @classmethod
    def with_timeout(cls, seconds):
        return cls(timeout=seconds)

    def cancel(self):
        self._cancelled.set()

    @property
    def cancelled(self):
        return self._cancelled.is_set()

    @property
    def expired(self):
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def done(self):
        return self.cancelled or self.expired

    def remaining(self):
        """Seconds left before the deadline, None if there is no deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self):
        if self.cancelled:
            raise ContextExpiredError("context canceled")
        if self.expired:
            raise ContextExpiredError("context deadline exceeded")

    def sleep(self, seconds):
        self.check()
        remaining = self.remaining()
        if remaining is not None:
            seconds = min(seconds, remaining)
        self._cancelled.wait(seconds)
        self.check()

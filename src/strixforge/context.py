#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import threading

import strixforge.error


class Context(object):
    """
    Cancellable execution context.  Passed through every operation that
    shells out.
    """

    def __init__(
            self, dry_run: bool = False,
            event: threading.Event = None) -> None:
        self.dry_run = dry_run
        self._event = event if event is not None else threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Cancels the context.  Safe to call from any thread."""
        self._event.set()

    def check(self) -> None:
        """Raises CancelledError if the context has been cancelled."""
        if self.cancelled:
            raise strixforge.error.CancelledError

    def with_dry_run(self, dry_run: bool) -> "Context":
        """
        Returns a new context sharing the cancellation state of this context.

        Keyword arguments:
        dry_run -- True if no persisted host mutation may occur
        """
        return Context(dry_run, self._event)

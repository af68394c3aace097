"""Debounced remote writes for the cart store.

Bursts of cart edits collapse into a single remote write once the cart has
been quiet for ``delay_seconds``. The writer owns no thread or timer: the
host event loop calls ``poll()`` on each tick and the write fires when the
quiet period has elapsed.
"""

import time
from collections.abc import Callable

import structlog

logger = structlog.get_logger(__name__)


class DebouncedWriter:
    def __init__(
        self,
        write: Callable[[], None],
        delay_seconds: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._write = write
        self._delay = delay_seconds
        self._clock = clock
        self._due_at: float | None = None
        self.writes = 0

    @property
    def pending(self) -> bool:
        return self._due_at is not None

    def schedule(self) -> None:
        """Register a change; restarts the quiet period."""
        self._due_at = self._clock() + self._delay

    def cancel(self) -> None:
        self._due_at = None

    def poll(self) -> bool:
        """Write if the quiet period has elapsed. Returns True when a write happened."""
        if self._due_at is None or self._clock() < self._due_at:
            return False
        return self.flush()

    def flush(self) -> bool:
        """Write now if anything is pending."""
        if self._due_at is None:
            return False

        self._due_at = None
        try:
            self._write()
        except Exception as exc:
            # Keep the change pending so the next quiet period retries it
            logger.error("Debounced cart write failed", error=str(exc))
            self.schedule()
            return False

        self.writes += 1
        return True

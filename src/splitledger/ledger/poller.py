"""Cooperative change polling for ledger consumers.

The poller watches a cheap ledger version counter and calls a refresh
callback once per detected change. It never runs two checks at once and
skips checks while the consumer is inactive or a blocking interaction is in
progress.
"""

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 30.0  # seconds


class LedgerPoller:
    """Polls a ledger version and triggers one refresh per change."""

    def __init__(
        self,
        get_version: Callable[[], int],
        on_change: Callable[[int], None],
        interval: float = DEFAULT_POLL_INTERVAL,
        is_active: Callable[[], bool] | None = None,
    ):
        """
        Initialize the poller.

        Args:
            get_version: Returns the current ledger version
            on_change: Called with the new version when it changes
            interval: Seconds between checks
            is_active: Returns False while the consumer is in the background
        """
        self.get_version = get_version
        self.on_change = on_change
        self.interval = interval
        self.is_active = is_active or (lambda: True)

        self.last_version: int | None = None
        self._check_lock = threading.Lock()
        self._pause_depth = 0
        self._pause_lock = threading.Lock()

    @property
    def is_paused(self) -> bool:
        return self._pause_depth > 0

    @contextmanager
    def paused(self) -> Iterator[None]:
        """Suspend checks for the duration of a blocking interaction."""
        with self._pause_lock:
            self._pause_depth += 1
        try:
            yield
        finally:
            with self._pause_lock:
                self._pause_depth -= 1

    def check(self) -> bool:
        """
        Run a single check.

        The first successful check only records the version.

        Returns:
            True if a change was detected and on_change was called
        """
        if self.is_paused or not self.is_active():
            logger.debug("Poll skipped (paused or inactive)")
            return False

        if not self._check_lock.acquire(blocking=False):
            logger.debug("Poll skipped (check already in flight)")
            return False

        try:
            version = self.get_version()

            if self.last_version is None:
                self.last_version = version
                return False

            if version == self.last_version:
                return False

            logger.info(f"Ledger changed ({self.last_version} -> {version}), refreshing")
            self.on_change(version)
            # Only a successful refresh consumes the change
            self.last_version = version
            return True
        except Exception as e:
            logger.error(f"Error checking for ledger changes: {e}")
            return False
        finally:
            self._check_lock.release()

    def run(self, stop_event: threading.Event):
        """Check immediately, then every interval until stop_event is set."""
        self.check()
        while not stop_event.wait(self.interval):
            self.check()

"""Per-path debouncing and command throttling state."""

import logging
import math
import threading

from fsblock_core.models import ChangeKind

logger = logging.getLogger(__name__)

DEBOUNCE_WINDOW = 0.1
"""Seconds within which repeat notifications for one path are suppressed."""

THROTTLE_INTERVAL = 0.2
"""Minimum seconds between two command invocations."""


class EventDeduplicator:
    """Suppress rapid repeat notifications for the same path.

    Watch sources often report one logical edit as several low-level
    notifications (metadata change, write, close). The first notification for a
    path is accepted; any further one within :data:`DEBOUNCE_WINDOW` of the last
    accepted timestamp is suppressed. Deletions are always accepted and forget
    the path.

    The check-and-update runs under a single lock, so it is safe to call from
    the watch source's threads.
    """

    def __init__(self, window: float = DEBOUNCE_WINDOW):
        self.window = window
        self._last_accepted: dict[str, float] = {}
        self._lock = threading.Lock()

    def accept(self, path: str, kind: ChangeKind, now: float) -> bool:
        """Decide whether a notification should be processed.

        Args:
            path: Absolute path of the changed file
            kind: Kind of change
            now: Current monotonic time in seconds

        Returns:
            True if accepted, False if suppressed
        """
        with self._lock:
            if kind is ChangeKind.DELETED:
                self._last_accepted.pop(path, None)
                return True

            last = self._last_accepted.get(path)
            if last is not None and now - last < self.window:
                logger.debug(f"Suppressed duplicate {kind.value} for {path}")
                return False

            self._last_accepted[path] = now
            return True

    def touch(self, path: str, now: float) -> None:
        """Record ``now`` as the last accepted time for ``path``."""
        with self._lock:
            self._last_accepted[path] = now

    def last_accepted(self, path: str) -> float | None:
        """Get the last accepted timestamp for a path, if any."""
        with self._lock:
            return self._last_accepted.get(path)

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_accepted)


class CommandThrottle:
    """Time of the last command invocation, shared by all events.

    Not locked: the dispatcher only touches it while holding its own lock.
    """

    def __init__(self, interval: float = THROTTLE_INTERVAL):
        self.interval = interval
        self.last_invocation = -math.inf

    def is_open(self, now: float) -> bool:
        """Check whether enough time has passed since the last invocation."""
        return now - self.last_invocation >= self.interval

    def mark(self, now: float) -> None:
        """Record an invocation at ``now``."""
        self.last_invocation = now

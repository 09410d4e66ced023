"""Abstract watch-source protocol for file watching implementations."""

from collections.abc import Callable
from typing import Protocol

from fsblock_core.models import ChangeEvent


class ChangeSource(Protocol):
    """Protocol for watch sources feeding a session.

    Continuous mode pushes events through ``start``/``stop``. Single-shot mode
    pulls them one at a time with ``next_event``.
    """

    def start(self, on_change: Callable[[ChangeEvent], None]) -> None:
        """Start delivering events to ``on_change`` on the source's own thread(s)."""
        ...

    def stop(self) -> None:
        """Stop delivering events. Safe to call more than once."""
        ...

    def next_event(self) -> ChangeEvent:
        """Block until the next change arrives and return it.

        Raises:
            WatchSourceError: If the source fails while waiting
        """
        ...

    def check_health(self) -> None:
        """Raise WatchSourceError if the source can no longer deliver events."""
        ...

"""Watch source implementation using watchdog."""

import logging
import os
import queue
from collections.abc import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from fsblock_core.errors import WatchSourceError
from fsblock_core.models import ChangeEvent, ChangeKind

logger = logging.getLogger(__name__)


def to_change_event(event: FileSystemEvent, kind: ChangeKind) -> ChangeEvent:
    """Convert a watchdog event to a ChangeEvent with absolute paths.

    Args:
        event: watchdog event
        kind: Kind the handler callback maps it to

    Returns:
        ChangeEvent; renames carry the destination as ``path``
    """
    src_path = os.path.abspath(os.fsdecode(event.src_path))
    if kind is ChangeKind.RENAMED:
        dest_path = os.path.abspath(os.fsdecode(event.dest_path))
        return ChangeEvent(kind, dest_path, old_path=src_path, is_directory=event.is_directory)
    return ChangeEvent(kind, src_path, is_directory=event.is_directory)


class _ChangeHandler(FileSystemEventHandler):
    """Forwards watchdog callbacks as ChangeEvents."""

    def __init__(self, deliver: Callable[[ChangeEvent], None]):
        """Initialize handler.

        Args:
            deliver: Called with each ChangeEvent on the observer thread
        """
        super().__init__()
        self.deliver = deliver

    def _emit(self, event: FileSystemEvent, kind: ChangeKind) -> None:
        try:
            self.deliver(to_change_event(event, kind))
        except Exception:
            # One bad event must not stop the observer thread
            logger.exception(f"Failed to handle {kind.value} for {event.src_path}")

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle file creation events."""
        self._emit(event, ChangeKind.CREATED)

    def on_modified(self, event: FileSystemEvent) -> None:
        """Handle file modification events."""
        self._emit(event, ChangeKind.MODIFIED)

    def on_closed(self, event: FileSystemEvent) -> None:
        """Handle close-after-write events as modifications."""
        self._emit(event, ChangeKind.MODIFIED)

    def on_deleted(self, event: FileSystemEvent) -> None:
        """Handle file deletion events."""
        self._emit(event, ChangeKind.DELETED)

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle file move/rename events."""
        self._emit(event, ChangeKind.RENAMED)


class WatchdogChangeSource:
    """ChangeSource backed by a watchdog Observer on a single root."""

    def __init__(
        self,
        root: str,
        recursive: bool = True,
        observer_factory: Callable[[], Observer] = Observer,
        poll_interval: float = 0.5,
    ):
        """Initialize watch source.

        Args:
            root: Absolute directory to watch
            recursive: Whether to watch subdirectories
            observer_factory: Creates the watchdog observer
            poll_interval: Seconds between health checks while pulling events
        """
        self.root = root
        self.recursive = recursive
        self.poll_interval = poll_interval
        self._observer_factory = observer_factory
        self._observer = None
        self._pending: queue.Queue[ChangeEvent] | None = None
        self._stopping = False

    @property
    def is_running(self) -> bool:
        return self._observer is not None and not self._stopping

    def start(self, on_change: Callable[[ChangeEvent], None]) -> None:
        """Schedule the root and start the observer thread.

        Raises:
            RuntimeError: If the source was already started
            WatchSourceError: If the observer cannot watch the root
        """
        if self._observer is not None:
            raise RuntimeError("Watch source already started")

        observer = self._observer_factory()
        try:
            observer.schedule(_ChangeHandler(on_change), self.root, recursive=self.recursive)
            observer.start()
        except OSError as e:
            raise WatchSourceError(f"Cannot watch {self.root}: {e}") from e

        self._observer = observer
        logger.info(f"Watching {self.root} (recursive: {self.recursive})")

    def stop(self) -> None:
        """Stop the observer thread."""
        if self._observer is None or self._stopping:
            return
        self._stopping = True
        if self._observer.is_alive():
            self._observer.stop()
            self._observer.join(timeout=2.0)
        logger.info("Stopped watching")

    def check_health(self) -> None:
        """Raise WatchSourceError if the observer or one of its emitters died."""
        if not self.is_running:
            return
        if not self._observer.is_alive():
            raise WatchSourceError(f"Observer for {self.root} stopped unexpectedly")
        for emitter in self._observer.emitters:
            if not emitter.is_alive():
                raise WatchSourceError(f"Watch on {emitter.watch.path} stopped unexpectedly")

    def next_event(self) -> ChangeEvent:
        """Block until the next change arrives.

        The observer is started on first use and keeps running between calls,
        so changes arriving between two calls are not lost.

        Raises:
            WatchSourceError: If the source fails while waiting
        """
        if self._pending is None:
            self._pending = queue.Queue()
            self.start(self._pending.put)

        while True:
            try:
                return self._pending.get(timeout=self.poll_interval)
            except queue.Empty:
                self.check_health()

"""Turns raw change notifications into announced changes and command runs."""

import logging
import os
import threading
import time
from collections.abc import Callable
from enum import Enum

from fsblock_core.dedup import CommandThrottle, EventDeduplicator
from fsblock_core.filters import is_excluded
from fsblock_core.models import ChangeEvent, ChangeKind, SessionConfig
from fsblock_core.notifier import FsblockNotifier, NoOpNotifier, announce_change
from fsblock_core.readiness import FileReadinessGate

from fsblock.runner import CommandRunner

logger = logging.getLogger(__name__)


class DispatchOutcome(str, Enum):
    """Where an event left the dispatch pipeline."""

    DIRECTORY = "directory"
    EXCLUDED = "excluded"
    SUPPRESSED = "suppressed"
    ANNOUNCED = "announced"
    THROTTLED = "throttled"
    INVOKED = "invoked"


class ChangeDispatcher:
    """Filters, debounces, announces and acts on change events.

    One lock covers the whole pipeline for an event, so the throttle check,
    the command launch and the dedup/throttle updates happen as a unit. Events
    arriving while a command runs queue on the lock.
    """

    def __init__(
        self,
        config: SessionConfig,
        notifier: FsblockNotifier | None = None,
        runner: CommandRunner | None = None,
        gate: FileReadinessGate | None = None,
        deduplicator: EventDeduplicator | None = None,
        throttle: CommandThrottle | None = None,
        clock: Callable[[], float] = time.monotonic,
        is_directory: Callable[[str], bool] = os.path.isdir,
    ):
        """Initialize dispatcher.

        Args:
            config: Session configuration
            notifier: Feedback sink (defaults to NoOpNotifier - silent)
            runner: Command runner (defaults to CommandRunner)
            gate: Readiness gate for changed files and the executable
            deduplicator: Per-path debounce table
            throttle: Command throttle state
            clock: Monotonic clock in seconds
            is_directory: Directory test for changed paths
        """
        self.config = config
        self.notifier = notifier or NoOpNotifier()
        self.runner = runner or CommandRunner()
        self.gate = gate or FileReadinessGate()
        self.deduplicator = deduplicator if deduplicator is not None else EventDeduplicator()
        self.throttle = throttle if throttle is not None else CommandThrottle()
        self._clock = clock
        self._is_directory = is_directory
        self._lock = threading.Lock()

    def dispatch(self, event: ChangeEvent) -> DispatchOutcome:
        """Run one event through the pipeline.

        Raises:
            CommandLaunchError: If the command could not be spawned. Dedup and
                throttle state are already updated when this is raised.
        """
        with self._lock:
            return self._dispatch_locked(event)

    def _diagnostic(self, message: str) -> None:
        logger.debug(message)
        if self.config.verbose:
            self.notifier.diagnostic(message)

    def _dispatch_locked(self, event: ChangeEvent) -> DispatchOutcome:
        if event.is_directory or self._is_directory(event.path):
            return DispatchOutcome.DIRECTORY

        if is_excluded(event.path, self.config.ignore):
            self._diagnostic(f'Ignoring "{event.path}"')
            return DispatchOutcome.EXCLUDED

        if event.kind is not ChangeKind.DELETED:
            # Advisory only: a file still locked after the last attempt is announced anyway.
            result = self.gate.wait_until_readable(event.path)
            if not result.ready:
                self._diagnostic(
                    f'File "{event.path}" not readable ({result.status.value} after {result.attempts} attempts)'
                )

        if not self.deduplicator.accept(event.path, event.kind, self._clock()):
            self._diagnostic(f'Suppressed repeat {event.kind.value} for "{event.path}"')
            return DispatchOutcome.SUPPRESSED

        announce_change(self.notifier, event, self.config.feedback, self.config.verbose)

        if self.config.command is None:
            return DispatchOutcome.ANNOUNCED
        if not self.throttle.is_open(self._clock()):
            logger.debug(f"Command throttled for {event.path}")
            return DispatchOutcome.THROTTLED

        self._invoke_command(event)
        return DispatchOutcome.INVOKED

    def _invoke_command(self, event: ChangeEvent) -> None:
        command = self.config.command
        # Advisory only: the executable may be mid-update; launch regardless.
        result = self.gate.wait_until_readable(command.executable_path)
        if not result.ready:
            self._diagnostic(f'Command "{command.executable_path}" not readable ({result.status.value})')

        changed_name = os.path.relpath(event.path, self.config.root)
        try:
            process = self.runner.launch(command, changed_name)
        finally:
            self._record_invocation(event, self._clock())

        if self.config.wait_for_command:
            self.runner.wait(process)

    def _record_invocation(self, event: ChangeEvent, launched_at: float) -> None:
        self.throttle.mark(launched_at)
        if event.kind is not ChangeKind.DELETED:
            self.deduplicator.touch(event.path, launched_at)

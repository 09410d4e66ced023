"""Pluggable feedback output for fsblock.

Announced changes and verbose diagnostics go through a notifier so hosts can
redirect them (console, logging, tests) without touching the dispatcher.
"""

import logging
import os
import sys
from typing import Protocol, TextIO

from fsblock_core.models import ChangeEvent, ChangeKind


def format_change(event: ChangeEvent) -> str:
    """Format a change as a single feedback line.

    Returns:
        ``Kind:"path"`` or, for renames, ``Renamed:"new"<-"old"``
    """
    if event.kind is ChangeKind.RENAMED:
        return f'{event.kind.value}:"{event.path}"<-"{event.old_path}"'
    return f'{event.kind.value}:"{event.path}"'


class FsblockNotifier(Protocol):
    """Protocol for notifications - host can provide custom implementation."""

    def announce(self, line: str) -> None:
        """Emit an announced change line."""
        ...

    def diagnostic(self, message: str) -> None:
        """Emit a verbose diagnostic line."""
        ...

    def error(self, message: str) -> None:
        """Emit an error line."""
        ...


class NoOpNotifier:
    """Silent no-op notifier - default when embedded without output."""

    def announce(self, line: str) -> None:
        """Do nothing."""
        pass

    def diagnostic(self, message: str) -> None:
        """Do nothing."""
        pass

    def error(self, message: str) -> None:
        """Do nothing."""
        pass


class ConsoleNotifier:
    """Announcements to stdout, diagnostics and errors to stderr."""

    def __init__(self, out: TextIO | None = None, err: TextIO | None = None):
        self._out = out
        self._err = err

    # Resolved per call: sys.stdout may be replaced after construction
    @property
    def out(self) -> TextIO:
        return self._out or sys.stdout

    @property
    def err(self) -> TextIO:
        return self._err or sys.stderr

    def announce(self, line: str) -> None:
        """Print a change line.

        Raises:
            BrokenPipeError: If the reader of stdout has gone away
        """
        try:
            print(line, file=self.out, flush=True)
        except BrokenPipeError:
            if self._out is None:
                # Point stdout at devnull so the interpreter's exit flush does not fail again
                devnull = os.open(os.devnull, os.O_WRONLY)
                os.dup2(devnull, sys.stdout.fileno())
                os.close(devnull)
            raise

    def diagnostic(self, message: str) -> None:
        print(message, file=self.err, flush=True)

    def error(self, message: str) -> None:
        print(message, file=self.err, flush=True)


class LoggingNotifier:
    """Implementation using stdlib logging - for debugging/development."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("fsblock.feedback")

    def announce(self, line: str) -> None:
        self.logger.info(line)

    def diagnostic(self, message: str) -> None:
        self.logger.debug(message)

    def error(self, message: str) -> None:
        self.logger.error(message)


def announce_change(notifier: FsblockNotifier, event: ChangeEvent, feedback: bool, verbose: bool) -> None:
    """Emit the feedback line for an accepted change.

    The line goes to the notifier's output when feedback is on, and is echoed
    to the diagnostic stream when verbose.
    """
    line = format_change(event)
    if feedback:
        notifier.announce(line)
    if verbose:
        notifier.diagnostic(line)

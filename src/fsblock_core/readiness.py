"""Bounded wait for a file to become readable."""

import errno
import logging
import os
import stat
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 100
DEFAULT_RETRY_DELAY = 0.05

# errnos meaning "another process holds the file"
RETRYABLE_ERRNOS = frozenset(
    code for code in (getattr(errno, name, None) for name in ("EBUSY", "ETXTBSY", "EAGAIN", "EWOULDBLOCK")) if code
)


class GateStatus(str, Enum):
    """Outcome of a readiness wait.

    Besides READY and TIMEOUT, the gate reports paths it will never be able to
    open as a plain file without waiting for them: MISSING (vanished),
    NOT_A_FILE (FIFO, socket, device, directory) and UNREADABLE (any other
    non-transient I/O error).
    """

    READY = "ready"
    TIMEOUT = "timeout"
    MISSING = "missing"
    NOT_A_FILE = "not a file"
    UNREADABLE = "unreadable"


@dataclass(frozen=True)
class GateResult:
    """Result of :meth:`FileReadinessGate.wait_until_readable`.

    Only TIMEOUT follows ``max_attempts`` failed attempts. MISSING, NOT_A_FILE
    and UNREADABLE are returned after the first attempt; they are additions to
    the plain ready/timeout outcome so callers can tell the cases apart.
    """

    status: GateStatus
    attempts: int

    @property
    def ready(self) -> bool:
        return self.status is GateStatus.READY


class NotARegularFileError(OSError):
    """The path exists but is not a regular file."""


def _open_shared(path: str):
    """Open a regular file for reading without blocking.

    FIFOs, sockets and devices are rejected from ``stat`` before any open, and
    ``O_NONBLOCK`` keeps a FIFO swapped in between the two calls from blocking.
    """
    if not stat.S_ISREG(os.stat(path).st_mode):
        raise NotARegularFileError(path)
    fd = os.open(path, os.O_RDONLY | getattr(os, "O_NONBLOCK", 0) | getattr(os, "O_BINARY", 0))
    try:
        if not stat.S_ISREG(os.fstat(fd).st_mode):
            raise NotARegularFileError(path)
        return open(fd, "rb")
    except BaseException:
        os.close(fd)
        raise


def is_retryable(error: OSError) -> bool:
    """Check whether an open failure means the file is locked or in use."""
    return isinstance(error, PermissionError) or error.errno in RETRYABLE_ERRNOS


class FileReadinessGate:
    """Retry opening a file for reading until a writer lets go of it.

    Locked files ("access denied", "in use") are retried up to ``max_attempts``
    times with ``retry_delay`` seconds between attempts. Anything else ends the
    wait at once. The gate never raises for I/O errors; callers decide what a
    result other than READY means.
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep,
        opener: Callable[[str], object] = _open_shared,
    ):
        """Initialize gate.

        Args:
            max_attempts: Attempts before giving up
            retry_delay: Seconds to sleep after each failed attempt
            sleep: Sleep function (injectable for tests)
            opener: Function opening a path for reading, returning a closable handle
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._sleep = sleep
        self._opener = opener

    def wait_until_readable(self, path: str) -> GateResult:
        """Block until ``path`` can be opened for reading or attempts run out.

        Args:
            path: Absolute path of the file to open

        Returns:
            GateResult with the outcome and the attempts used
        """
        for attempt in range(1, self.max_attempts + 1):
            handle = None
            try:
                handle = self._opener(path)
                return GateResult(GateStatus.READY, attempt)
            except (FileNotFoundError, NotADirectoryError):
                logger.debug(f"{path} vanished before it became readable")
                return GateResult(GateStatus.MISSING, attempt)
            except (NotARegularFileError, IsADirectoryError):
                logger.debug(f"{path} is not a regular file")
                return GateResult(GateStatus.NOT_A_FILE, attempt)
            except OSError as e:
                if not is_retryable(e):
                    logger.debug(f"{path} cannot be read: {e}")
                    return GateResult(GateStatus.UNREADABLE, attempt)
                logger.debug(f"{path} not readable yet (attempt {attempt}): {e}")
                self._sleep(self.retry_delay)
            finally:
                if handle is not None:
                    handle.close()

        logger.debug(f"Gave up waiting for {path} after {self.max_attempts} attempts")
        return GateResult(GateStatus.TIMEOUT, self.max_attempts)

"""Child process invocation for the configured command."""

import logging
import subprocess

from fsblock_core.errors import CommandLaunchError
from fsblock_core.models import ResolvedCommand

logger = logging.getLogger(__name__)


def build_argv(command: ResolvedCommand, changed_name: str | None = None) -> list[str]:
    """Build the argument vector for a command invocation.

    Args:
        command: Resolved command
        changed_name: Changed file name to append, if forwarding is enabled

    Returns:
        Argument list; no shell ever sees it
    """
    argv = [command.executable_path]
    argv.extend(command.argument_prefix)
    if command.append_changed_file_name and changed_name is not None:
        argv.append(changed_name)
    return argv


class CommandRunner:
    """Spawns the configured command, optionally waiting for it to exit."""

    def __init__(self):
        self._background: list[subprocess.Popen] = []

    def launch(self, command: ResolvedCommand, changed_name: str | None = None) -> subprocess.Popen:
        """Spawn the command without waiting.

        Raises:
            CommandLaunchError: If the process cannot be started
        """
        self._reap()
        argv = build_argv(command, changed_name)
        logger.debug(f"Launching {argv}")
        try:
            process = subprocess.Popen(argv)
        except OSError as e:
            raise CommandLaunchError(command.executable_path, e) from e
        self._background.append(process)
        return process

    def wait(self, process: subprocess.Popen) -> int:
        """Block until ``process`` exits and return its exit code."""
        returncode = process.wait()
        logger.debug(f"Command {process.args[0]} exited with {returncode}")
        self._reap()
        return returncode

    def _reap(self) -> None:
        """Forget background processes that have already exited."""
        self._background = [p for p in self._background if p.poll() is None]

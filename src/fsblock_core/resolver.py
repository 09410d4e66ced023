"""Resolve a user-supplied command string to an executable on disk."""

import logging
import os
import shlex
import sys

from fsblock_core.errors import CommandNotFoundError
from fsblock_core.models import ResolvedCommand

logger = logging.getLogger(__name__)


def executable_suffixes() -> list[str]:
    """Get the suffixes tried when a bare file name does not exist.

    Returns:
        Lower-cased ``PATHEXT`` entries on Windows, empty list elsewhere
    """
    if sys.platform != "win32":
        return []
    pathext = os.environ.get("PATHEXT", ".COM;.EXE;.BAT;.CMD")
    return [ext.lower() for ext in pathext.split(os.pathsep) if ext]


def looks_like_path(token: str) -> bool:
    """Check whether a command token names a file rather than a command.

    A token is treated as a path if it contains a directory separator, starts
    with ``.`` or ``~``, or carries a drive letter.
    """
    separators = [os.sep] + ([os.altsep] if os.altsep else [])
    if any(sep in token for sep in separators):
        return True
    if token.startswith((".", "~")):
        return True
    drive, _ = os.path.splitdrive(token)
    return bool(drive)


def search_path_directories() -> list[str]:
    """Get the directories listed on the ``PATH`` environment variable."""
    return [d for d in os.environ.get("PATH", "").split(os.pathsep) if d]


def _find_with_suffix(candidate: str, suffixes: list[str]) -> str | None:
    if os.path.isfile(candidate):
        return os.path.abspath(candidate)
    for suffix in suffixes:
        if os.path.isfile(candidate + suffix):
            return os.path.abspath(candidate + suffix)
    return None


def find_executable(token: str, search_path: list[str] | None = None) -> str | None:
    """Locate an executable file for a command token.

    Explicit paths are checked as given. Bare names are checked in the current
    directory first, then in each search-path directory. Every candidate is
    also tried with the platform's executable suffixes.

    Args:
        token: Command name or path
        search_path: Directories to search (default: ``PATH``)

    Returns:
        Absolute path to the executable, or None if not found
    """
    suffixes = executable_suffixes()
    token = os.path.expanduser(token)

    if looks_like_path(token):
        return _find_with_suffix(token, suffixes)

    found = _find_with_suffix(token, suffixes)
    if found:
        return found

    dirs = search_path if search_path is not None else search_path_directories()
    for directory in dirs:
        found = _find_with_suffix(os.path.join(directory, token), suffixes)
        if found:
            return found
    return None


def split_command(raw: str) -> tuple[str, tuple[str, ...]]:
    """Split a command string, once, into its executable token and argument tokens.

    Args:
        raw: Command string, e.g. ``"make -s build"``

    Returns:
        Tuple of (executable token, remaining argument tokens)

    Raises:
        CommandNotFoundError: If the string holds no tokens or is not parseable
    """
    try:
        tokens = shlex.split(raw, posix=sys.platform != "win32")
    except ValueError as e:
        raise CommandNotFoundError(raw) from e
    if not tokens:
        raise CommandNotFoundError(raw)
    return tokens[0], tuple(tokens[1:])


def resolve_command(
    raw: str,
    forward_file_name: bool = False,
    search_path: list[str] | None = None,
) -> ResolvedCommand:
    """Resolve a command string once at startup.

    Args:
        raw: User-supplied command string
        forward_file_name: Whether to append the changed file name on invocation
        search_path: Directories to search (default: ``PATH``)

    Returns:
        ResolvedCommand pointing at an existing executable

    Raises:
        CommandNotFoundError: If no executable can be found
    """
    token, arguments = split_command(raw)
    executable = find_executable(token, search_path)
    if executable is None:
        raise CommandNotFoundError(token)

    logger.debug(f"Resolved command {token!r} to {executable}")
    return ResolvedCommand(
        executable_path=executable,
        argument_prefix=arguments,
        append_changed_file_name=forward_file_name,
    )

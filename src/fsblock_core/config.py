"""Configuration parsing and validation for fsblock sessions."""

import logging
import os
from pathlib import Path
from typing import Any

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

from fsblock_core.errors import ConfigError
from fsblock_core.filters import normalize_ignore_paths
from fsblock_core.models import SessionConfig
from fsblock_core.resolver import resolve_command

logger = logging.getLogger(__name__)

CONFIG_TABLE = "fsblock"

# key -> accepted type
_FILE_KEYS: dict[str, type] = {
    "path": str,
    "recursive": bool,
    "verbose": bool,
    "feedback": bool,
    "watch": bool,
    "command": str,
    "forward": bool,
    "wait": bool,
    "ignore": list,
}


def load_file_config(path: str | Path) -> dict[str, Any]:
    """Load session defaults from the ``[fsblock]`` table of a TOML file.

    Relative ``path`` and ``ignore`` entries are resolved against the file's
    directory.

    Args:
        path: Path to TOML config file

    Returns:
        Dict of validated option values (only keys present in the file)

    Raises:
        ConfigError: If the file is missing, unparseable or holds bad values
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Failed to parse config file {path}: {e}") from e

    table = raw.get(CONFIG_TABLE, {})
    if not isinstance(table, dict):
        raise ConfigError(f"[{CONFIG_TABLE}] in {path} must be a table")

    values: dict[str, Any] = {}
    for key, value in table.items():
        expected = _FILE_KEYS.get(key)
        if expected is None:
            raise ConfigError(f"Unknown option {key!r} in {path}")
        if not isinstance(value, expected):
            raise ConfigError(f"Option {key!r} in {path} must be {expected.__name__}")
        values[key] = value

    if "ignore" in values:
        if not all(isinstance(v, str) for v in values["ignore"]):
            raise ConfigError(f"Option 'ignore' in {path} must be a list of strings")
        values["ignore"] = list(normalize_ignore_paths(values["ignore"], base=str(path.parent.resolve())))

    if "path" in values and not os.path.isabs(values["path"]):
        values["path"] = str(path.parent.resolve() / values["path"])

    logger.debug(f"Loaded {len(values)} option(s) from {path}")
    return values


def build_session_config(
    root: str | None,
    *,
    recursive: bool = True,
    verbose: bool = False,
    feedback: bool = True,
    watch: bool = False,
    command: str | None = None,
    forward: bool = False,
    wait: bool = True,
    ignore: list[str] | None = None,
    search_path: list[str] | None = None,
) -> SessionConfig:
    """Validate options and build an immutable SessionConfig.

    The root and every ignore entry are made absolute here, once. The command,
    if given, is resolved to an existing executable.

    Raises:
        ConfigError: If the root is missing or not a directory
        CommandNotFoundError: If the command cannot be resolved
    """
    if not root:
        raise ConfigError("A path to watch is required")
    if not os.path.isdir(root):
        raise ConfigError(f"Path {root} does not exist...")

    resolved = None
    if command is not None:
        resolved = resolve_command(command, forward_file_name=forward, search_path=search_path)

    return SessionConfig(
        root=os.path.abspath(root),
        recursive=recursive,
        verbose=verbose,
        feedback=feedback,
        watch=watch,
        wait_for_command=wait,
        ignore=normalize_ignore_paths(ignore or []),
        command=resolved,
    )

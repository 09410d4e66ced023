"""Shared data models for fsblock_core."""

from dataclasses import dataclass, field
from enum import Enum


class ChangeKind(str, Enum):
    """Kinds of filesystem change delivered by a watch source."""

    CREATED = "Created"
    MODIFIED = "Modified"
    DELETED = "Deleted"
    RENAMED = "Renamed"


@dataclass(frozen=True)
class ChangeEvent:
    """A single change notification for an absolute path."""

    kind: ChangeKind
    """What happened to the path."""

    path: str
    """Absolute path of the changed file (the new path for renames)."""

    old_path: str | None = None
    """Absolute prior path, only set for renames."""

    is_directory: bool = False
    """Whether the watch source reported the path as a directory."""

    def __post_init__(self):
        if self.kind is ChangeKind.RENAMED and self.old_path is None:
            raise ValueError("Renamed events require old_path")
        if self.kind is not ChangeKind.RENAMED and self.old_path is not None:
            raise ValueError(f"{self.kind.value} events cannot carry old_path")


@dataclass(frozen=True)
class ResolvedCommand:
    """An executable verified to exist at startup, plus how to call it."""

    executable_path: str
    """Absolute path to the executable."""

    argument_prefix: tuple[str, ...] = ()
    """Argument tokens placed before the optional changed file name."""

    append_changed_file_name: bool = False
    """Whether the changed file's name (relative to root) is appended."""


@dataclass(frozen=True)
class SessionConfig:
    """Immutable settings for one watch session.

    Built by :func:`fsblock_core.config.build_session_config`, which normalizes
    ``root`` and ``ignore`` to absolute form.
    """

    root: str
    recursive: bool = True
    verbose: bool = False
    feedback: bool = True
    watch: bool = False
    wait_for_command: bool = True
    ignore: tuple[str, ...] = field(default_factory=tuple)
    command: ResolvedCommand | None = None

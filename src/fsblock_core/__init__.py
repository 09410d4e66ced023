"""fsblock-core: Event filtering, debouncing and configuration shared by fsblock frontends."""

__version__ = "0.1.0"

from fsblock_core.config import build_session_config, load_file_config
from fsblock_core.dedup import CommandThrottle, EventDeduplicator
from fsblock_core.errors import (
    CommandLaunchError,
    CommandNotFoundError,
    ConfigError,
    FsblockError,
    WatchSourceError,
)
from fsblock_core.filters import is_excluded, normalize_ignore_paths
from fsblock_core.models import ChangeEvent, ChangeKind, ResolvedCommand, SessionConfig
from fsblock_core.notifier import (
    ConsoleNotifier,
    FsblockNotifier,
    LoggingNotifier,
    NoOpNotifier,
    announce_change,
    format_change,
)
from fsblock_core.readiness import FileReadinessGate, GateResult, GateStatus
from fsblock_core.resolver import resolve_command
from fsblock_core.watchers import ChangeSource

__all__ = [
    "__version__",
    # Models
    "ChangeEvent",
    "ChangeKind",
    "ResolvedCommand",
    "SessionConfig",
    # Filtering and debouncing
    "is_excluded",
    "normalize_ignore_paths",
    "EventDeduplicator",
    "CommandThrottle",
    "FileReadinessGate",
    "GateResult",
    "GateStatus",
    # Config
    "build_session_config",
    "load_file_config",
    "resolve_command",
    "ChangeSource",
    # Notifiers
    "FsblockNotifier",
    "ConsoleNotifier",
    "LoggingNotifier",
    "NoOpNotifier",
    "format_change",
    "announce_change",
    # Errors
    "FsblockError",
    "ConfigError",
    "CommandNotFoundError",
    "CommandLaunchError",
    "WatchSourceError",
]

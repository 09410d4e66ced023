"""fsblock: Block on, or continuously watch, filesystem changes and run a command."""

__version__ = "0.1.0"

# Public API
from fsblock.dispatcher import ChangeDispatcher, DispatchOutcome
from fsblock.runner import CommandRunner
from fsblock.session import EXIT_INTERRUPTED, EXIT_OK, EXIT_WATCH_ERROR, WatchSession

__all__ = [
    "__version__",
    # Primary components
    "WatchSession",
    "ChangeDispatcher",
    "DispatchOutcome",
    "CommandRunner",
    # Exit statuses
    "EXIT_OK",
    "EXIT_INTERRUPTED",
    "EXIT_WATCH_ERROR",
]

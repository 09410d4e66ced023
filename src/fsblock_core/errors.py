"""Exception hierarchy for fsblock."""


class FsblockError(Exception):
    """Base class for all fsblock errors."""


class ConfigError(FsblockError):
    """Configuration was rejected before watching began."""


class CommandNotFoundError(ConfigError):
    """The configured command could not be resolved to an executable."""

    def __init__(self, command: str):
        super().__init__(f"Command {command} does not exist...")
        self.command = command


class CommandLaunchError(FsblockError):
    """The configured command could not be spawned for a change event."""

    def __init__(self, executable: str, cause: OSError):
        super().__init__(f"Failed to launch {executable}: {cause}")
        self.executable = executable
        self.cause = cause


class WatchSourceError(FsblockError):
    """The watch source failed and can no longer deliver notifications."""

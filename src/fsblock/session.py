"""Watch session lifecycle: continuous watch or wait for a single change."""

import logging
import threading

from fsblock_core.errors import CommandLaunchError, WatchSourceError
from fsblock_core.filters import is_excluded
from fsblock_core.models import ChangeEvent, SessionConfig
from fsblock_core.notifier import FsblockNotifier, NoOpNotifier, announce_change
from fsblock_core.watchers import ChangeSource

from fsblock.dispatcher import ChangeDispatcher

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_INTERRUPTED = -1
EXIT_WATCH_ERROR = -2


class WatchSession:
    """Owns the watch source for one root and the exit protocol.

    Continuous mode feeds every event to a ChangeDispatcher until interrupted
    or until the source fails. Single-shot mode blocks until one change outside
    the ignore set arrives, announces it and returns.
    """

    def __init__(
        self,
        config: SessionConfig,
        source: ChangeSource | None = None,
        notifier: FsblockNotifier | None = None,
        dispatcher: ChangeDispatcher | None = None,
        health_interval: float = 0.5,
    ):
        """Initialize session.

        Args:
            config: Validated session configuration
            source: Watch source (defaults to a watchdog source on config.root)
            notifier: Feedback sink (defaults to NoOpNotifier - silent)
            dispatcher: Dispatcher for continuous mode (built from config if omitted)
            health_interval: Seconds between watch-source health checks
        """
        self.config = config
        self.notifier = notifier or NoOpNotifier()
        if source is None:
            from fsblock.file_watcher import WatchdogChangeSource

            source = WatchdogChangeSource(config.root, recursive=config.recursive)
        self.source = source
        self.dispatcher = dispatcher or ChangeDispatcher(config, notifier=self.notifier)
        self.health_interval = health_interval
        self._stop_requested = threading.Event()
        self._output_closed = False

    def run(self) -> int:
        """Run in the configured mode.

        Returns:
            Exit status: EXIT_OK (single change announced, or stdout closed),
            EXIT_INTERRUPTED or EXIT_WATCH_ERROR
        """
        if self.config.verbose:
            self.notifier.diagnostic(f'Watching for changes in directory "{self.config.root}"')
        if self.config.watch:
            return self.run_continuous()
        return self.run_single_shot()

    def request_stop(self) -> None:
        """Release a continuous-mode wait as if interrupted."""
        self._stop_requested.set()

    def run_continuous(self) -> int:
        """Dispatch events until interrupted or the watch source fails."""
        try:
            self.source.start(self._deliver)
            while not self._stop_requested.wait(self.health_interval):
                self.source.check_health()
        except KeyboardInterrupt:
            pass
        except WatchSourceError as e:
            self.source.stop()
            return self._fail(e)
        finally:
            self.source.stop()

        if self._output_closed:
            return EXIT_OK
        if self.config.verbose:
            self.notifier.diagnostic("Exiting from interrupt signal...")
        return EXIT_INTERRUPTED

    def run_single_shot(self) -> int:
        """Wait for one change outside the ignore set and announce it."""
        try:
            while True:
                event = self.source.next_event()
                if event.is_directory:
                    continue
                if is_excluded(event.path, self.config.ignore):
                    logger.debug(f"Ignoring {event.path}")
                    continue
                announce_change(self.notifier, event, self.config.feedback, self.config.verbose)
                return EXIT_OK
        except KeyboardInterrupt:
            return EXIT_INTERRUPTED
        except BrokenPipeError:
            logger.debug("Output closed before the change was announced")
            return EXIT_OK
        except WatchSourceError as e:
            self.source.stop()
            return self._fail(e)
        finally:
            self.source.stop()

    def _deliver(self, event: ChangeEvent) -> None:
        try:
            self.dispatcher.dispatch(event)
        except CommandLaunchError as e:
            logger.debug(str(e))
            if self.config.verbose:
                self.notifier.diagnostic(str(e))
        except BrokenPipeError:
            # Nobody reads the feedback any more; end the session like a finished pipeline stage
            if not self._output_closed:
                logger.debug("Output closed, stopping")
                self._output_closed = True
                self._stop_requested.set()

    def _fail(self, error: WatchSourceError) -> int:
        logger.debug(f"Watch source failed: {error}")
        self.notifier.error(f"fsblock error: {error}")
        return EXIT_WATCH_ERROR

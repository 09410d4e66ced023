"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from fsblock_core.models import ChangeEvent  # noqa: E402
from fsblock_core.readiness import GateResult, GateStatus  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class RecordingNotifier:
    """Notifier that keeps every line it receives."""

    def __init__(self):
        self.announced = []
        self.diagnostics = []
        self.errors = []

    def announce(self, line):
        self.announced.append(line)

    def diagnostic(self, message):
        self.diagnostics.append(message)

    def error(self, message):
        self.errors.append(message)


class FakeProcess:
    """Stand-in for subprocess.Popen."""

    def __init__(self, args):
        self.args = args


class FakeRunner:
    """CommandRunner double that records launches instead of spawning."""

    def __init__(self, clock=None, launch_error=None):
        self.clock = clock
        self.launch_error = launch_error
        self.launches = []
        self.waited = []

    def launch(self, command, changed_name=None):
        if self.launch_error is not None:
            raise self.launch_error
        self.launches.append((command, changed_name))
        return FakeProcess([command.executable_path, changed_name])

    def wait(self, process):
        self.waited.append(process)
        return 0


class FakeGate:
    """Readiness gate that is always ready and records checked paths."""

    def __init__(self, status=GateStatus.READY):
        self.status = status
        self.checked = []

    def wait_until_readable(self, path):
        self.checked.append(path)
        return GateResult(self.status, 1)


class FakeSource:
    """ChangeSource double fed from a list of events."""

    def __init__(self, events=(), health_error=None):
        self.events = list(events)
        self.health_error = health_error
        self.on_change = None
        self.started = False
        self.stopped = False
        self.health_checks = 0

    def start(self, on_change):
        self.started = True
        self.on_change = on_change
        for event in self.events:
            on_change(event)

    def stop(self):
        self.stopped = True

    def next_event(self) -> ChangeEvent:
        if not self.events:
            raise KeyboardInterrupt()
        return self.events.pop(0)

    def check_health(self):
        self.health_checks += 1
        if self.health_error is not None:
            raise self.health_error


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def gate():
    return FakeGate()


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def watched_root(tmp_path):
    """Create a watched directory with a tmp/ subdirectory."""
    root = tmp_path / "watched"
    (root / "tmp").mkdir(parents=True)
    return root

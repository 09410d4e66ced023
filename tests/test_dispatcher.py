"""Tests for ChangeDispatcher - filtering, debouncing, announcing and throttled commands."""

import os
import threading

import pytest

from conftest import FakeRunner
from fsblock.dispatcher import ChangeDispatcher, DispatchOutcome
from fsblock_core.dedup import THROTTLE_INTERVAL
from fsblock_core.errors import CommandLaunchError
from fsblock_core.models import ChangeEvent, ChangeKind, ResolvedCommand, SessionConfig
from fsblock_core.readiness import FileReadinessGate, GateStatus

ROOT = "/watched"
COMMAND = ResolvedCommand("/usr/local/bin/on-change", argument_prefix=("--quiet",), append_changed_file_name=True)


def modified(path):
    return ChangeEvent(ChangeKind.MODIFIED, path)


def deleted(path):
    return ChangeEvent(ChangeKind.DELETED, path)


@pytest.fixture
def make_dispatcher(clock, notifier, gate, runner):
    """Build a dispatcher wired to the test doubles."""

    def _make(**overrides):
        command = overrides.pop("command", None)
        directories = overrides.pop("directories", set())
        config = SessionConfig(root=ROOT, ignore=("/watched/tmp",), command=command, **overrides)
        return ChangeDispatcher(
            config,
            notifier=notifier,
            runner=runner,
            gate=gate,
            clock=clock,
            is_directory=lambda path: path in directories,
        )

    return _make


class TestFilteringAndDebounce:
    """Events that never reach the announcement step."""

    def test_directory_event_dropped(self, make_dispatcher, notifier):
        dispatcher = make_dispatcher()
        event = ChangeEvent(ChangeKind.CREATED, "/watched/sub", is_directory=True)

        assert dispatcher.dispatch(event) is DispatchOutcome.DIRECTORY
        assert notifier.announced == []

    def test_existing_directory_dropped(self, make_dispatcher, notifier):
        dispatcher = make_dispatcher(directories={"/watched/sub"})

        assert dispatcher.dispatch(modified("/watched/sub")) is DispatchOutcome.DIRECTORY
        assert notifier.announced == []

    def test_excluded_path(self, make_dispatcher, notifier, gate):
        dispatcher = make_dispatcher()

        assert dispatcher.dispatch(modified("/watched/tmp/b.txt")) is DispatchOutcome.EXCLUDED
        assert notifier.announced == []
        assert gate.checked == []

    def test_duplicate_suppressed(self, make_dispatcher, notifier, clock):
        dispatcher = make_dispatcher()

        assert dispatcher.dispatch(modified("/watched/a.txt")) is DispatchOutcome.ANNOUNCED
        clock.advance(0.005)
        assert dispatcher.dispatch(modified("/watched/a.txt")) is DispatchOutcome.SUPPRESSED
        assert notifier.announced == ['Modified:"/watched/a.txt"']

    def test_repeat_after_window_announced(self, make_dispatcher, notifier, clock):
        dispatcher = make_dispatcher()

        dispatcher.dispatch(modified("/watched/a.txt"))
        clock.advance(0.15)
        dispatcher.dispatch(modified("/watched/a.txt"))

        assert len(notifier.announced) == 2

    def test_delete_skips_gate(self, make_dispatcher, gate):
        dispatcher = make_dispatcher()

        dispatcher.dispatch(deleted("/watched/a.txt"))

        assert gate.checked == []

    def test_delete_right_after_modify_announced(self, make_dispatcher, notifier, clock):
        dispatcher = make_dispatcher()

        dispatcher.dispatch(modified("/watched/a.txt"))
        clock.advance(0.001)

        assert dispatcher.dispatch(deleted("/watched/a.txt")) is DispatchOutcome.ANNOUNCED
        assert dispatcher.deduplicator.last_accepted("/watched/a.txt") is None

    def test_gate_timeout_still_announced(self, make_dispatcher, notifier, gate):
        gate.status = GateStatus.TIMEOUT
        dispatcher = make_dispatcher()

        assert dispatcher.dispatch(modified("/watched/a.txt")) is DispatchOutcome.ANNOUNCED
        assert notifier.announced == ['Modified:"/watched/a.txt"']


class TestAnnouncement:
    """Feedback and verbose output."""

    def test_rename_line(self, make_dispatcher, notifier):
        dispatcher = make_dispatcher()
        event = ChangeEvent(ChangeKind.RENAMED, "/watched/new.txt", old_path="/watched/old.txt")

        dispatcher.dispatch(event)

        assert notifier.announced == ['Renamed:"/watched/new.txt"<-"/watched/old.txt"']

    def test_feedback_disabled(self, make_dispatcher, notifier):
        dispatcher = make_dispatcher(feedback=False)

        assert dispatcher.dispatch(modified("/watched/a.txt")) is DispatchOutcome.ANNOUNCED
        assert notifier.announced == []

    def test_quiet_without_verbose(self, make_dispatcher, notifier, clock):
        dispatcher = make_dispatcher()

        dispatcher.dispatch(modified("/watched/tmp/b.txt"))
        dispatcher.dispatch(modified("/watched/a.txt"))
        clock.advance(0.01)
        dispatcher.dispatch(modified("/watched/a.txt"))

        assert notifier.diagnostics == []

    def test_verbose_diagnostics(self, make_dispatcher, notifier, gate, clock):
        gate.status = GateStatus.TIMEOUT
        dispatcher = make_dispatcher(verbose=True)

        dispatcher.dispatch(modified("/watched/tmp/b.txt"))
        dispatcher.dispatch(modified("/watched/a.txt"))
        clock.advance(0.01)
        dispatcher.dispatch(modified("/watched/a.txt"))

        text = "\n".join(notifier.diagnostics)
        assert 'Ignoring "/watched/tmp/b.txt"' in text
        assert "not readable (timeout" in text
        assert 'Suppressed repeat Modified for "/watched/a.txt"' in text
        # The announced line is echoed to the diagnostic stream
        assert 'Modified:"/watched/a.txt"' in notifier.diagnostics


class TestCommandInvocation:
    """Throttled command launches."""

    def test_invokes_with_relative_name(self, make_dispatcher, runner, gate):
        dispatcher = make_dispatcher(command=COMMAND)

        assert dispatcher.dispatch(modified("/watched/src/a.txt")) is DispatchOutcome.INVOKED
        assert runner.launches == [(COMMAND, "src/a.txt")]
        assert gate.checked == ["/watched/src/a.txt", COMMAND.executable_path]

    def test_waits_when_configured(self, make_dispatcher, runner):
        dispatcher = make_dispatcher(command=COMMAND, wait_for_command=True)

        dispatcher.dispatch(modified("/watched/a.txt"))

        assert len(runner.waited) == 1

    def test_no_wait_when_disabled(self, make_dispatcher, runner):
        dispatcher = make_dispatcher(command=COMMAND, wait_for_command=False)

        dispatcher.dispatch(modified("/watched/a.txt"))

        assert runner.launches
        assert runner.waited == []

    def test_throttle_spacing(self, make_dispatcher, runner, clock, notifier):
        dispatcher = make_dispatcher(command=COMMAND)
        invoked_at = []

        for i in range(15):
            if dispatcher.dispatch(modified(f"/watched/f{i}.txt")) is DispatchOutcome.INVOKED:
                invoked_at.append(clock())
            clock.advance(0.07)

        # Every event is announced, only some run the command
        assert len(notifier.announced) == 15
        assert len(invoked_at) == len(runner.launches) == 5
        gaps = [b - a for a, b in zip(invoked_at, invoked_at[1:])]
        assert all(gap >= THROTTLE_INTERVAL for gap in gaps)

    def test_invocation_refreshes_dedup_entry(self, make_dispatcher, clock):
        dispatcher = make_dispatcher(command=COMMAND)

        dispatcher.dispatch(modified("/watched/a.txt"))

        assert dispatcher.deduplicator.last_accepted("/watched/a.txt") == clock()
        assert dispatcher.throttle.last_invocation == clock()

    def test_delete_invocation_keeps_entry_cleared(self, make_dispatcher):
        dispatcher = make_dispatcher(command=COMMAND)

        dispatcher.dispatch(deleted("/watched/a.txt"))

        assert dispatcher.deduplicator.last_accepted("/watched/a.txt") is None

    def test_launch_error_updates_throttle_and_raises(self, clock, notifier, gate):
        runner = FakeRunner(launch_error=CommandLaunchError(COMMAND.executable_path, OSError("boom")))
        config = SessionConfig(root=ROOT, command=COMMAND)
        dispatcher = ChangeDispatcher(
            config, notifier=notifier, runner=runner, gate=gate, clock=clock, is_directory=lambda p: False
        )

        with pytest.raises(CommandLaunchError):
            dispatcher.dispatch(modified("/watched/a.txt"))

        assert dispatcher.throttle.last_invocation == clock()
        # The dispatcher keeps working afterwards
        clock.advance(0.01)
        assert dispatcher.dispatch(modified("/watched/b.txt")) is DispatchOutcome.THROTTLED


class TestScenarios:
    """End-to-end event sequences."""

    def test_ignore_and_debounce_sequence(self, make_dispatcher, notifier, clock):
        dispatcher = make_dispatcher()

        dispatcher.dispatch(modified("/watched/a.txt"))
        clock.advance(0.005)
        dispatcher.dispatch(modified("/watched/a.txt"))
        clock.advance(0.005)
        dispatcher.dispatch(modified("/watched/tmp/b.txt"))
        clock.advance(0.005)
        dispatcher.dispatch(deleted("/watched/a.txt"))

        assert notifier.announced == ['Modified:"/watched/a.txt"', 'Deleted:"/watched/a.txt"']

    def test_throttle_forwards_first_path(self, make_dispatcher, notifier, runner, clock):
        dispatcher = make_dispatcher(command=COMMAND, wait_for_command=False)

        first = dispatcher.dispatch(modified("/watched/a.txt"))
        clock.advance(0.01)
        second = dispatcher.dispatch(modified("/watched/b.txt"))

        assert (first, second) == (DispatchOutcome.INVOKED, DispatchOutcome.THROTTLED)
        assert notifier.announced == ['Modified:"/watched/a.txt"', 'Modified:"/watched/b.txt"']
        assert runner.launches == [(COMMAND, "a.txt")]


class TestRealFiles:
    """Dispatch against files on disk with the real readiness gate."""

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="needs FIFOs")
    def test_fifo_does_not_stall_later_events(self, tmp_path, notifier, clock):
        fifo = tmp_path / "pipe"
        os.mkfifo(fifo)
        regular = tmp_path / "a.txt"
        regular.write_text("data")
        config = SessionConfig(root=str(tmp_path))
        dispatcher = ChangeDispatcher(
            config, notifier=notifier, gate=FileReadinessGate(max_attempts=3, retry_delay=0.01), clock=clock
        )

        def feed():
            dispatcher.dispatch(ChangeEvent(ChangeKind.CREATED, str(fifo)))
            dispatcher.dispatch(ChangeEvent(ChangeKind.MODIFIED, str(regular)))

        worker = threading.Thread(target=feed, daemon=True)
        worker.start()
        worker.join(2.0)

        assert not worker.is_alive(), "dispatcher stalled on a FIFO"
        assert f'Modified:"{regular}"' in notifier.announced

"""Tests for the consume-dispatch loop."""

import io

import pytest

from conftest import RecordingAction

from eagleeye.actions import Action, PrintAction
from eagleeye.channel import ChannelClosed, ProducerError
from eagleeye.command import CommandAction
from eagleeye.dispatcher import Dispatcher
from eagleeye.events import ChangeKind, ExecutionResult, RawEvent


class ExplodingAction(Action):
    name = "exploding"

    def handle_change(self, event):
        raise ValueError("unexpected")


@pytest.fixture
def dispatcher(registry, channel):
    return Dispatcher(registry, channel)


class TestDispatch:
    @pytest.mark.parametrize("kind", [ChangeKind.ACCESS, ChangeKind.OTHER])
    def test_non_change_events_run_nothing(self, dispatcher, registry, log, kind):
        registry.register("/tmp/f", [RecordingAction("a", log)])

        result = dispatcher.dispatch(RawEvent.of(kind, "/tmp/f"))

        assert result == ExecutionResult(num_actions_run=0, was_change_event=False)
        assert log == []

    @pytest.mark.parametrize("kind", [ChangeKind.CREATE, ChangeKind.MODIFY, ChangeKind.REMOVE])
    def test_actions_run_once_in_order(self, dispatcher, registry, log, kind):
        registry.register("/tmp/f", [RecordingAction(label, log) for label in ("one", "two", "three")])
        event = RawEvent.of(kind, "/tmp/f")

        result = dispatcher.dispatch(event)

        assert result == ExecutionResult(num_actions_run=3, was_change_event=True)
        assert log == [("one", event), ("two", event), ("three", event)]

    def test_event_without_paths(self, dispatcher, registry, log):
        registry.register("/tmp/f", [RecordingAction("a", log)])

        result = dispatcher.dispatch(RawEvent.of(ChangeKind.MODIFY))

        assert result == ExecutionResult(num_actions_run=0, was_change_event=True)
        assert log == []

    def test_unregistered_path_is_skipped(self, dispatcher, registry, log, caplog):
        registry.register("/tmp/f", [RecordingAction("a", log)])

        result = dispatcher.dispatch(RawEvent.of(ChangeKind.MODIFY, "/tmp/other", "/tmp/f"))

        assert result == ExecutionResult(num_actions_run=1, was_change_event=True)
        assert [label for label, _ in log] == ["a"]
        assert "No actions registered for /tmp/other" in caplog.text

    def test_failure_does_not_stop_siblings(self, dispatcher, registry, log):
        registry.register(
            "/tmp/f",
            [
                RecordingAction("before", log),
                RecordingAction("broken", log, fail=True),
                ExplodingAction(),
                RecordingAction("after", log),
            ],
        )

        result = dispatcher.dispatch(RawEvent.of(ChangeKind.MODIFY, "/tmp/f"))

        assert result == ExecutionResult(num_actions_run=2, was_change_event=True)
        assert [label for label, _ in log] == ["before", "broken", "after"]
        assert dispatcher.stats.actions_failed == 2

    def test_failure_does_not_stop_other_paths(self, dispatcher, registry, log):
        registry.register("/tmp/a", [RecordingAction("a", log, fail=True)])
        registry.register("/tmp/b", [RecordingAction("b", log)])

        result = dispatcher.dispatch(RawEvent.of(ChangeKind.MODIFY, "/tmp/a", "/tmp/b"))

        assert result.num_actions_run == 1
        assert [label for label, _ in log] == ["a", "b"]

    def test_missing_program_is_an_isolated_failure(self, dispatcher, registry, log):
        registry.register(
            "/tmp/f",
            [CommandAction("eagleeye-no-such-program-4711 {:p}", quiet=True), RecordingAction("a", log)],
        )

        result = dispatcher.dispatch(RawEvent.of(ChangeKind.MODIFY, "/tmp/f"))

        assert result == ExecutionResult(num_actions_run=1, was_change_event=True)


class TestWaitAndExecute:
    def test_consumes_one_event(self, dispatcher, registry, channel, log):
        registry.register("/tmp/f", [RecordingAction("a", log)])
        channel.send(RawEvent.of(ChangeKind.MODIFY, "/tmp/f"))
        channel.send(RawEvent.of(ChangeKind.ACCESS, "/tmp/f"))

        assert dispatcher.wait_and_execute() == ExecutionResult(1, True)
        assert dispatcher.wait_and_execute() == ExecutionResult(0, False)
        assert dispatcher.stats.events == 2
        assert dispatcher.stats.change_events == 1

    def test_producer_failure_propagates(self, dispatcher, channel):
        channel.fail(OSError("overflow"))

        with pytest.raises(ProducerError):
            dispatcher.wait_and_execute()

    def test_loop_continues_after_producer_failure(self, dispatcher, registry, channel, log):
        registry.register("/tmp/f", [RecordingAction("a", log)])
        channel.fail(OSError("overflow"))
        channel.send(RawEvent.of(ChangeKind.MODIFY, "/tmp/f"))

        with pytest.raises(ProducerError):
            dispatcher.wait_and_execute()
        assert dispatcher.wait_and_execute() == ExecutionResult(1, True)


class TestRun:
    def test_reports_results_until_caller_stops(self, dispatcher, registry, channel, log):
        registry.register("/tmp/f", [RecordingAction("a", log)])
        channel.send(RawEvent.of(ChangeKind.CREATE, "/tmp/f"))
        channel.fail(OSError("overflow"))
        channel.send(RawEvent.of(ChangeKind.REMOVE, "/tmp/f"))
        channel.close()

        results = []
        errors = []

        def on_error(error):
            errors.append(error)
            return not isinstance(error, ChannelClosed)

        with pytest.raises(ChannelClosed):
            dispatcher.run(on_result=results.append, on_error=on_error)

        assert results == [ExecutionResult(1, True), ExecutionResult(1, True)]
        assert len(errors) == 2

    def test_without_error_handler_failure_propagates(self, dispatcher, channel):
        channel.close()

        with pytest.raises(ChannelClosed):
            dispatcher.run()


def test_print_action_end_to_end(registry, channel):
    stream = io.StringIO()
    registry.register("/tmp/f", [PrintAction(stream=stream)])
    channel.send(RawEvent.of(ChangeKind.MODIFY, "/tmp/f"))

    result = Dispatcher(registry, channel).wait_and_execute()

    assert result == ExecutionResult(num_actions_run=1, was_change_event=True)
    assert stream.getvalue() == "modified: /tmp/f\n"


def test_command_action_end_to_end(registry, channel, tmp_path):
    done = tmp_path / "done"
    registry.register(tmp_path / "f", [CommandAction(f"touch {done}", quiet=True)])
    channel.send(RawEvent.of(ChangeKind.CREATE, tmp_path / "f"))

    result = Dispatcher(registry, channel).wait_and_execute()

    assert result == ExecutionResult(num_actions_run=1, was_change_event=True)
    assert done.exists()

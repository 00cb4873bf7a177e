"""Tests for change classification."""

from pathlib import Path

import pytest

from eagleeye.events import ChangeKind, ExecutionResult, RawEvent, is_change


class TestIsChange:
    @pytest.mark.parametrize("kind", [ChangeKind.CREATE, ChangeKind.MODIFY, ChangeKind.REMOVE])
    def test_file_changes(self, kind):
        assert is_change(RawEvent.of(kind, "/tmp/a")) is True

    @pytest.mark.parametrize("kind", [ChangeKind.ACCESS, ChangeKind.OTHER])
    def test_noise_is_not_a_change(self, kind):
        assert is_change(RawEvent.of(kind, "/tmp/a")) is False

    def test_classification_ignores_paths(self):
        assert is_change(RawEvent.of(ChangeKind.MODIFY)) is True
        assert is_change(RawEvent.of(ChangeKind.ACCESS)) is False


class TestRawEvent:
    def test_of_converts_paths(self):
        event = RawEvent.of(ChangeKind.CREATE, "/tmp/a", Path("/tmp/b"))

        assert event.paths == (Path("/tmp/a"), Path("/tmp/b"))
        assert event.first_path == Path("/tmp/a")

    def test_first_path_of_empty_event(self):
        assert RawEvent.of(ChangeKind.REMOVE).first_path is None


def test_execution_result_defaults():
    assert ExecutionResult() == ExecutionResult(num_actions_run=0, was_change_event=False)

"""Shared fixtures and fakes for the watcher tests."""

from __future__ import annotations

from pathlib import Path
from typing import List, Set

import pytest

from eagleeye.actions import Action, ExecutionFailure
from eagleeye.channel import EventChannel
from eagleeye.events import RawEvent
from eagleeye.notifier import SubscriptionError
from eagleeye.registry import WatchRegistry


class RecordingAction(Action):
    """Appends ``(label, event)`` to a shared log when invoked."""

    def __init__(self, label: str, log: List[tuple], fail: bool = False):
        self.name = label
        self._log = log
        self._fail = fail

    def handle_change(self, event: RawEvent) -> None:
        self._log.append((self.name, event))
        if self._fail:
            raise ExecutionFailure(f"{self.name} failed")


class StubNotifier:
    """Records subscriptions; paths in ``refuse`` fail to subscribe."""

    def __init__(self):
        self.subscribed: List[Path] = []
        self.refuse: Set[Path] = set()

    def subscribe(self, path: Path) -> None:
        if path in self.refuse:
            raise SubscriptionError(f"Could not watch {path}")
        self.subscribed.append(path)


@pytest.fixture
def log() -> List[tuple]:
    return []


@pytest.fixture
def notifier() -> StubNotifier:
    return StubNotifier()


@pytest.fixture
def registry(notifier: StubNotifier) -> WatchRegistry:
    return WatchRegistry(notifier)


@pytest.fixture
def channel() -> EventChannel:
    return EventChannel()

"""Consume-dispatch loop routing change events to registered actions."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from .actions import Action, ActionError
from .channel import ProducerError
from .events import ExecutionResult, RawEvent, is_change
from .registry import WatchRegistry

logger = logging.getLogger(__name__)


class EventSource(Protocol):
    def receive(self) -> RawEvent:
        ...


ResultCallback = Callable[[ExecutionResult], None]
ErrorCallback = Callable[[ProducerError], bool]


@dataclass
class DispatchStats:
    """Counters accumulated across dispatched events."""

    events: int = 0
    change_events: int = 0
    actions_run: int = 0
    actions_failed: int = 0


class Dispatcher:
    """Single consumer that drains events and invokes bound actions.

    Each call to :meth:`wait_and_execute` blocks for one event and runs every
    matching action to completion on the calling thread, so a slow action
    delays the next event. Failures of individual actions are logged and do
    not stop the remaining actions or paths.
    """

    def __init__(self, registry: WatchRegistry, source: EventSource):
        self._registry = registry
        self._source = source
        self.stats = DispatchStats()

    def wait_and_execute(self) -> ExecutionResult:
        """Wait for the next event and dispatch it.

        Producer failures propagate as :class:`~eagleeye.channel.ProducerError`.
        """

        event = self._source.receive()
        return self.dispatch(event)

    def dispatch(self, event: RawEvent) -> ExecutionResult:
        self.stats.events += 1
        if not is_change(event):
            logger.debug("Ignoring %s event for %s", event.kind.value, list(map(str, event.paths)))
            return ExecutionResult(num_actions_run=0, was_change_event=False)

        self.stats.change_events += 1
        if not event.paths:
            logger.warning("Received %s event without any path", event.kind.value)
            return ExecutionResult(num_actions_run=0, was_change_event=True)

        num_run = 0
        for path in event.paths:
            actions = self._registry.resolve(path)
            if actions is None:
                logger.warning("No actions registered for %s", path)
                continue
            for action in actions:
                if self._invoke(action, event, path):
                    num_run += 1

        self.stats.actions_run += num_run
        return ExecutionResult(num_actions_run=num_run, was_change_event=True)

    def run(
        self,
        on_result: Optional[ResultCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        """Dispatch events forever.

        ``on_error`` receives producer failures and returns True to keep
        looping; without it the failure propagates.
        """

        while True:
            try:
                result = self.wait_and_execute()
            except ProducerError as exc:
                if on_error is None or not on_error(exc):
                    raise
                continue
            if on_result is not None:
                on_result(result)

    def _invoke(self, action: Action, event: RawEvent, path) -> bool:
        try:
            action.handle_change(event)
        except ActionError as exc:
            self.stats.actions_failed += 1
            logger.error("Action %s failed for %s: %s", action.name, path, exc)
            return False
        except Exception:
            self.stats.actions_failed += 1
            logger.exception("Action %s raised unexpectedly for %s", action.name, path)
            return False
        return True

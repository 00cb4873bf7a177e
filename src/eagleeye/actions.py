"""Action contract and the built-in print action."""
from __future__ import annotations

import abc
import logging
import sys
from typing import Dict, Optional, TextIO

from .events import ChangeKind, RawEvent

logger = logging.getLogger(__name__)


class ActionError(Exception):
    """Base class for failures reported by an action."""


class ExecutionFailure(ActionError):
    """Raised when an action could not complete its side effect."""


class NoPathError(ExecutionFailure):
    """Raised when an event carries no affected paths."""


class EmptyCommandError(ExecutionFailure):
    """Raised when a command template renders to nothing."""


class SpawnFailure(ExecutionFailure):
    """Raised when a command's program cannot be started."""

    def __init__(self, program: str, template: str, reason: object = None):
        message = f"Could not execute '{program}' (from command '{template}')"
        if reason is not None:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.program = program
        self.template = template


class Action(abc.ABC):
    """Reacts to one change event.

    Implementations run synchronously and signal failure by raising
    :class:`ActionError`. They must not rely on other actions bound to the
    same path having run, or not run, for the event.
    """

    name = "action"

    @abc.abstractmethod
    def handle_change(self, event: RawEvent) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"


CHANGE_DESCRIPTIONS: Dict[ChangeKind, str] = {
    ChangeKind.ACCESS: "accessed",
    ChangeKind.CREATE: "created",
    ChangeKind.MODIFY: "modified",
    ChangeKind.REMOVE: "removed",
}

UNKNOWN_CHANGE = "Unknown change"


def describe_change(kind: ChangeKind) -> str:
    return CHANGE_DESCRIPTIONS.get(kind, UNKNOWN_CHANGE)


class PrintAction(Action):
    """Writes one line per affected path describing the change."""

    name = "print"

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    def handle_change(self, event: RawEvent) -> None:
        if not event.paths:
            raise NoPathError(f"No path in {event.kind.value} event")

        stream = self._stream if self._stream is not None else sys.stdout
        description = describe_change(event.kind)
        for path in event.paths:
            print(f"{description}: {path}", file=stream)
        stream.flush()

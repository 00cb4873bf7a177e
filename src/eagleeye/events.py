"""Event models shared across watcher components."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Tuple


class ChangeKind(str, Enum):
    """Kinds of raw notifications delivered by the notifier."""

    ACCESS = "access"
    CREATE = "create"
    MODIFY = "modify"
    REMOVE = "remove"
    OTHER = "other"


CHANGE_KINDS = frozenset({ChangeKind.CREATE, ChangeKind.MODIFY, ChangeKind.REMOVE})


@dataclass(frozen=True)
class RawEvent:
    """A single notification, consumed once by the dispatcher."""

    kind: ChangeKind
    paths: Tuple[Path, ...] = field(default_factory=tuple)

    @classmethod
    def of(cls, kind: ChangeKind, *paths) -> "RawEvent":
        return cls(kind=kind, paths=tuple(Path(p) for p in paths))

    @property
    def first_path(self):
        return self.paths[0] if self.paths else None


@dataclass(frozen=True)
class ExecutionResult:
    """Per-event summary reported back to the caller of the dispatcher."""

    num_actions_run: int = 0
    was_change_event: bool = False


def is_change(event: RawEvent) -> bool:
    """Return True for create/modify/remove notifications.

    Access-only and unrecognized notifications never trigger actions.
    """

    return event.kind in CHANGE_KINDS

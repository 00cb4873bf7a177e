"""Binding of watched paths to their ordered actions."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Protocol, Tuple, Union

from .actions import Action
from .notifier import SubscriptionError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class Subscriber(Protocol):
    def subscribe(self, path: Path) -> None:
        ...


@dataclass(frozen=True)
class WatchEntry:
    """A watched path and the actions bound to it at registration time."""

    path: Path
    actions: Tuple[Action, ...]


def normalize_path(path: PathLike) -> Path:
    # Symlinks are followed so the watch and the event paths name the target.
    return Path(path).resolve()


class WatchRegistry:
    """Maps each watched path to its ordered list of actions.

    Registration happens during setup, before the dispatcher starts
    consuming; afterwards the registry is only read.
    """

    def __init__(self, notifier: Subscriber):
        self._notifier = notifier
        self._entries: Dict[Path, WatchEntry] = {}

    def register(self, path: PathLike, actions: Iterable[Action]) -> bool:
        """Watch ``path`` and bind ``actions`` to it, replacing earlier ones.

        Returns False when the notifier refused the subscription; the path
        then stays unregistered and never triggers anything.
        """

        key = normalize_path(path)
        bound = tuple(actions)
        try:
            self._notifier.subscribe(key)
        except (SubscriptionError, OSError) as exc:
            logger.error("Error adding watch for %s: %s", key, exc)
            return False

        if key in self._entries:
            logger.info("Replacing actions for %s", key)
        self._entries[key] = WatchEntry(path=key, actions=bound)
        logger.info(
            "Watching %s with %s action(s): %s",
            key,
            len(bound),
            ", ".join(action.name for action in bound) or "<none>",
        )
        return True

    def resolve(self, path: PathLike) -> Optional[Tuple[Action, ...]]:
        """Exact-match lookup of the actions bound to ``path``."""

        entry = self._entries.get(normalize_path(path))
        if entry is None:
            return None
        return entry.actions

    def paths(self) -> List[Path]:
        return list(self._entries)

    def __iter__(self) -> Iterator[WatchEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        return normalize_path(path) in self._entries

"""Filesystem notification producer backed by watchdog."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Optional, Set

from watchdog.events import (
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CLOSED_NO_WRITE,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    EVENT_TYPE_OPENED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .channel import EventChannel
from .events import ChangeKind, RawEvent

logger = logging.getLogger(__name__)

# Closing a file, even after writing, is reported as an access; the write
# itself arrives as a separate modify notification.
_KIND_BY_EVENT_TYPE: Dict[str, ChangeKind] = {
    EVENT_TYPE_CREATED: ChangeKind.CREATE,
    EVENT_TYPE_MODIFIED: ChangeKind.MODIFY,
    EVENT_TYPE_MOVED: ChangeKind.MODIFY,
    EVENT_TYPE_DELETED: ChangeKind.REMOVE,
    EVENT_TYPE_OPENED: ChangeKind.ACCESS,
    EVENT_TYPE_CLOSED: ChangeKind.ACCESS,
    EVENT_TYPE_CLOSED_NO_WRITE: ChangeKind.ACCESS,
}


class SubscriptionError(Exception):
    """Raised when a path cannot be watched."""


def translate(event: FileSystemEvent) -> RawEvent:
    """Convert a watchdog event into a :class:`RawEvent`."""

    kind = _KIND_BY_EVENT_TYPE.get(event.event_type, ChangeKind.OTHER)
    paths = [event.src_path]
    dest_path = getattr(event, "dest_path", "")
    if dest_path:
        paths.append(dest_path)
    return RawEvent.of(kind, *(os.fsdecode(path) for path in paths if path))


class _ChannelHandler(FileSystemEventHandler):
    """Forwards every watchdog notification into an event channel."""

    def __init__(self, channel: EventChannel):
        super().__init__()
        self._channel = channel

    def on_any_event(self, event: FileSystemEvent) -> None:
        try:
            raw = translate(event)
        except Exception as exc:
            logger.debug("Failed to translate %r", event)
            self._channel.fail(exc)
            return
        self._channel.send(raw)


class WatchdogNotifier:
    """Subscribes paths with the OS notifier and feeds an event channel.

    Each path is watched non-recursively. The watchdog observer runs its own
    daemon thread; the dispatcher consumes from :attr:`channel`.
    """

    def __init__(self, channel: Optional[EventChannel] = None, observer=None):
        self.channel = channel if channel is not None else EventChannel()
        self._observer = observer if observer is not None else Observer()
        self._observer.daemon = True
        self._handler = _ChannelHandler(self.channel)
        self._subscribed: Set[Path] = set()

    def start(self) -> None:
        if not self._observer.is_alive():
            self._observer.start()

    def subscribe(self, path: Path) -> None:
        """Start delivering create/modify/remove notifications for ``path``."""

        if path in self._subscribed:
            return
        if not path.exists():
            raise SubscriptionError(f"Path does not exist: {path}")

        # Scheduling on a running observer starts the emitter immediately, so
        # OS-level failures surface here rather than on a background thread.
        self.start()
        try:
            self._observer.schedule(self._handler, str(path), recursive=False)
        except OSError as exc:
            raise SubscriptionError(f"Could not watch {path}: {exc}") from exc

        self._subscribed.add(path)
        logger.debug("Subscribed %s", path)

    def stop(self) -> None:
        if self._observer.is_alive():
            self._observer.stop()
            self._observer.join()
        self.channel.close()

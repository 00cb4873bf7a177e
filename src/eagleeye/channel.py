"""Blocking hand-off between the notifier and the dispatcher."""
from __future__ import annotations

import logging
import queue
from typing import Optional

from .events import RawEvent

logger = logging.getLogger(__name__)


class ProducerError(Exception):
    """Raised by :meth:`EventChannel.receive` when the producer failed."""


class ChannelClosed(ProducerError):
    """Raised once the channel has been closed and drained."""


class ReceiveTimeout(Exception):
    """Raised when no event arrived within the requested timeout."""


_CLOSED = object()


class EventChannel:
    """Ordered multiple-producer, single-consumer queue of raw events.

    Producers call :meth:`send`, :meth:`fail` or :meth:`close` from any
    thread; the single consumer blocks in :meth:`receive`. An optional
    ``maxsize`` bounds the buffer, in which case producers block while the
    consumer is busy.
    """

    def __init__(self, maxsize: int = 0):
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, event: RawEvent) -> None:
        if self._closed:
            logger.debug("Dropping %s sent after close", event)
            return
        self._queue.put(event)

    def fail(self, error: BaseException) -> None:
        """Deliver a producer-side failure to the consumer."""

        self._queue.put(error)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put(_CLOSED)

    def receive(self, timeout: Optional[float] = None) -> RawEvent:
        """Block until the next event arrives.

        Raises ProducerError for failures delivered with :meth:`fail`,
        ChannelClosed once the channel has been closed and ReceiveTimeout
        when ``timeout`` elapses first.
        """

        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty as exc:
            raise ReceiveTimeout(f"No event received within {timeout} seconds") from exc

        if item is _CLOSED:
            # keep the marker so later receives fail the same way
            self._queue.put(_CLOSED)
            raise ChannelClosed("Event channel closed")
        if isinstance(item, BaseException):
            raise ProducerError(f"Event producer failed: {item}") from item
        return item  # type: ignore[return-value]

    def __len__(self) -> int:
        return self._queue.qsize()

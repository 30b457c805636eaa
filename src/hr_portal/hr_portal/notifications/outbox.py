from __future__ import annotations

import logging
import queue
from typing import List, Protocol

from .model import Notification

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 1000


class NotificationOutbox(Protocol):
    """Where services drop outbound messages. Delivery happens elsewhere."""

    def enqueue(self, notification: Notification) -> None:
        raise NotImplementedError


class QueueOutbox(NotificationOutbox):
    """In-process queue drained by :class:`NotificationDispatcher`."""

    def __init__(self, maxsize: int = DEFAULT_QUEUE_SIZE, *, enabled: bool = True):
        self._queue: "queue.Queue[Notification]" = queue.Queue(maxsize=maxsize)
        self.enabled = enabled

    def enqueue(self, notification: Notification) -> None:
        if not self.enabled:
            logger.debug("Notifications disabled, skipping %r", notification.subject)
            return
        if not notification.recipient:
            logger.warning("Dropping notification %r without recipient", notification.subject)
            return
        try:
            self._queue.put_nowait(notification)
        except queue.Full:
            logger.error("Notification queue full, dropping %r to %s", notification.subject, notification.recipient)

    def get(self, timeout: float | None = None) -> Notification:
        """Blocking get; raises queue.Empty on timeout."""
        return self._queue.get(timeout=timeout)

    def task_done(self) -> None:
        self._queue.task_done()

    def drain(self) -> List[Notification]:
        items: List[Notification] = []
        while True:
            try:
                items.append(self._queue.get_nowait())
            except queue.Empty:
                return items
            self._queue.task_done()

    def __len__(self) -> int:
        return self._queue.qsize()

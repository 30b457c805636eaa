from __future__ import annotations

import logging
import queue
import threading
from typing import Optional

from .mailer import Mailer
from .model import Notification
from .outbox import QueueOutbox

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Delivers queued notifications; a failed delivery is logged and dropped."""

    def __init__(self, outbox: QueueOutbox, mailer: Mailer, *, poll_seconds: float = 1.0):
        self._outbox = outbox
        self._mailer = mailer
        self._poll_seconds = poll_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def deliver(self, notification: Notification) -> bool:
        try:
            sent = self._mailer.send(notification)
        except Exception:
            logger.exception("Unexpected error delivering %r to %s", notification.subject, notification.recipient)
            return False
        if not sent:
            logger.warning("Notification %r to %s not delivered", notification.subject, notification.recipient)
        return sent

    def dispatch_pending(self) -> int:
        """Synchronously deliver everything queued so far. Returns the number delivered."""
        return sum(1 for n in self._outbox.drain() if self.deliver(n))

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                notification = self._outbox.get(timeout=self._poll_seconds)
            except queue.Empty:
                continue
            try:
                self.deliver(notification)
            finally:
                self._outbox.task_done()

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="notification-dispatcher", daemon=True)
        self._thread.start()
        logger.info("Notification dispatcher started")

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            self._thread = None

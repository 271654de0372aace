import logging
import threading
from collections import deque
from typing import List

from src.domain.Interfaces.notifier import INotifier
from src.domain.Models.notification import Notification, DESTRUCTIVE

logger = logging.getLogger(__name__)


class QueueNotifier(INotifier):
    """
    Guarda los avisos pendientes hasta que el cliente los recoja (GET /notifications)
    y los deja en el log. Cola acotada: si se llena, se pierden los más antiguos.
    """

    def __init__(self, maxlen: int = 50):
        self._pending = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def notify(self, notification: Notification) -> None:
        level = logging.WARNING if notification.variant == DESTRUCTIVE else logging.INFO
        logger.log(level, "📢 %s: %s", notification.title, notification.description)
        with self._lock:
            self._pending.append(notification)

    def drain(self) -> List[Notification]:
        with self._lock:
            items = list(self._pending)
            self._pending.clear()
        return items

from typing import Protocol
from src.domain.Models.notification import Notification

class INotifier(Protocol):
    """
    Canal de avisos al usuario (toasts).
    """
    def notify(self, notification: Notification) -> None:
        ...

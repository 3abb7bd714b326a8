from .dispatcher import NotificationDispatcher, build_message
from .schemas import DispatchResult, DispatchStatus, NotificationRecord

__all__ = [
    "NotificationDispatcher",
    "build_message",
    "DispatchResult",
    "DispatchStatus",
    "NotificationRecord",
]

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class DispatchStatus(str, Enum):
    SENT = "sent"
    INVALID = "invalid"
    FAILED = "failed"
    SKIPPED = "skipped"


class NotificationRecord(BaseModel):
    """Queued notification document as written by the upstream producer"""
    model_config = ConfigDict(extra="ignore")

    fcmToken: str
    title: str
    body: str
    notificationId: str = ''
    postId: str = ''
    userEmail: str = ''

    @field_validator('notificationId', 'postId', 'userEmail', mode='before')
    @classmethod
    def correlation_as_string(cls, value):
        # FCM data values must be strings; anything else is dropped
        if not value or isinstance(value, bool) or not isinstance(value, (str, int, float)):
            return ''
        return str(value)


class DispatchResult(BaseModel):
    """Outcome of a single dispatch invocation"""
    status: DispatchStatus
    message_id: Optional[str] = None
    error: Optional[str] = None
    persisted: bool = True

    @property
    def success(self) -> bool:
        return self.status in (DispatchStatus.SENT, DispatchStatus.SKIPPED)

import logging
from typing import Any, Dict, Optional

from firebase_admin import firestore, messaging
from firebase_admin.exceptions import FirebaseError
from pydantic import ValidationError

from .schemas import DispatchResult, DispatchStatus, NotificationRecord

logger = logging.getLogger(__name__)

NOTIFICATION_TYPE = "social_notification"
ANDROID_CHANNEL_ID = "default"
MISSING_FIELDS_ERROR = "Missing required fields"
INVALID_RECORD_ERROR = "Invalid notification record"


def build_message(record: NotificationRecord) -> messaging.Message:
    """
    Build the FCM message for a validated notification record.

    Args:
        record: Record with fcmToken, title and body present

    Returns:
        Message addressed to the record's device token
    """
    return messaging.Message(
        token=record.fcmToken,
        notification=messaging.Notification(
            title=record.title,
            body=record.body
        ),
        data={
            'notificationId': record.notificationId,
            'postId': record.postId,
            'userEmail': record.userEmail,
            'type': NOTIFICATION_TYPE,
        },
        apns=messaging.APNSConfig(
            headers={'apns-priority': '10'},
            payload=messaging.APNSPayload(
                aps=messaging.Aps(
                    sound='default',
                    badge=1,
                    content_available=True
                )
            )
        ),
        android=messaging.AndroidConfig(
            priority='high',
            notification=messaging.AndroidNotification(
                sound='default',
                channel_id=ANDROID_CHANNEL_ID
            )
        )
    )


class NotificationDispatcher:
    """Delivers newly created notification records and records the outcome."""

    def __init__(self, gateway):
        """
        Initialize the dispatcher.

        Args:
            gateway: Push gateway exposing send(message) -> message id
        """
        self.gateway = gateway

    def dispatch(self, data: Optional[Dict[str, Any]], handle) -> DispatchResult:
        """
        Process one notification record.

        Args:
            data: Field set of the newly created record
            handle: Write-back handle for the same record, exposing update(fields)

        Returns:
            DispatchResult describing the terminal state left on the record
        """
        data = data or {}

        if data.get('sent') is True:
            logger.debug("Notification already sent, skipping")
            return DispatchResult(status=DispatchStatus.SKIPPED)

        # Validate required fields
        if not all([data.get('fcmToken'), data.get('title'), data.get('body')]):
            logger.error(f"Missing required fields in notification {data.get('notificationId')}")
            return self._fail(handle, DispatchStatus.INVALID, MISSING_FIELDS_ERROR)

        try:
            record = NotificationRecord.model_validate(data)
        except ValidationError as e:
            logger.error(f"Invalid notification record: {str(e)}")
            return self._fail(handle, DispatchStatus.INVALID, INVALID_RECORD_ERROR)

        message = build_message(record)

        try:
            message_id = self.gateway.send(message)
        except FirebaseError as e:
            logger.error(f"Firebase error sending notification {record.notificationId} ({e.code}): {str(e)}")
            return self._fail(handle, DispatchStatus.FAILED, str(e))
        except Exception as e:
            logger.error(f"Error sending notification {record.notificationId}: {str(e)}")
            return self._fail(handle, DispatchStatus.FAILED, str(e))

        logger.info(f"Notification {record.notificationId} sent: {message_id}")
        persisted = self._write_back(handle, {
            'sent': True,
            'sentAt': firestore.SERVER_TIMESTAMP,
            'messageId': message_id
        })
        if not persisted:
            # Delivered but not recorded; a replay would resend it.
            logger.error(f"Notification {record.notificationId} delivered as {message_id} but status was not saved")

        return DispatchResult(
            status=DispatchStatus.SENT,
            message_id=message_id,
            persisted=persisted
        )

    def _fail(self, handle, status: DispatchStatus, error: str) -> DispatchResult:
        persisted = self._write_back(handle, {
            'sent': False,
            'error': error,
            'failedAt': firestore.SERVER_TIMESTAMP
        })
        return DispatchResult(status=status, error=error, persisted=persisted)

    def _write_back(self, handle, fields: Dict[str, Any]) -> bool:
        try:
            handle.update(fields)
            return True
        except Exception as e:
            logger.error(f"Error updating notification record: {str(e)}")
            return False

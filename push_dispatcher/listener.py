import logging
import threading
from collections import Counter
from typing import Dict, Optional

from .dispatcher import NotificationDispatcher
from .schemas import DispatchStatus

logger = logging.getLogger(__name__)


class FirestoreNotificationListener:
    """Dispatches notification records as they are created in a Firestore collection."""

    def __init__(self, collection, dispatcher: NotificationDispatcher):
        """
        Initialize the listener.

        Args:
            collection: Firestore collection reference to watch
            dispatcher: Dispatcher invoked once per created record
        """
        self.collection = collection
        self.dispatcher = dispatcher
        self._watch = None
        self._ready = threading.Event()
        logger.info("Notification listener initialized")

    def start(self) -> None:
        """Start watching the collection for new records."""
        if self._watch is not None:
            return
        self._ready.clear()
        self._watch = self.collection.on_snapshot(self.on_snapshot)
        logger.info(f"Listening for notifications in {self.collection.id}")

    def stop(self) -> None:
        """Stop watching the collection."""
        if self._watch is None:
            return
        self._watch.unsubscribe()
        self._watch = None
        logger.info("Notification listener stopped")

    @property
    def is_active(self) -> bool:
        """Whether the watch is running; it stops on non-retryable RPC errors."""
        return self._watch is not None and bool(self._watch.is_active)

    def on_snapshot(self, col_snapshot, changes, read_time) -> None:
        """
        Watch callback. Always returns normally so the trigger is acknowledged.

        The first snapshot holds the documents that already existed when the
        watch started; those are left to replay_pending.
        """
        if not self._ready.is_set():
            self._ready.set()
            logger.info(f"Initial snapshot received with {len(changes)} existing records, not dispatching")
            return

        for change in changes:
            if change.type.name != 'ADDED':
                continue

            document = change.document
            try:
                result = self.dispatcher.dispatch(document.to_dict(), document.reference)
                if result.success:
                    logger.info(f"Notification {document.id} dispatched with status {result.status.value}")
                else:
                    logger.warning(f"Notification {document.id} not delivered: {result.error}")
            except Exception as e:
                logger.error(f"Error dispatching notification {document.id}: {str(e)}")


def replay_pending(collection,
                   dispatcher: NotificationDispatcher,
                   include_failed: bool = False,
                   limit: Optional[int] = None) -> Dict[DispatchStatus, int]:
    """
    Dispatch records that never reached a terminal state.

    Args:
        collection: Firestore collection reference holding notification records
        dispatcher: Dispatcher used for each pending record
        include_failed: Also re-dispatch records that previously failed
        limit: Maximum number of records to dispatch

    Returns:
        Number of records dispatched per status
    """
    counts = Counter()
    dispatched = 0

    for document in collection.stream():
        if limit is not None and dispatched >= limit:
            break

        data = document.to_dict() or {}
        if data.get('sent') is True:
            continue
        if 'failedAt' in data and not include_failed:
            continue

        result = dispatcher.dispatch(data, document.reference)
        counts[result.status] += 1
        dispatched += 1

    logger.info(f"Replayed {dispatched} notifications: {dict((k.value, v) for k, v in counts.items())}")
    return dict(counts)

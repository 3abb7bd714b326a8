import argparse
import logging
import signal
import sys
import threading
from typing import List, Optional

from .config import settings
from .dispatcher import NotificationDispatcher
from .firebase_client import FirebaseClient
from .listener import FirestoreNotificationListener, replay_pending
from .logging_config import setup_logging

logger = logging.getLogger(__name__)

# Handle graceful shutdown
shutdown_event = threading.Event()


def signal_handler(sig, frame):
    """Handle termination signals for graceful shutdown."""
    logger.info("Shutdown signal received, stopping listener...")
    shutdown_event.set()


class PushDispatcherService:
    """Main push dispatcher service."""

    def __init__(self, firebase_client: Optional[FirebaseClient] = None):
        """Initialize the push dispatcher service."""
        self.firebase_client = firebase_client or FirebaseClient()
        self.dispatcher = NotificationDispatcher(self.firebase_client.gateway())
        self.listener = FirestoreNotificationListener(
            collection=self.firebase_client.notifications(),
            dispatcher=self.dispatcher
        )
        logger.info("Push Dispatcher Service initialized")

    def run(self) -> int:
        """Listen for new notifications until a shutdown signal arrives."""
        logger.info("Starting Push Dispatcher Service")

        try:
            self.listener.start()
            while not shutdown_event.wait(timeout=1):
                if not self.listener.is_active:
                    logger.critical("Firestore watch terminated unexpectedly, no longer receiving notifications")
                    self.listener.stop()
                    return 1
            self.listener.stop()
            logger.info("Push Dispatcher Service shutdown gracefully")

        except Exception as e:
            logger.critical(f"Fatal error in Push Dispatcher Service: {str(e)}")
            return 1

        finally:
            self.firebase_client.close()

        return 0

    def replay(self, include_failed: bool = False, limit: Optional[int] = None) -> int:
        """Dispatch notification records left without a terminal status."""
        try:
            counts = replay_pending(
                self.firebase_client.notifications(),
                self.dispatcher,
                include_failed=include_failed,
                limit=limit
            )
            logger.info(f"Replay finished: {sum(counts.values())} notifications dispatched")

        except Exception as e:
            logger.critical(f"Fatal error during replay: {str(e)}")
            return 1

        finally:
            self.firebase_client.close()

        return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="push-dispatcher",
        description="Deliver queued notification records through Firebase Cloud Messaging."
    )
    parser.add_argument("command", nargs="?", choices=["listen", "replay"], default="listen")
    parser.add_argument("--include-failed", action="store_true",
                        help="replay: also retry records whose delivery failed")
    parser.add_argument("--limit", type=int, default=None,
                        help="replay: maximum number of records to dispatch")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    args = parse_args(argv)

    # Configure logging
    setup_logging()

    # Log startup information
    logger.info(f"Starting Push Dispatcher Service in {settings.environment} environment")

    try:
        service = PushDispatcherService()
    except Exception as e:
        logger.critical(f"Failed to start Push Dispatcher Service: {str(e)}")
        return 1

    if args.command == "replay":
        return service.replay(include_failed=args.include_failed, limit=args.limit)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)
    return service.run()


if __name__ == "__main__":
    sys.exit(main())

import json
import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials, firestore, messaging

from .config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class FirebaseClient:
    """Firebase client for the Push Dispatcher Service."""

    def __init__(self, config: Optional[Settings] = None):
        """
        Initialize Firebase client with Firestore and FCM capabilities.

        Args:
            config: Settings to build the Firebase app from
        """
        self.settings = config or default_settings
        self.app = None
        self.firestore_db = None
        self.initialized = False
        self.initialize()

    def initialize(self) -> None:
        """Initialize a named Firebase app owned by this client."""
        if self.initialized:
            return

        try:
            self.app = firebase_admin.initialize_app(
                credential=self._load_credentials(),
                options=self._app_options(),
                name=self.settings.service_name
            )

            # Initialize Firestore client
            self.firestore_db = firestore.client(self.app)
            self.initialized = True
            logger.info(f"Firebase client initialized successfully. App name: {self.app.name}")

        except Exception as e:
            logger.error(f"Failed to initialize Firebase: {str(e)}")
            raise

    def _load_credentials(self) -> credentials.Base:
        cert_json = self.settings.firebase_secret
        if not cert_json:
            logger.warning("Firebase secret not configured, using application default credentials")
            return credentials.ApplicationDefault()

        # Parse credentials JSON
        cert_dict = json.loads(cert_json)
        if isinstance(cert_dict, str):
            cert_dict = json.loads(cert_dict)
        return credentials.Certificate(cert_dict)

    def _app_options(self) -> dict:
        options = {}
        if self.settings.firebase_project_id:
            options["projectId"] = self.settings.firebase_project_id
        return options

    def notifications(self):
        """Return the collection reference holding notification records."""
        return self.firestore_db.collection(self.settings.notifications_collection)

    def gateway(self) -> "FirebasePushGateway":
        return FirebasePushGateway(self.app)

    def close(self) -> None:
        """Delete the Firebase app and release its resources."""
        if self.app is not None:
            firebase_admin.delete_app(self.app)
            logger.info(f"Firebase app {self.app.name} deleted")
        self.app = None
        self.firestore_db = None
        self.initialized = False


class FirebasePushGateway:
    """Sends push messages through FCM using a specific Firebase app."""

    def __init__(self, app=None):
        self.app = app

    def send(self, message: messaging.Message) -> str:
        """
        Send a single message.

        Returns:
            The FCM message name, e.g. "projects/<id>/messages/<id>"

        Raises:
            FirebaseError: if FCM rejects the message
        """
        response = messaging.send(message, app=self.app)
        logger.debug(f"FCM accepted message: {response}")
        return response

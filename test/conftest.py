import pytest

from push_dispatcher.dispatcher import NotificationDispatcher


class FakeGateway:
    """Records sent messages and returns a fixed id or raises a fixed error."""

    def __init__(self, message_id="projects/x/messages/123", error=None):
        self.message_id = message_id
        self.error = error
        self.messages = []

    def send(self, message):
        self.messages.append(message)
        if self.error is not None:
            raise self.error
        return self.message_id


class FakeHandle:
    """Stands in for a Firestore DocumentReference."""

    def __init__(self, error=None):
        self.error = error
        self.updates = []

    def update(self, fields):
        self.updates.append(fields)
        if self.error is not None:
            raise self.error


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def handle():
    return FakeHandle()


@pytest.fixture
def dispatcher(gateway):
    return NotificationDispatcher(gateway)


@pytest.fixture
def valid_record():
    return {
        "fcmToken": "tok1",
        "title": "Hi",
        "body": "Hello",
        "notificationId": "n1",
    }


@pytest.fixture
def make_gateway():
    return FakeGateway


@pytest.fixture
def make_handle():
    return FakeHandle

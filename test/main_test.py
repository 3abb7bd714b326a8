from unittest import mock

import pytest

from push_dispatcher import main as entry
from push_dispatcher.dispatcher import NotificationDispatcher
from push_dispatcher.listener import FirestoreNotificationListener


@pytest.fixture
def firebase():
    client = mock.Mock()
    client.notifications.return_value.stream.return_value = iter([])
    return client


def test_parse_args_defaults_to_listen():
    args = entry.parse_args([])

    assert args.command == "listen"
    assert args.include_failed is False
    assert args.limit is None


def test_parse_args_replay_options():
    args = entry.parse_args(["replay", "--include-failed", "--limit", "10"])

    assert args.command == "replay"
    assert args.include_failed is True
    assert args.limit == 10


def test_service_wires_dispatcher_and_listener(firebase):
    service = entry.PushDispatcherService(firebase)

    assert isinstance(service.dispatcher, NotificationDispatcher)
    assert service.dispatcher.gateway is firebase.gateway.return_value
    assert isinstance(service.listener, FirestoreNotificationListener)
    assert service.listener.collection is firebase.notifications.return_value


def test_run_stops_listener_on_shutdown(firebase, monkeypatch):
    service = entry.PushDispatcherService(firebase)
    event = mock.Mock()
    event.wait.return_value = True
    monkeypatch.setattr(entry, "shutdown_event", event)

    assert service.run() == 0

    firebase.notifications.return_value.on_snapshot.assert_called_once()
    firebase.notifications.return_value.on_snapshot.return_value.unsubscribe.assert_called_once()
    firebase.close.assert_called_once()


def test_run_reports_fatal_errors(firebase):
    firebase.notifications.return_value.on_snapshot.side_effect = RuntimeError("permission denied")
    service = entry.PushDispatcherService(firebase)

    assert service.run() == 1
    firebase.close.assert_called_once()


def test_replay_returns_zero(firebase):
    service = entry.PushDispatcherService(firebase)

    assert service.replay(limit=5) == 0
    firebase.close.assert_called_once()


def test_main_exits_when_firebase_cannot_start(monkeypatch):
    monkeypatch.setattr(entry, "setup_logging", lambda: None)
    monkeypatch.setattr(entry, "PushDispatcherService", mock.Mock(side_effect=ValueError("bad credentials")))

    assert entry.main(["replay"]) == 1


def test_main_runs_replay(monkeypatch):
    service = mock.Mock()
    service.replay.return_value = 0
    monkeypatch.setattr(entry, "setup_logging", lambda: None)
    monkeypatch.setattr(entry, "PushDispatcherService", mock.Mock(return_value=service))

    assert entry.main(["replay", "--include-failed"]) == 0
    service.replay.assert_called_once_with(include_failed=True, limit=None)


def test_run_exits_when_watch_dies(firebase, monkeypatch):
    watch = firebase.notifications.return_value.on_snapshot.return_value
    watch.is_active = False
    event = mock.Mock()
    event.wait.return_value = False
    monkeypatch.setattr(entry, "shutdown_event", event)
    service = entry.PushDispatcherService(firebase)

    assert service.run() == 1

    event.wait.assert_called_once_with(timeout=1)
    watch.unsubscribe.assert_called_once()
    firebase.close.assert_called_once()

"""
Shared test fixtures.

Provides: isolated session core (store, presence, router) wired to an
in-memory broadcaster, and a Flask app configured with a temp upload folder.
Dependencies: pytest, flask, flask_socketio
"""

from collections import defaultdict

import pytest

from relay.core import EventRouter, PresenceTracker, SessionStore
from relay.core.transport import Broadcaster


class RecordingBroadcaster(Broadcaster):
    """
    Broadcaster that resolves rooms itself and records what each connection
    would have received.
    """

    def __init__(self):
        self.rooms = defaultdict(set)
        self.sent = []  # (session_id or connection_id, event, payload, skip)
        self.deliveries = defaultdict(list)  # connection_id -> [(event, payload)]

    def add_to_room(self, session_id, connection_id):
        self.rooms[session_id].add(connection_id)

    def remove_from_room(self, session_id, connection_id):
        self.rooms[session_id].discard(connection_id)

    def send_to_room(self, session_id, event, payload=None, skip=None):
        self.sent.append((session_id, event, payload, skip))
        for connection_id in sorted(self.rooms[session_id]):
            if connection_id != skip:
                self.deliveries[connection_id].append((event, payload))

    def send_to_connection(self, connection_id, event, payload=None):
        self.sent.append((connection_id, event, payload, None))
        self.deliveries[connection_id].append((event, payload))

    def disconnect(self, connection_id):
        for members in self.rooms.values():
            members.discard(connection_id)

    def received(self, connection_id):
        return list(self.deliveries[connection_id])

    def received_events(self, connection_id):
        return [event for event, _ in self.deliveries[connection_id]]

    def clear(self):
        self.sent.clear()
        self.deliveries.clear()


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def presence(store):
    return PresenceTracker(store)


@pytest.fixture
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture
def router(store, presence, broadcaster):
    return EventRouter(store, presence, broadcaster)


@pytest.fixture
def session_id(store):
    return store.create_session()


@pytest.fixture
def app(tmp_path):
    from app import create_app

    return create_app({
        'TESTING': True,
        'UPLOAD_FOLDER': str(tmp_path / 'uploads'),
        'CLIENT_DIST_FOLDER': str(tmp_path / 'dist'),
        'SOCKETIO_ASYNC_MODE': 'threading',
        'PUBLIC_BASE_URL': '',
    })


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def relay_core(app):
    return app.extensions['relay']


@pytest.fixture
def socketio(app):
    return app.extensions['socketio']

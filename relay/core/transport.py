"""
Transport seam between the router and the real-time network layer.

The router only talks to a Broadcaster, so its logic can be exercised
without a Socket.IO server.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

NAMESPACE = '/'


class Broadcaster(ABC):
    """
    Room-scoped message delivery.

    A room is the set of connections attached to one session; its name is
    the session id. A payload of None means the event carries no data.
    """

    @abstractmethod
    def add_to_room(self, session_id: str, connection_id: str) -> None:
        pass

    @abstractmethod
    def remove_from_room(self, session_id: str, connection_id: str) -> None:
        pass

    @abstractmethod
    def send_to_room(self, session_id: str, event: str, payload: Any = None,
                     skip: Optional[str] = None) -> None:
        """Send to every connection in the room except `skip` (None = everyone)."""
        pass

    @abstractmethod
    def send_to_connection(self, connection_id: str, event: str, payload: Any = None) -> None:
        pass


class SocketIOBroadcaster(Broadcaster):
    """Broadcaster backed by a flask_socketio.SocketIO instance."""

    def __init__(self, socketio, namespace: str = NAMESPACE):
        self.socketio = socketio
        self.namespace = namespace

    def add_to_room(self, session_id, connection_id):
        self.socketio.server.enter_room(connection_id, session_id, namespace=self.namespace)

    def remove_from_room(self, session_id, connection_id):
        self.socketio.server.leave_room(connection_id, session_id, namespace=self.namespace)

    def send_to_room(self, session_id, event, payload=None, skip=None):
        args = () if payload is None else (payload,)
        self.socketio.emit(event, *args, room=session_id, skip_sid=skip, namespace=self.namespace)

    def send_to_connection(self, connection_id, event, payload=None):
        args = () if payload is None else (payload,)
        self.socketio.emit(event, *args, room=connection_id, namespace=self.namespace)

"""Session core: store, presence tracking, message schema and event routing."""

from .errors import FileTooLarge, MalformedEvent, RelayError, SessionNotFound, UnsupportedFileType
from .event_router import EventResponse, EventRouter
from .presence import JoinResult, Membership, PresenceTracker
from .session_store import Session, SessionStore
from .transport import Broadcaster, SocketIOBroadcaster

__all__ = [
    'SessionStore', 'Session', 'PresenceTracker', 'JoinResult', 'Membership',
    'EventRouter', 'EventResponse', 'Broadcaster', 'SocketIOBroadcaster',
    'RelayError', 'SessionNotFound', 'UnsupportedFileType', 'FileTooLarge', 'MalformedEvent',
]

"""
EventRouter: Maps inbound socket events to session mutations and broadcasts.

For every event the router validates the payload, applies the store effect
(if any), and emits the outbound event to the other connections of the same
session. Only customer-count goes to the whole room, sender included.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .errors import MalformedEvent, SessionNotFound
from .messages import (
    ClearDrawings, InboundEvent, JoinSession, PageChange, Passthrough,
    PointerMove, StrokeEnd, UndoDrawing, parse_event,
)
from .presence import Membership, PresenceTracker
from .session_store import FILE_TYPE_PDF, ROLE_CUSTOMER, SessionStore
from .transport import Broadcaster

logger = logging.getLogger(__name__)


@dataclass
class EventResponse:
    """
    What to emit after handling an event.

    Emitted in this order: to_sender, to_others, to_room, error.

    Attributes:
        session_id: Session whose room is addressed (None for sender-only replies)
        to_sender: Events for the originating connection only
        to_others: Events for the session's room, excluding the sender
        to_room: Events for the session's room, including the sender
        error: Error payload for the originating connection
    """
    session_id: Optional[str] = None
    to_sender: Dict[str, Any] = field(default_factory=dict)
    to_others: Dict[str, Any] = field(default_factory=dict)
    to_room: Dict[str, Any] = field(default_factory=dict)
    error: Dict[str, Any] = field(default_factory=dict)


class EventRouter:
    # inbound event -> (handler method, outbound event)
    EVENTS = {
        'join-session': ('handle_join', None),
        'page-change': ('handle_page_change', 'page-changed'),
        'draw-start': ('handle_passthrough', 'draw-started'),
        'drawing': ('handle_passthrough', 'drawing-update'),
        'draw-end': ('handle_stroke_end', 'draw-ended'),
        'eraser-start': ('handle_passthrough', 'eraser-started'),
        'erasing': ('handle_passthrough', 'erasing-update'),
        'eraser-end': ('handle_stroke_end', 'eraser-ended'),
        'clear-drawings': ('handle_clear', 'drawings-cleared'),
        'undo-drawing': ('handle_undo', 'drawing-undone'),
        'pointer-move': ('handle_pointer_move', 'pointer-moved'),
    }

    def __init__(self, store: SessionStore, presence: PresenceTracker, broadcaster: Broadcaster):
        self.store = store
        self.presence = presence
        self.broadcaster = broadcaster

    def handle_event(self, event_name: str, data: Any, sid: str) -> Optional[EventResponse]:
        """
        Route one inbound event from connection `sid`.

        Never raises: malformed input and unknown sessions are dropped,
        unexpected failures are logged and reported to the sender.

        Returns:
            The EventResponse that was emitted, or None if the event was dropped
        """
        if event_name not in self.EVENTS:
            logger.debug(f"Ignoring unknown event {event_name} from {sid}")
            return None

        try:
            message = parse_event(event_name, data)
        except MalformedEvent as e:
            logger.warning(f"Dropping malformed {event_name} from {sid}: {e.message}")
            return None

        handler_name, outbound = self.EVENTS[event_name]
        try:
            response = getattr(self, handler_name)(message, sid, outbound)
        except Exception as e:
            logger.exception(f"Error handling event {event_name} from {sid}: {e}")
            response = EventResponse(error={'code': 'INTERNAL_ERROR', 'message': 'Internal error'})

        if response:
            self._process_response(response, sid)
        return response

    def handle_disconnect(self, sid: str) -> Optional[EventResponse]:
        """Release a dropped connection and tell the rest of its session."""
        membership = self.presence.leave(sid)
        if not membership:
            return None

        session_id = membership.session_id
        response = EventResponse(session_id=session_id)
        if session_id in self.store:
            response.to_others['user-left'] = {'role': membership.role}
            if membership.role == ROLE_CUSTOMER:
                response.to_room['customer-count'] = self._customer_count_payload(session_id)

        self._process_response(response, sid)
        return response

    def file_uploaded(self, session_id: str, file_url: str, file_type: str,
                      legacy_pdf: bool = False) -> bool:
        """
        Publish a stored upload to the session.

        Called by the HTTP layer only after the file is on disk and its URL
        is known. The whole room is notified (the uploader is not a socket
        peer, so there is no sender to skip).

        Returns:
            False if the session does not exist
        """
        if not self.store.set_file(session_id, file_url, file_type):
            return False

        if legacy_pdf and file_type == FILE_TYPE_PDF:
            self.broadcaster.send_to_room(session_id, 'pdf-loaded', {'pdfUrl': file_url})
        else:
            self.broadcaster.send_to_room(session_id, 'file-loaded', {
                'fileUrl': file_url,
                'fileType': file_type,
            })
        return True

    # =========================================================================
    # Handlers
    # =========================================================================

    def handle_join(self, message: JoinSession, sid: str, outbound=None) -> EventResponse:
        try:
            result = self.presence.join(message.session_id, sid, message.role)
        except SessionNotFound as e:
            logger.info(f"Join rejected for {sid}: {e.message}")
            return EventResponse(error=e.to_dict())

        if result.previous and result.previous.session_id != message.session_id:
            self._left_room(result.previous, sid)
        self.broadcaster.add_to_room(message.session_id, sid)

        response = EventResponse(session_id=message.session_id)
        if result.state is not None:
            response.to_sender['session-state'] = result.state
        response.to_others['user-joined'] = {'role': message.role}
        response.to_room['customer-count'] = self._customer_count_payload(message.session_id)
        return response

    def handle_page_change(self, message: PageChange, sid: str, outbound: str) -> Optional[EventResponse]:
        if not self.store.set_page(message.session_id, message.page, message.total_pages):
            return self._drop(message, sid, outbound)

        logger.info(f"Session {message.session_id}: page {message.page}/{message.total_pages}")
        response = EventResponse(session_id=message.session_id)
        response.to_others[outbound] = {
            'page': message.page,
            'totalPages': message.total_pages,
        }
        return response

    def handle_passthrough(self, message: Passthrough, sid: str, outbound: str) -> Optional[EventResponse]:
        if message.session_id not in self.store:
            return self._drop(message, sid, outbound)

        response = EventResponse(session_id=message.session_id)
        response.to_others[outbound] = message.payload
        return response

    def handle_stroke_end(self, message: StrokeEnd, sid: str, outbound: str) -> Optional[EventResponse]:
        if message.session_id not in self.store:
            return self._drop(message, sid, outbound)

        if message.op:
            self.store.append_drawing(message.session_id, message.op)

        response = EventResponse(session_id=message.session_id)
        response.to_others[outbound] = message.payload
        return response

    def handle_clear(self, message: ClearDrawings, sid: str, outbound: str) -> Optional[EventResponse]:
        if not self.store.clear_drawings(message.session_id):
            return self._drop(message, sid, outbound)

        response = EventResponse(session_id=message.session_id)
        response.to_others[outbound] = None
        return response

    def handle_undo(self, message: UndoDrawing, sid: str, outbound: str) -> Optional[EventResponse]:
        if not self.store.undo_last_drawing(message.session_id):
            return self._drop(message, sid, outbound)

        response = EventResponse(session_id=message.session_id)
        response.to_others[outbound] = None
        return response

    def handle_pointer_move(self, message: PointerMove, sid: str, outbound: str) -> Optional[EventResponse]:
        if message.session_id not in self.store:
            return self._drop(message, sid, outbound)

        response = EventResponse(session_id=message.session_id)
        response.to_others[outbound] = {
            'x': message.x,
            'y': message.y,
            'visible': message.visible,
        }
        return response

    # =========================================================================
    # Internals
    # =========================================================================

    def _drop(self, message: InboundEvent, sid: str, outbound: str) -> None:
        # Late events racing a disconnect are expected; fail open.
        logger.debug(f"Dropping {outbound} for unknown session {message.session_id} from {sid}")
        return None

    def _left_room(self, membership: Membership, sid: str) -> None:
        """Tell a session a connection moved away from it."""
        session_id = membership.session_id
        self.broadcaster.remove_from_room(session_id, sid)
        self.broadcaster.send_to_room(session_id, 'user-left', {'role': membership.role}, skip=sid)
        if membership.role == ROLE_CUSTOMER:
            self.broadcaster.send_to_room(session_id, 'customer-count', self._customer_count_payload(session_id))

    def _customer_count_payload(self, session_id: str) -> Dict[str, int]:
        return {'count': self.presence.customer_count(session_id)}

    def _process_response(self, response: EventResponse, sid: str) -> None:
        """Emit events based on an EventResponse."""
        session_id = response.session_id

        # 1. To sender
        for event, payload in response.to_sender.items():
            self.broadcaster.send_to_connection(sid, event, payload)

        if session_id:
            # 2. Others in the session
            for event, payload in response.to_others.items():
                self.broadcaster.send_to_room(session_id, event, payload, skip=sid)

            # 3. Whole session
            for event, payload in response.to_room.items():
                self.broadcaster.send_to_room(session_id, event, payload)

        # 4. Error (to sender)
        if response.error:
            self.broadcaster.send_to_connection(sid, 'error', response.error)

"""
Inbound socket messages.

Every event a peer may send is a small frozen dataclass. parse_event() turns
a raw (event_name, payload) pair into one of them, or raises MalformedEvent
so bad input never reaches the router's handlers.
"""

from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Callable, Dict, Optional

from .errors import MalformedEvent
from .session_store import ROLES


@dataclass(frozen=True)
class InboundEvent:
    session_id: str


@dataclass(frozen=True)
class JoinSession(InboundEvent):
    role: str


@dataclass(frozen=True)
class PageChange(InboundEvent):
    page: int
    total_pages: int


@dataclass(frozen=True)
class Passthrough(InboundEvent):
    """Live stroke traffic relayed verbatim (draw-start, drawing, eraser-start, erasing)."""
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StrokeEnd(InboundEvent):
    """draw-end / eraser-end: relayed verbatim, commits `op` when present."""
    payload: Dict[str, Any] = field(default_factory=dict)
    op: Optional[Any] = None


@dataclass(frozen=True)
class ClearDrawings(InboundEvent):
    pass


@dataclass(frozen=True)
class UndoDrawing(InboundEvent):
    pass


@dataclass(frozen=True)
class PointerMove(InboundEvent):
    x: float
    y: float
    visible: bool = True


def _require_session_id(data: Dict[str, Any]) -> str:
    session_id = data.get('sessionId')
    if not isinstance(session_id, str) or not session_id:
        raise MalformedEvent('sessionId is required')
    return session_id


def _positive_int(data: Dict[str, Any], key: str) -> int:
    value = data.get(key)
    # bool is an int subclass; a page number of True is not a page number.
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise MalformedEvent(f'{key} must be a positive integer')
    return value


def _number(data: Dict[str, Any], key: str) -> float:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, Real):
        raise MalformedEvent(f'{key} must be a number')
    return value


def _parse_join(data):
    role = data.get('role')
    if role not in ROLES:
        raise MalformedEvent(f'role must be one of {sorted(ROLES)}')
    return JoinSession(session_id=_require_session_id(data), role=role)


def _parse_page_change(data):
    page = _positive_int(data, 'page')
    total_pages = _positive_int(data, 'totalPages')
    if page > total_pages:
        raise MalformedEvent('page must not exceed totalPages')
    return PageChange(session_id=_require_session_id(data), page=page, total_pages=total_pages)


def _parse_passthrough(data):
    return Passthrough(session_id=_require_session_id(data), payload=dict(data))


def _stroke_end_parser(op_key: str) -> Callable[[Dict[str, Any]], StrokeEnd]:
    def parse(data):
        return StrokeEnd(
            session_id=_require_session_id(data),
            payload=dict(data),
            op=data.get(op_key),
        )
    return parse


def _parse_pointer_move(data):
    visible = data.get('visible', True)
    if not isinstance(visible, bool):
        raise MalformedEvent('visible must be a boolean')
    return PointerMove(
        session_id=_require_session_id(data),
        x=_number(data, 'x'),
        y=_number(data, 'y'),
        visible=visible,
    )


# event name -> parser
PARSERS: Dict[str, Callable[[Dict[str, Any]], InboundEvent]] = {
    'join-session': _parse_join,
    'page-change': _parse_page_change,
    'draw-start': _parse_passthrough,
    'drawing': _parse_passthrough,
    'draw-end': _stroke_end_parser('drawingData'),
    'eraser-start': _parse_passthrough,
    'erasing': _parse_passthrough,
    'eraser-end': _stroke_end_parser('eraserData'),
    'clear-drawings': lambda data: ClearDrawings(session_id=_require_session_id(data)),
    'undo-drawing': lambda data: UndoDrawing(session_id=_require_session_id(data)),
    'pointer-move': _parse_pointer_move,
}

INBOUND_EVENTS = tuple(PARSERS)


def parse_event(event_name: str, data: Any) -> InboundEvent:
    """
    Validate a raw socket payload.

    Args:
        event_name: The Socket.IO event name
        data: The decoded payload (must be a JSON object)

    Returns:
        The typed message for that event

    Raises:
        MalformedEvent: unknown event or missing/invalid fields
    """
    parser = PARSERS.get(event_name)
    if parser is None:
        raise MalformedEvent(f'Unknown event: {event_name}')
    if not isinstance(data, dict):
        raise MalformedEvent(f'{event_name} payload must be an object')
    return parser(data)

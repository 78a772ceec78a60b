"""
Unit tests for inbound message validation.
"""

import pytest

from relay.core.errors import MalformedEvent
from relay.core.messages import (
    ClearDrawings, JoinSession, PageChange, Passthrough, PointerMove,
    StrokeEnd, UndoDrawing, parse_event,
)


def test_join_session():
    message = parse_event('join-session', {'sessionId': 'abc', 'role': 'customer'})

    assert message == JoinSession(session_id='abc', role='customer')


def test_page_change():
    message = parse_event('page-change', {'sessionId': 'abc', 'page': 2, 'totalPages': 5})

    assert message == PageChange(session_id='abc', page=2, total_pages=5)


def test_passthrough_keeps_full_payload():
    data = {'sessionId': 'abc', 'x': 1, 'y': 2, 'color': '#f00'}

    message = parse_event('draw-start', data)

    assert isinstance(message, Passthrough)
    assert message.payload == data


def test_draw_end_extracts_drawing_data():
    message = parse_event('draw-end', {'sessionId': 'abc', 'drawingData': {'stroke': 1}})

    assert isinstance(message, StrokeEnd)
    assert message.op == {'stroke': 1}


def test_eraser_end_extracts_eraser_data():
    message = parse_event('eraser-end', {'sessionId': 'abc', 'eraserData': {'erase': 1}})

    assert message.op == {'erase': 1}


def test_stroke_end_without_data():
    assert parse_event('draw-end', {'sessionId': 'abc'}).op is None


def test_payloadless_events():
    assert parse_event('clear-drawings', {'sessionId': 'abc'}) == ClearDrawings(session_id='abc')
    assert parse_event('undo-drawing', {'sessionId': 'abc'}) == UndoDrawing(session_id='abc')


def test_pointer_move_visible_defaults_true():
    message = parse_event('pointer-move', {'sessionId': 'abc', 'x': 0.5, 'y': 10})

    assert message == PointerMove(session_id='abc', x=0.5, y=10, visible=True)


@pytest.mark.parametrize('event_name,data', [
    ('join-session', {'role': 'customer'}),
    ('join-session', {'sessionId': '', 'role': 'customer'}),
    ('join-session', {'sessionId': 123, 'role': 'customer'}),
    ('join-session', {'sessionId': 'abc', 'role': 'admin'}),
    ('join-session', {'sessionId': 'abc'}),
    ('page-change', {'sessionId': 'abc', 'page': 0, 'totalPages': 3}),
    ('page-change', {'sessionId': 'abc', 'page': '2', 'totalPages': 3}),
    ('page-change', {'sessionId': 'abc', 'page': True, 'totalPages': 3}),
    ('page-change', {'sessionId': 'abc', 'page': 4, 'totalPages': 3}),
    ('page-change', {'sessionId': 'abc', 'page': 1}),
    ('pointer-move', {'sessionId': 'abc', 'x': 'left', 'y': 1}),
    ('pointer-move', {'sessionId': 'abc', 'x': 1, 'y': 1, 'visible': 'yes'}),
    ('draw-start', {}),
    ('undo-drawing', None),
    ('drawing', ['abc']),
    ('not-an-event', {'sessionId': 'abc'}),
])
def test_malformed_events_are_rejected(event_name, data):
    with pytest.raises(MalformedEvent):
        parse_event(event_name, data)

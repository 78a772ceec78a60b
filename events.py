"""
Socket.IO Event Handlers for the Annotation Relay.
Connection lifecycle is handled here; every peer event is delegated to the EventRouter.
"""

import logging
from flask import request

from relay.core.messages import INBOUND_EVENTS

logger = logging.getLogger(__name__)


def register_events(sio, event_router):
    """Register all Socket.IO event handlers."""

    def on_connect(auth=None):
        logger.info(f"Client connected: {request.sid}")

    def on_disconnect(reason=None):
        sid = request.sid
        event_router.handle_disconnect(sid)
        logger.info(f"Client disconnected: {sid}")

    sio.on_event('connect', on_connect)
    sio.on_event('disconnect', on_disconnect)

    for event_name in INBOUND_EVENTS:
        sio.on_event(event_name, make_handler(event_router, event_name))

    logger.info(f"Socket.IO events registered ({len(INBOUND_EVENTS)} peer events)")


def make_handler(event_router, event_name):
    def handler(data=None):
        if data is None: data = {}
        event_router.handle_event(event_name, data, request.sid)
    return handler

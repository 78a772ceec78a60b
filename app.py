"""
Annotation Relay - Main Flask Application
Entry point for the consultant/customer screen-sharing server.
"""

import os
import logging
import argparse
from flask import Flask, jsonify, request, send_from_directory
from flask_socketio import SocketIO
from werkzeug.exceptions import RequestEntityTooLarge

from relay.config import Config
from relay.core import (
    EventRouter, FileTooLarge, PresenceTracker, RelayError, SessionNotFound,
    SessionStore, SocketIOBroadcaster, UnsupportedFileType,
)
from relay.core.session_store import FILE_TYPE_PDF, FILE_TYPES
from relay.uploads import UploadService
from events import register_events

# Configure logging
logging.basicConfig(
    level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# RelayError subclass -> HTTP status
ERROR_STATUS = {
    SessionNotFound: 404,
    UnsupportedFileType: 415,
    FileTooLarge: 413,
}


def create_app(config_overrides=None):
    """
    Build the Flask app, its Socket.IO server and the session core.

    Args:
        config_overrides: Mapping applied on top of relay.config.Config

    Returns:
        The Flask app. The SocketIO instance lives in app.extensions['socketio'],
        the core services in app.extensions['relay'].
    """
    app = Flask(__name__, static_folder=None)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)
        if 'MAX_UPLOAD_BYTES' in config_overrides and 'MAX_CONTENT_LENGTH' not in config_overrides:
            app.config['MAX_CONTENT_LENGTH'] = app.config['MAX_UPLOAD_BYTES'] + 1024 * 1024

    socketio = SocketIO(
        app,
        cors_allowed_origins=app.config['CORS_ALLOWED_ORIGINS'],
        async_mode=app.config['SOCKETIO_ASYNC_MODE'],
    )

    # Initialize System
    store = SessionStore()
    presence = PresenceTracker(store)
    event_router = EventRouter(store, presence, SocketIOBroadcaster(socketio))
    uploads = UploadService(
        os.path.abspath(app.config['UPLOAD_FOLDER']),
        max_bytes=app.config['MAX_UPLOAD_BYTES'],
    )
    app.extensions['relay'] = {
        'store': store,
        'presence': presence,
        'router': event_router,
        'uploads': uploads,
    }

    client_dist = os.path.abspath(app.config['CLIENT_DIST_FOLDER'])

    # Register Socket.IO event handlers
    register_events(socketio, event_router)

    def base_url():
        """Public origin of this server, honouring reverse-proxy headers."""
        if app.config['PUBLIC_BASE_URL']:
            return app.config['PUBLIC_BASE_URL'].rstrip('/')
        proto = request.headers.get('X-Forwarded-Proto', '').split(',')[0].strip() or request.scheme
        host = request.headers.get('X-Forwarded-Host', '').split(',')[0].strip() or request.host
        return f'{proto}://{host}'

    def error_response(status, code, message):
        return jsonify({'success': False, 'code': code, 'message': message}), status

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(RelayError)
    def handle_relay_error(error):
        status = ERROR_STATUS.get(type(error), 400)
        return error_response(status, error.code, error.message)

    @app.errorhandler(RequestEntityTooLarge)
    def handle_request_too_large(error):
        return handle_relay_error(FileTooLarge(app.config['MAX_UPLOAD_BYTES']))

    # =========================================================================
    # HTTP ROUTES
    # =========================================================================

    @app.route('/')
    def index():
        """Consultant console (built front-end assets live in CLIENT_DIST_FOLDER)."""
        return send_from_directory(client_dist, 'consultant.html')

    @app.route('/view/<session_id>')
    def view(session_id):
        """Customer viewer; the page reads the session id from its own URL."""
        return send_from_directory(client_dist, 'customer.html')

    @app.route('/health')
    def health():
        """Health check endpoint."""
        return {
            'status': 'ok',
            'sessions': store.session_count()
        }

    @app.route('/api/create-session', methods=['POST'])
    def create_session():
        """Create a session and return the link to hand to customers."""
        session_id = store.create_session()
        return jsonify({
            'success': True,
            'sessionId': session_id,
            'shareUrl': f'{base_url()}/view/{session_id}'
        })

    @app.route('/api/upload-file/<session_id>', methods=['POST'])
    def upload_file(session_id):
        """Upload a PDF or image and show it to everyone in the session."""
        if session_id not in store:
            raise SessionNotFound(session_id)

        file = request.files.get('file')
        if file is None:
            return error_response(400, 'NO_FILE', 'No file uploaded')

        stored = uploads.store(file.read(), file.mimetype, file.filename)
        requested_type = request.form.get('fileType')
        file_type = requested_type if requested_type in FILE_TYPES else stored.file_type
        file_url = f'{base_url()}/uploads/{stored.filename}'

        if not event_router.file_uploaded(session_id, file_url, file_type):
            raise SessionNotFound(session_id)

        return jsonify({
            'success': True,
            'fileUrl': file_url,
            'fileType': file_type
        })

    @app.route('/api/upload-pdf/<session_id>', methods=['POST'])
    def upload_pdf(session_id):
        """Legacy PDF-only upload (kept for older consultant clients)."""
        if session_id not in store:
            raise SessionNotFound(session_id)

        file = request.files.get('pdf')
        if file is None:
            return error_response(400, 'NO_FILE', 'No PDF uploaded')
        if file.mimetype != 'application/pdf':
            raise UnsupportedFileType(file.mimetype)

        stored = uploads.store(file.read(), file.mimetype, file.filename)
        pdf_url = f'{base_url()}/uploads/{stored.filename}'

        if not event_router.file_uploaded(session_id, pdf_url, FILE_TYPE_PDF, legacy_pdf=True):
            raise SessionNotFound(session_id)

        return jsonify({
            'success': True,
            'pdfUrl': pdf_url
        })

    @app.route('/api/session/<session_id>')
    def get_session(session_id):
        """Current state of a session (file, page, committed drawings)."""
        state = store.snapshot(session_id)
        if state is None:
            raise SessionNotFound(session_id)

        return jsonify({
            'success': True,
            'session': {'id': session_id, **state}
        })

    @app.route('/uploads/<path:filename>')
    def uploaded_file(filename):
        """Serve a stored document."""
        return send_from_directory(uploads.upload_dir, filename)

    logger.info("Annotation relay initialized")
    return app


app = create_app()
socketio = app.extensions['socketio']


# =============================================================================
# MAIN
# =============================================================================

def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Annotation Relay Server')
    parser.add_argument(
        '--host',
        type=str,
        default='0.0.0.0',
        help='Interface to bind (default: 0.0.0.0)'
    )
    parser.add_argument(
        '--port',
        type=int,
        default=int(os.environ.get('PORT', 10000)),
        help='Server port (default: $PORT or 10000)'
    )
    parser.add_argument(
        '--no-debug',
        action='store_true',
        help='Disable debug mode'
    )
    return parser.parse_args()


if __name__ == '__main__':
    args = parse_args()

    logger.info("Starting Annotation Relay Server...")
    logger.info(f"Create a session: POST http://<your-ip>:{args.port}/api/create-session")
    logger.info(f"Customer link: http://<your-ip>:{args.port}/view/<session-id>")

    socketio.run(
        app,
        host=args.host,
        port=args.port,
        debug=not args.no_debug,
        allow_unsafe_werkzeug=True
    )

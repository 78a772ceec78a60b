"""
Application configuration, read from environment variables.
"""

import os

MB = 1024 * 1024


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'annotation-relay-secret-key')

    # Where uploaded documents are written and served from
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER', 'uploads')
    MAX_UPLOAD_BYTES = int(os.environ.get('MAX_UPLOAD_BYTES', 50 * MB))
    # Request cap enforced by Werkzeug; leaves room for multipart framing
    MAX_CONTENT_LENGTH = MAX_UPLOAD_BYTES + MB

    # Base for share/file URLs; derived from the request when unset
    PUBLIC_BASE_URL = os.environ.get('PUBLIC_BASE_URL', '')

    CORS_ALLOWED_ORIGINS = os.environ.get('CORS_ALLOWED_ORIGINS', '*')
    SOCKETIO_ASYNC_MODE = os.environ.get('SOCKETIO_ASYNC_MODE') or None

    # Built consultant.html / customer.html
    CLIENT_DIST_FOLDER = os.environ.get('CLIENT_DIST_FOLDER', 'dist')

"""
Error taxonomy for the relay core.

None of these are fatal: they are raised close to the data and caught at the
boundaries (EventRouter for socket traffic, Flask error handlers for HTTP).
"""


class RelayError(Exception):
    """Base class for all recoverable relay errors."""

    code = 'RELAY_ERROR'
    message = 'Relay error'

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_dict(self):
        return {'code': self.code, 'message': self.message}


class SessionNotFound(RelayError):
    code = 'SESSION_NOT_FOUND'
    message = 'Session not found'

    def __init__(self, session_id: str = None):
        super().__init__(f'Session not found: {session_id}' if session_id else None)
        self.session_id = session_id


class UnsupportedFileType(RelayError):
    code = 'UNSUPPORTED_FILE_TYPE'
    message = 'Unsupported file type'

    def __init__(self, mimetype: str = None):
        super().__init__(f'Unsupported file type: {mimetype}' if mimetype else None)
        self.mimetype = mimetype


class FileTooLarge(RelayError):
    code = 'FILE_TOO_LARGE'
    message = 'File is too large'

    def __init__(self, limit_bytes: int = None):
        message = None
        if limit_bytes and limit_bytes >= 1024 * 1024:
            message = f'File exceeds the {limit_bytes // (1024 * 1024)} MB limit'
        elif limit_bytes:
            message = f'File exceeds the {limit_bytes} byte limit'
        super().__init__(message)
        self.limit_bytes = limit_bytes


class MalformedEvent(RelayError):
    """Inbound event payload is missing required fields or has the wrong shape."""

    code = 'MALFORMED_EVENT'
    message = 'Malformed event'

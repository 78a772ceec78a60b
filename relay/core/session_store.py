"""
SessionStore: Authoritative in-memory table of annotation sessions.

Pure data and invariants - no sockets, no files. The store is owned by the
application (created in create_app) and handed to the presence tracker, the
event router and the HTTP layer.

State is ephemeral: it lives for the lifetime of the process only.
"""

import copy
import logging
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

logger = logging.getLogger(__name__)

ROLE_CONSULTANT = 'consultant'
ROLE_CUSTOMER = 'customer'
ROLES = frozenset({ROLE_CONSULTANT, ROLE_CUSTOMER})

FILE_TYPE_PDF = 'pdf'
FILE_TYPE_IMAGE = 'image'
FILE_TYPES = frozenset({FILE_TYPE_PDF, FILE_TYPE_IMAGE})


def generate_session_id() -> str:
    """Generate a short opaque session id (8 hex chars)."""
    return uuid.uuid4().hex[:8]


@dataclass
class Session:
    """
    One shared annotation workspace.

    Attributes:
        id: Short opaque identifier
        file_url: URL of the shared document (None until first upload)
        file_type: 'pdf' or 'image' (None until first upload)
        current_page: 1-based page currently shown
        total_pages: Page count reported by the consultant
        drawings: Committed annotation ops for the current page only
        consultant: Connection id of the presenter, if any
        customers: Connection ids of connected viewers
    """
    id: str
    file_url: Optional[str] = None
    file_type: Optional[str] = None
    current_page: int = 1
    total_pages: int = 1
    drawings: List[Any] = field(default_factory=list)
    consultant: Optional[str] = None
    customers: Set[str] = field(default_factory=set)

    def to_state(self) -> Dict[str, Any]:
        """Wire representation of the shared document state."""
        return {
            'fileUrl': self.file_url,
            'fileType': self.file_type,
            'currentPage': self.current_page,
            'totalPages': self.total_pages,
            'drawings': copy.deepcopy(self.drawings),
        }


class SessionStore:
    """
    Registry of live sessions.

    Every mutation runs under a single re-entrant lock so that no reader ever
    sees a half-applied update. The PresenceTracker shares this lock to keep
    its reverse index consistent with the membership fields.
    """

    def __init__(self):
        self.lock = threading.RLock()
        self._sessions: Dict[str, Session] = {}

    def __contains__(self, session_id) -> bool:
        with self.lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self.lock:
            return len(self._sessions)

    def session_count(self) -> int:
        return len(self)

    def create_session(self) -> str:
        """
        Allocate a new session with default attributes.

        Returns:
            The new session id, guaranteed not to collide with a live session
        """
        with self.lock:
            session_id = generate_session_id()
            while session_id in self._sessions:
                session_id = generate_session_id()

            self._sessions[session_id] = Session(id=session_id)

        logger.info(f"Session created: {session_id}")
        return session_id

    def get(self, session_id: str) -> Optional[Session]:
        """Look up a session. None means the session is unknown."""
        if not isinstance(session_id, str):
            return None
        with self.lock:
            return self._sessions.get(session_id)

    def snapshot(self, session_id: str) -> Optional[Dict[str, Any]]:
        """Copy of a session's shared state, safe to hand to the transport."""
        with self.lock:
            session = self.get(session_id)
            if not session:
                return None
            return session.to_state()

    def set_file(self, session_id: str, file_url: str, file_type: str) -> bool:
        """
        Attach a newly uploaded document to the session.

        Resets paging to the first page and drops all committed drawings.

        Returns:
            False if the session does not exist
        """
        with self.lock:
            session = self.get(session_id)
            if not session:
                return False
            session.file_url = file_url
            session.file_type = file_type
            session.current_page = 1
            session.total_pages = 1
            session.drawings = []

        logger.info(f"Session {session_id}: file set to {file_url} ({file_type})")
        return True

    def set_page(self, session_id: str, page: int, total_pages: int) -> bool:
        """Move to another page. Drawings never carry across pages."""
        with self.lock:
            session = self.get(session_id)
            if not session:
                return False
            session.current_page = page
            session.total_pages = total_pages
            session.drawings = []
        return True

    def append_drawing(self, session_id: str, op: Any) -> bool:
        with self.lock:
            session = self.get(session_id)
            if not session:
                return False
            session.drawings.append(op)
        return True

    def clear_drawings(self, session_id: str) -> bool:
        with self.lock:
            session = self.get(session_id)
            if not session:
                return False
            session.drawings = []
        return True

    def undo_last_drawing(self, session_id: str) -> bool:
        """
        Drop the most recent committed drawing.

        Undo on an empty log is a no-op, not an error.

        Returns:
            False only if the session does not exist
        """
        with self.lock:
            session = self.get(session_id)
            if not session:
                return False
            if session.drawings:
                session.drawings.pop()
        return True

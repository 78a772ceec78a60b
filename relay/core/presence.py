"""
PresenceTracker: which connection belongs to which session, in which role.

Keeps a reverse index (connection id -> Membership) that is always mutated
together with the Session's consultant/customers fields under the store lock.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import SessionNotFound
from .session_store import ROLE_CONSULTANT, SessionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Membership:
    session_id: str
    role: str


@dataclass
class JoinResult:
    """
    Outcome of a successful join.

    Attributes:
        session_id: Session that was joined
        role: Role the connection now holds
        state: Full session state for a joining customer, None for a consultant
        replaced: Previous consultant connection displaced by this join, if any
        previous: Membership released because the connection re-joined
    """
    session_id: str
    role: str
    state: Optional[Dict[str, Any]] = None
    replaced: Optional[str] = None
    previous: Optional[Membership] = None


class PresenceTracker:
    def __init__(self, store: SessionStore):
        self.store = store
        self._members: Dict[str, Membership] = {}

    def join(self, session_id: str, connection_id: str, role: str) -> JoinResult:
        """
        Register a connection against a session.

        A connection that was already joined somewhere is released from its
        previous membership first.

        Raises:
            SessionNotFound: the session does not exist
        """
        with self.store.lock:
            session = self.store.get(session_id)
            if not session:
                raise SessionNotFound(session_id)

            previous = None
            if connection_id in self._members:
                previous = self._release(connection_id)

            result = JoinResult(session_id=session_id, role=role, previous=previous)

            if role == ROLE_CONSULTANT:
                if session.consultant and session.consultant != connection_id:
                    result.replaced = session.consultant
                session.consultant = connection_id
            else:
                session.customers.add(connection_id)
                result.state = session.to_state()

            self._members[connection_id] = Membership(session_id, role)
            customer_count = len(session.customers)

        if result.replaced:
            logger.info(f"Session {session_id}: consultant {result.replaced} replaced by {connection_id}")
        logger.info(f"{role} {connection_id} joined session {session_id} (customers: {customer_count})")
        return result

    def leave(self, connection_id: str) -> Optional[Membership]:
        """
        Remove a connection from whatever session it joined.

        Idempotent: unknown connections return None.
        """
        with self.store.lock:
            if connection_id not in self._members:
                return None
            membership = self._release(connection_id)

        logger.info(f"{membership.role} {connection_id} left session {membership.session_id}")
        return membership

    def _release(self, connection_id: str) -> Membership:
        # Caller holds the store lock.
        membership = self._members.pop(connection_id)
        session = self.store.get(membership.session_id)
        if session:
            if membership.role == ROLE_CONSULTANT:
                # A displaced consultant must not clear its successor's slot.
                if session.consultant == connection_id:
                    session.consultant = None
            else:
                session.customers.discard(connection_id)
        return membership

    def membership(self, connection_id: str) -> Optional[Membership]:
        with self.store.lock:
            return self._members.get(connection_id)

    def customer_count(self, session_id: str) -> int:
        with self.store.lock:
            session = self.store.get(session_id)
            return len(session.customers) if session else 0

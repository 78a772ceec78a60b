"""
Unit tests for PresenceTracker.

Dependencies: pytest, relay.core.presence
System role: Join/leave protocol and reverse index consistency
"""

import pytest

from relay.core.errors import SessionNotFound
from relay.core.presence import Membership


class TestJoin:
    def test_unknown_session_raises(self, presence):
        with pytest.raises(SessionNotFound) as excinfo:
            presence.join('missing', 'sid-1', 'customer')

        assert excinfo.value.code == 'SESSION_NOT_FOUND'
        assert presence.membership('sid-1') is None

    def test_customer_receives_current_state(self, store, presence, session_id):
        store.set_file(session_id, 'http://host/uploads/doc.pdf', 'pdf')
        store.set_page(session_id, 2, 4)
        store.append_drawing(session_id, {'stroke': 1})

        result = presence.join(session_id, 'sid-1', 'customer')

        assert result.state == {
            'fileUrl': 'http://host/uploads/doc.pdf',
            'fileType': 'pdf',
            'currentPage': 2,
            'totalPages': 4,
            'drawings': [{'stroke': 1}],
        }
        assert 'sid-1' in store.get(session_id).customers

    def test_consultant_receives_no_state(self, store, presence, session_id):
        result = presence.join(session_id, 'sid-c', 'consultant')

        assert result.state is None
        assert store.get(session_id).consultant == 'sid-c'

    def test_second_consultant_takes_the_slot(self, store, presence, session_id):
        presence.join(session_id, 'sid-c1', 'consultant')
        result = presence.join(session_id, 'sid-c2', 'consultant')

        assert result.replaced == 'sid-c1'
        assert store.get(session_id).consultant == 'sid-c2'
        # The first connection is still known, just no longer the presenter.
        assert presence.membership('sid-c1') == Membership(session_id, 'consultant')

    def test_displaced_consultant_leaving_keeps_successor(self, store, presence, session_id):
        presence.join(session_id, 'sid-c1', 'consultant')
        presence.join(session_id, 'sid-c2', 'consultant')

        presence.leave('sid-c1')

        assert store.get(session_id).consultant == 'sid-c2'

    def test_rejoin_moves_connection_between_sessions(self, store, presence):
        first = store.create_session()
        second = store.create_session()
        presence.join(first, 'sid-1', 'customer')

        result = presence.join(second, 'sid-1', 'customer')

        assert result.previous == Membership(first, 'customer')
        assert store.get(first).customers == set()
        assert store.get(second).customers == {'sid-1'}
        assert presence.membership('sid-1') == Membership(second, 'customer')

    def test_failed_join_keeps_existing_membership(self, store, presence, session_id):
        presence.join(session_id, 'sid-1', 'customer')

        with pytest.raises(SessionNotFound):
            presence.join('missing', 'sid-1', 'customer')

        assert presence.membership('sid-1') == Membership(session_id, 'customer')
        assert 'sid-1' in store.get(session_id).customers


class TestLeave:
    def test_leave_returns_membership(self, store, presence, session_id):
        presence.join(session_id, 'sid-1', 'customer')

        assert presence.leave('sid-1') == Membership(session_id, 'customer')
        assert store.get(session_id).customers == set()
        assert presence.membership('sid-1') is None

    def test_leave_is_idempotent(self, presence, session_id):
        presence.join(session_id, 'sid-1', 'customer')

        presence.leave('sid-1')

        assert presence.leave('sid-1') is None

    def test_unknown_connection(self, presence):
        assert presence.leave('never-joined') is None

    def test_consultant_leave_empties_slot(self, store, presence, session_id):
        presence.join(session_id, 'sid-c', 'consultant')

        presence.leave('sid-c')

        assert store.get(session_id).consultant is None


class TestCustomerCount:
    @pytest.mark.parametrize('joins,leaves', [(0, 0), (1, 0), (3, 1), (5, 5), (4, 2)])
    def test_count_is_joins_minus_leaves(self, presence, session_id, joins, leaves):
        for n in range(joins):
            presence.join(session_id, f'sid-{n}', 'customer')
        for n in range(leaves):
            presence.leave(f'sid-{n}')

        assert presence.customer_count(session_id) == joins - leaves

    def test_consultant_is_not_counted(self, presence, session_id):
        presence.join(session_id, 'sid-c', 'consultant')
        presence.join(session_id, 'sid-1', 'customer')

        assert presence.customer_count(session_id) == 1

    def test_unknown_session_counts_zero(self, presence):
        assert presence.customer_count('missing') == 0

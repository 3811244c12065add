"""
Unit Tests for the State Token Manager
Single-use, expiring anti-forgery tokens bound to a session
"""

from datetime import UTC, datetime, timedelta

import pytest

from civicdesk.auth.session import AuthSession
from civicdesk.auth.state import StateTokenManager


@pytest.mark.unit
class TestStateTokenManager:
    """Test state generation, binding and consumption"""

    def test_generated_tokens_are_unique_and_url_safe(self):
        tokens = {StateTokenManager.generate() for _ in range(50)}

        assert len(tokens) == 50
        for token in tokens:
            assert len(token) >= 43
            assert all(c.isalnum() or c in "-_" for c in token)

    def test_matching_token_validates_once(self):
        manager = StateTokenManager()
        session = AuthSession()
        token = manager.generate()
        manager.bind(session, token)

        assert manager.consume_and_validate(session, token) is True
        # Replaying the same callback fails
        assert manager.consume_and_validate(session, token) is False

    def test_mismatch_clears_pending_token(self):
        manager = StateTokenManager()
        session = AuthSession()
        token = manager.generate()
        manager.bind(session, token)

        assert manager.consume_and_validate(session, "attacker-value") is False
        assert session.pending_state is None
        # The genuine token is gone too
        assert manager.consume_and_validate(session, token) is False

    def test_missing_supplied_value_fails(self):
        manager = StateTokenManager()
        session = AuthSession()
        manager.bind(session, manager.generate())

        assert manager.consume_and_validate(session, None) is False
        assert session.pending_state is None

    def test_no_pending_token_fails(self):
        manager = StateTokenManager()

        assert manager.consume_and_validate(AuthSession(), "anything") is False

    def test_new_bind_replaces_previous_token(self):
        manager = StateTokenManager()
        session = AuthSession()
        first, second = manager.generate(), manager.generate()
        manager.bind(session, first)
        manager.bind(session, second)

        assert manager.consume_and_validate(session, first) is False

    def test_expired_token_fails(self):
        manager = StateTokenManager(ttl_seconds=60)
        session = AuthSession()
        token = manager.generate()
        manager.bind(session, token)
        session.pending_state_issued_at = datetime.now(UTC) - timedelta(minutes=5)

        assert manager.consume_and_validate(session, token) is False

    def test_discard_drops_pending_token(self):
        manager = StateTokenManager()
        session = AuthSession()
        manager.bind(session, manager.generate())

        manager.discard(session)

        assert session.pending_state is None
        assert session.pending_state_issued_at is None

"""Tests for TokenRecord and SessionState."""

import time

import pytest

from osp_client.auth.tokens import ACCESS_TOKEN_KEY, SessionState, TokenRecord


class TestTokenRecord:
    """Tests for TokenRecord."""

    def test_requires_access_token(self):
        with pytest.raises(ValueError):
            TokenRecord(access_token="")

    def test_from_snake_case_response(self):
        record = TokenRecord.from_response(
            {
                "access_token": "A1",
                "refresh_token": "R1",
                "expires_in": "3600",
                "token_type": "Bearer",
                "scope": "openid",
            },
            issued_at=1000,
        )

        assert record.access_token == "A1"
        assert record.refresh_token == "R1"
        assert record.expires_in == 3600
        assert record.issued_at == 1000
        assert record.token_type == "Bearer"
        assert record.scope == "openid"

    def test_from_camel_case_response(self):
        record = TokenRecord.from_response(
            {"accessToken": "A1", "refreshToken": "R1", "expiresIn": 60}
        )

        assert record.access_token == "A1"
        assert record.refresh_token == "R1"
        assert record.expires_in == 60
        assert abs(record.issued_at - time.time()) < 5

    def test_from_response_without_access_token(self):
        with pytest.raises(ValueError):
            TokenRecord.from_response({"refresh_token": "R1"})

    def test_from_response_not_an_object(self):
        with pytest.raises(ValueError):
            TokenRecord.from_response(["A1"])

    def test_is_fresh(self):
        now = int(time.time())

        assert TokenRecord(access_token="A1", expires_in=3600, issued_at=now).is_fresh()
        assert not TokenRecord(access_token="A1", expires_in=60, issued_at=now - 120).is_fresh()
        assert not TokenRecord(access_token="A1", expires_in=60, issued_at=now).is_fresh(
            buffer_seconds=90
        )
        assert TokenRecord(access_token="A1").is_fresh()

    def test_repr_hides_tokens(self):
        record = TokenRecord(access_token="secret-access", refresh_token="secret-refresh")

        assert "secret" not in repr(record)


class TestSessionState:
    """Tests for SessionState."""

    def test_starts_unauthenticated(self, session):
        assert session.record is None
        assert session.access_token is None
        assert session.is_authenticated is False

    def test_replace_persists_access_token(self, session, store):
        session.replace(TokenRecord(access_token="A1"))

        assert session.access_token == "A1"
        assert store.get_item(ACCESS_TOKEN_KEY) == "A1"
        assert session.persisted_access_token() == "A1"

    def test_clear_removes_persisted_token(self, session, store):
        session.replace(TokenRecord(access_token="A1"))

        session.clear()

        assert session.record is None
        assert store.get_item(ACCESS_TOKEN_KEY) is None

    def test_persist_failure_keeps_memory_state(self, store):
        """Test in-memory and persisted state can diverge when the store fails."""
        store.fail_writes = True
        session = SessionState(store)

        session.replace(TokenRecord(access_token="A1"))

        assert session.access_token == "A1"
        assert store.get_item(ACCESS_TOKEN_KEY) is None

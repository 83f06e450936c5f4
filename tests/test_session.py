"""
Tests for the Session model and SessionManager.

Tests cover:
- Token secrecy in repr/str
- establish / require / clear
- Logout notification and local clearing on failure
"""
import pydantic
import pytest

from passbolt_session.exceptions import NetworkError, SessionError
from passbolt_session.session import Session, SessionManager
from passbolt_session.transport import Response


@pytest.fixture
def session():
    return Session(
        access_token="access-token-1", refresh_token="refresh-token-1", user_id="u1",
    )


@pytest.fixture
def manager(config, server):
    return SessionManager(config, server)


class TestSessionModel:
    """Tests for the Session value object."""

    def test_tokens_hidden_in_repr(self, session):
        assert "access-token-1" not in repr(session)
        assert "refresh-token-1" not in str(session)

    def test_authorization_header(self, session):
        assert session.authorization == {"Authorization": "Bearer access-token-1"}

    def test_empty_access_token_rejected(self):
        with pytest.raises(ValueError):
            Session(access_token="", refresh_token="r")

    def test_session_is_frozen(self, session):
        with pytest.raises(pydantic.ValidationError):
            session.access_token = "other"


@pytest.mark.asyncio
class TestSessionManager:
    """Tests for session state handling."""

    async def test_no_session_initially(self, manager):
        assert manager.current_session() is None
        assert manager.is_authenticated is False
        with pytest.raises(SessionError):
            manager.require()

    async def test_establish(self, manager, session):
        manager.establish(session)
        assert manager.current_session() is session
        assert manager.require() is session

    async def test_logout_sends_refresh_token(self, manager, server, session):
        manager.establish(session)
        await manager.logout()
        call = server.calls[-1]
        assert (call["method"], call["path"]) == ("POST", "/auth/jwt/logout.json")
        assert call["json"] == {"refresh_token": "refresh-token-1"}
        assert call["headers"]["Authorization"] == "Bearer access-token-1"
        assert server.revoked == ["refresh-token-1"]
        assert manager.current_session() is None

    async def test_logout_clears_on_transport_failure(
        self, manager, server, session, offline
    ):
        server.overrides[("POST", "/auth/jwt/logout.json")] = offline
        manager.establish(session)
        with pytest.raises(NetworkError):
            await manager.logout()
        assert manager.current_session() is None

    async def test_logout_clears_on_rejection(self, manager, server, session):
        server.overrides[("POST", "/auth/jwt/logout.json")] = Response(500, b"boom")
        manager.establish(session)
        with pytest.raises(NetworkError) as exc:
            await manager.logout()
        assert exc.value.status == 500
        assert manager.current_session() is None

    async def test_logout_without_session_is_noop(self, manager, server):
        await manager.logout()
        assert server.calls == []

    async def test_require_after_logout(self, manager, session):
        manager.establish(session)
        await manager.logout()
        with pytest.raises(SessionError):
            manager.require()

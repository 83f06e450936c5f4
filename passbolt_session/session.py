"""
Session Manager - bearer token lifecycle.

Holds the single active ``Session`` of a client, hands out the
Authorization header for authenticated calls, and performs logout.

Security Note:
    Tokens are bearer secrets. They are stored as ``SecretStr`` so they
    never show up in reprs or logs, and they are never persisted.
"""
import logging
from typing import Optional

from pydantic import BaseModel, SecretStr, field_validator

from .config import ClientConfig, LOGOUT_PATH
from .exceptions import NetworkError, SessionError
from .transport import Transport

logger = logging.getLogger("passbolt.session")


class Session(BaseModel):
    """Access and refresh tokens returned by a successful handshake."""

    access_token: SecretStr
    refresh_token: SecretStr
    user_id: Optional[str] = None

    model_config = {"frozen": True}

    @field_validator("access_token")
    @classmethod
    def validate_access_token(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value():
            raise ValueError("access_token cannot be empty")
        return v

    @property
    def authorization(self) -> dict[str, str]:
        """Authorization header for this session."""
        return {"Authorization": f"Bearer {self.access_token.get_secret_value()}"}


class SessionManager:
    """Owns the single active Session of a client."""

    def __init__(self, config: ClientConfig, transport: Transport):
        self._config = config
        self._transport = transport
        self._session: Optional[Session] = None

    def current_session(self) -> Optional[Session]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def establish(self, session: Session) -> None:
        """Install the session produced by a handshake."""
        self._session = session
        logger.info("Session established for user=%s", session.user_id)

    def require(self) -> Session:
        """Return the active session.

        Raises:
            SessionError: If there is no active session.
        """
        if self._session is None:
            raise SessionError("Not logged in: no active session")
        return self._session

    def clear(self) -> None:
        self._session = None

    async def logout(self) -> None:
        """Invalidate the refresh token on the server, then drop the session.

        Local state is cleared even if the notification fails, so a
        possibly-invalidated token is never reused.

        Raises:
            NetworkError: If the server could not be notified.
        """
        session = self._session
        if session is None:
            logger.debug("Logout without an active session")
            return
        try:
            response = await self._transport.request(
                "POST",
                self._config.url(LOGOUT_PATH),
                headers=session.authorization,
                json={"refresh_token": session.refresh_token.get_secret_value()},
            )
            if not response.ok:
                raise NetworkError(
                    f"Logout rejected (status {response.status})",
                    status=response.status,
                )
        except NetworkError as err:
            logger.warning("Logout notification failed: %s", err)
            raise
        finally:
            self.clear()
        logger.info("Logout for user=%s", session.user_id)

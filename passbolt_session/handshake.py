"""
Handshake Engine - JWT login through an encrypted challenge.

The client proves possession of its private key by sending a signed and
encrypted challenge carrying a fresh ``verify_token``; the server proves
its own identity by answering with a signed, encrypted reply that echoes
the same token alongside the access and refresh tokens::

    client                                   server
      | -- {user_id, challenge: E(S(nonce))} -> |
      | <- {body: {challenge: E(S(nonce, jwt))}} |

A reply whose ``verify_token`` differs from the one sent is treated as
spoofing or replay: the login fails and no session is created.
"""
import time
import uuid
import secrets
import logging
from typing import Any

from pydantic import BaseModel, Field

from .api import parse_api_error, unwrap_body
from .config import ClientConfig, LOGIN_PATH
from .crypto import (
    ClientIdentity,
    CryptoBackend,
    ServerIdentity,
    deserialize_payload,
    serialize_payload,
)
from .exceptions import AuthError, EncryptionError, ProtocolError
from .session import Session
from .transport import Transport

logger = logging.getLogger("passbolt.session.handshake")


class Challenge(BaseModel):
    """Payload encrypted to the server at login."""

    version: str
    domain: str
    verify_token: str = Field(default_factory=lambda: str(uuid.uuid4()))
    verify_token_expiry: int

    @classmethod
    def new(cls, config: ClientConfig) -> "Challenge":
        """Build a challenge with a fresh nonce expiring after challenge_ttl."""
        return cls(
            version=config.protocol_version,
            domain=config.base_url,
            verify_token_expiry=int(time.time()) + config.challenge_ttl,
        )


def tokens_match(sent: str, received: Any) -> bool:
    """Exact comparison of the nonce sent and the one echoed back."""
    if not isinstance(received, str):
        return False
    return secrets.compare_digest(sent.encode("utf-8"), received.encode("utf-8"))


class HandshakeEngine:
    """Performs the challenge/response login."""

    def __init__(
        self, config: ClientConfig, transport: Transport, crypto: CryptoBackend
    ):
        self._config = config
        self._transport = transport
        self._crypto = crypto

    async def login(
        self,
        user_id: str,
        client: ClientIdentity,
        server: ServerIdentity,
    ) -> Session:
        """Authenticate ``user_id`` and return the negotiated Session.

        Args:
            user_id: UUID of the user on the server.
            client: Unlockable private key of the user.
            server: Public key of the server.

        Returns:
            A new Session.

        Raises:
            NetworkError: If the server cannot be reached.
            EncryptionError: If the challenge cannot be encrypted.
            AuthError: If the server rejects the login or its reply cannot
                be decrypted, verified or matched to the challenge.
        """
        if server is None:
            raise AuthError("Server identity is required before login")
        challenge = Challenge.new(self._config)
        encrypted = self._crypto.encrypt(
            serialize_payload(challenge.model_dump()), server, client
        )
        response = await self._transport.request(
            "POST",
            self._config.url(LOGIN_PATH),
            json={"user_id": user_id, "challenge": encrypted},
        )
        if not response.ok:
            error = parse_api_error(response)
            raise AuthError(
                f"Login rejected for user={user_id}: {error.message}"
            ) from error

        try:
            body = unwrap_body(response)
            armored = body.get("challenge") if isinstance(body, dict) else None
            if not isinstance(armored, str):
                raise ProtocolError("Login response has no challenge")
            clear = self._crypto.decrypt(armored, client, server)
            payload = deserialize_payload(clear)
        except (ProtocolError, EncryptionError) as err:
            raise AuthError(f"Invalid login reply: {err}") from err

        if not tokens_match(challenge.verify_token, payload.get("verify_token")):
            logger.warning("Login reply token mismatch for user=%s", user_id)
            raise AuthError("token mismatch")

        access_token = payload.get("access_token")
        refresh_token = payload.get("refresh_token")
        if not isinstance(access_token, str) or not access_token:
            raise AuthError("Login reply has no access token")
        if not isinstance(refresh_token, str):
            raise AuthError("Login reply has no refresh token")
        logger.info("Login: JWT token retrieved for user=%s", user_id)
        return Session(
            access_token=access_token,
            refresh_token=refresh_token,
            user_id=user_id,
        )

"""
Passbolt Session Errors.

Every failure surfaced by the client is a ``PassboltError`` so callers can
tell "could not reach server" (``NetworkError``) apart from
"authentication rejected" (``AuthError``) and "bad request"
(``ValidationError`` / ``ApiError``).
"""
from typing import Any, Optional


class PassboltError(Exception):
    """Base class for all Passbolt Session errors."""


class NetworkError(PassboltError):
    """Transport failure or unexpected non-2xx status."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class KeyParseError(PassboltError):
    """Malformed armored key material."""


class AuthError(PassboltError):
    """Handshake rejected: nonce mismatch, bad signature, wrong key."""


class SessionError(AuthError):
    """Authenticated call attempted without an active session."""


class ValidationError(PassboltError):
    """Caller input rejected before anything reaches the network."""


class EncryptionError(PassboltError):
    """The crypto backend failed to encrypt, sign, decrypt or verify."""


class ProtocolError(PassboltError):
    """Server response does not have the expected shape."""


class ApiError(PassboltError):
    """Application error reported by the server.

    Attributes:
        code: Server-reported error code (HTTP status when absent).
        message: Server-reported message (raw text when absent).
        status: HTTP status of the response.
        details: Validation details found in the response body, if any.
    """

    def __init__(
        self,
        code: int,
        message: str,
        status: int,
        details: Optional[Any] = None,
    ):
        super().__init__(f"[{code}] {message}")
        self.code = code
        self.message = message
        self.status = status
        self.details = details

"""Passbolt Session - authenticated encrypted channel to a Passbolt server.

Security Note (Threat Model):
    Access and refresh tokens, the unlocked private key and secret
    plaintext live in process memory for the lifetime of the client.
    None of them is logged or persisted.
"""

from .version import __version__
from .client import PassboltClient
from .config import ClientConfig
from .crypto import ClientIdentity, CryptoBackend, ServerIdentity
from .catalog import CatalogSnapshot
from .session import Session
from .resources import Resource, ResourceSubmission
from .exceptions import (
    PassboltError,
    NetworkError,
    KeyParseError,
    AuthError,
    SessionError,
    ValidationError,
    EncryptionError,
    ProtocolError,
    ApiError,
)

__all__ = [
    "__version__",
    "PassboltClient",
    "ClientConfig",
    "ClientIdentity",
    "CryptoBackend",
    "ServerIdentity",
    "CatalogSnapshot",
    "Session",
    "Resource",
    "ResourceSubmission",
    "PassboltError",
    "NetworkError",
    "KeyParseError",
    "AuthError",
    "SessionError",
    "ValidationError",
    "EncryptionError",
    "ProtocolError",
    "ApiError",
]

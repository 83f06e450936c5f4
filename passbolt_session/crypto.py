"""
Crypto Capability - identities, backend interface and payload serialization.

The client never implements public-key primitives itself. A
``CryptoBackend`` turns armored key text into key objects and performs
sign-then-encrypt / decrypt-then-verify on armored messages;
``passbolt_session.pgp.PGPBackend`` is the OpenPGP implementation.

Security Note:
    Never log plaintext, ciphertext, passphrases or key material.
    Only log fingerprints.
"""
import logging
from typing import Any, Optional, Protocol

import orjson
from pydantic import BaseModel, SecretStr

from .exceptions import ProtocolError

logger = logging.getLogger("passbolt.session.crypto")


class ServerIdentity(BaseModel):
    """Public key of the server, used to encrypt to it and verify it."""

    key: Any
    fingerprint: Optional[str] = None

    model_config = {"arbitrary_types_allowed": True, "frozen": True}


class ClientIdentity(BaseModel):
    """Private key of the user, used to sign and decrypt.

    The caller loads the key; the client only keeps a reference for the
    lifetime of the session.
    """

    key: Any
    passphrase: Optional[SecretStr] = None
    fingerprint: Optional[str] = None

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    def __repr__(self) -> str:
        return f"<ClientIdentity fingerprint={self.fingerprint}>"


class CryptoBackend(Protocol):
    """Public-key operations consumed by the client."""

    def load_server_identity(self, armored: str) -> ServerIdentity:
        """Parse an armored public key. Raises KeyParseError."""
        ...

    def load_client_identity(
        self, armored: str, passphrase: Optional[str] = None
    ) -> ClientIdentity:
        """Parse an armored private key. Raises KeyParseError."""
        ...

    def encrypt(
        self, plaintext: str, recipient: ServerIdentity, signer: ClientIdentity
    ) -> str:
        """Sign with ``signer`` and encrypt to ``recipient``.

        Returns armored ciphertext. Raises EncryptionError.
        """
        ...

    def decrypt(
        self, ciphertext: str, recipient: ClientIdentity, sender: ServerIdentity
    ) -> str:
        """Decrypt with ``recipient`` and verify the signature of ``sender``.

        Raises EncryptionError when decryption or verification fails.
        """
        ...


# ---------------------------------------------------------------------------
# Payload serialization
# ---------------------------------------------------------------------------

def serialize_payload(value: Any) -> str:
    """Serialize a JSON payload to text before encryption."""
    return orjson.dumps(value).decode("utf-8")


def deserialize_payload(data: str) -> dict:
    """Parse a decrypted JSON object.

    Raises:
        ProtocolError: If data is not a JSON object.
    """
    try:
        parsed = orjson.loads(data)
    except orjson.JSONDecodeError as err:
        raise ProtocolError("Decrypted payload is not valid JSON") from err
    if not isinstance(parsed, dict):
        raise ProtocolError("Decrypted payload is not a JSON object")
    return parsed

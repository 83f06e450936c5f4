"""
OpenPGP backend - armored keys and messages through PGPy.

Messages are signed by the sender's private key, then encrypted to the
recipient's public key; decryption requires the signature of the expected
sender to verify.
"""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

import pgpy
from pgpy.errors import PGPDecryptionError, PGPEncryptionError, PGPError

from .crypto import ClientIdentity, ServerIdentity
from .exceptions import EncryptionError, KeyParseError

logger = logging.getLogger("passbolt.session.crypto")

# PGPDecryptionError and PGPEncryptionError do not derive from PGPError
_PGP_ERRORS = (
    PGPError,
    PGPDecryptionError,
    PGPEncryptionError,
    ValueError,
    TypeError,
    NotImplementedError,
)


def _parse_key(armored: str) -> pgpy.PGPKey:
    try:
        key, _ = pgpy.PGPKey.from_blob(armored)
    except Exception as err:  # PGPy has no single parse error type
        raise KeyParseError(f"Cannot parse armored key: {err}") from err
    return key


@contextmanager
def _unlocked(identity: ClientIdentity) -> Iterator[pgpy.PGPKey]:
    key = identity.key
    if not key.is_protected:
        yield key
        return
    if identity.passphrase is None:
        raise EncryptionError("Private key is protected and no passphrase was given")
    with key.unlock(identity.passphrase.get_secret_value()) as k:
        yield k


class PGPBackend:
    """CryptoBackend implementation using PGPy."""

    def load_server_identity(self, armored: str) -> ServerIdentity:
        key = _parse_key(armored)
        if not key.is_public:
            key = key.pubkey
        logger.debug("Loaded server key %s", key.fingerprint)
        return ServerIdentity(key=key, fingerprint=str(key.fingerprint))

    def load_client_identity(
        self, armored: str, passphrase: Optional[str] = None
    ) -> ClientIdentity:
        key = _parse_key(armored)
        if key.is_public:
            raise KeyParseError("A private key is required for the client")
        identity = ClientIdentity(
            key=key,
            passphrase=passphrase,
            fingerprint=str(key.fingerprint),
        )
        # fail early on a wrong passphrase
        try:
            with _unlocked(identity):
                pass
        except (*_PGP_ERRORS, EncryptionError) as err:
            raise KeyParseError(f"Cannot unlock private key: {err}") from err
        logger.debug("Loaded client key %s", key.fingerprint)
        return identity

    def encrypt(
        self, plaintext: str, recipient: ServerIdentity, signer: ClientIdentity
    ) -> str:
        try:
            message = pgpy.PGPMessage.new(plaintext)
            with _unlocked(signer) as key:
                message |= key.sign(message)
            encrypted = recipient.key.encrypt(message)
        except _PGP_ERRORS as err:
            raise EncryptionError(f"Cannot encrypt message: {err}") from err
        return str(encrypted)

    def decrypt(
        self, ciphertext: str, recipient: ClientIdentity, sender: ServerIdentity
    ) -> str:
        try:
            message = pgpy.PGPMessage.from_blob(ciphertext)
        except Exception as err:
            raise EncryptionError(f"Cannot parse armored message: {err}") from err
        if not message.is_encrypted:
            raise EncryptionError("Message is not encrypted")
        try:
            with _unlocked(recipient) as key:
                decrypted = key.decrypt(message)
        except _PGP_ERRORS as err:
            raise EncryptionError(f"Cannot decrypt message: {err}") from err
        if not decrypted.is_signed:
            raise EncryptionError("Message is not signed")
        sender_ids = {sender.key.fingerprint.keyid} | set(sender.key.subkeys)
        if not sender_ids & set(decrypted.signers):
            raise EncryptionError("Message is not signed by the expected key")
        try:
            verified = sender.key.verify(decrypted)
        except _PGP_ERRORS as err:
            raise EncryptionError(f"Cannot verify signature: {err}") from err
        if not verified:
            raise EncryptionError("Signature verification failed")
        data = decrypted.message
        if isinstance(data, (bytes, bytearray)):
            data = bytes(data).decode("utf-8")
        return data

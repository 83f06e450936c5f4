"""
Key Directory - fetch and cache the server public key.

The key is fetched once per client from the unauthenticated verification
endpoint. Any failure leaves the cache empty: a partial identity never
reaches the handshake.
"""
import logging
from typing import Optional

from .api import unwrap_body
from .config import ClientConfig, VERIFY_PATH
from .crypto import CryptoBackend, ServerIdentity
from .exceptions import KeyParseError, NetworkError, ProtocolError
from .transport import Transport

logger = logging.getLogger("passbolt.session.keys")


class KeyDirectory:
    """Caches the ServerIdentity for the lifetime of a client."""

    def __init__(
        self, config: ClientConfig, transport: Transport, crypto: CryptoBackend
    ):
        self._config = config
        self._transport = transport
        self._crypto = crypto
        self._identity: Optional[ServerIdentity] = None

    @property
    def identity(self) -> Optional[ServerIdentity]:
        return self._identity

    async def fetch_server_identity(self, refresh: bool = False) -> ServerIdentity:
        """Return the server identity, fetching it on first use.

        Args:
            refresh: Ignore the cached identity and fetch again.

        Raises:
            NetworkError: Transport failure or non-2xx status.
            KeyParseError: Missing or malformed key data.
        """
        if self._identity is not None and not refresh:
            return self._identity
        response = await self._transport.request(
            "GET", self._config.url(VERIFY_PATH)
        )
        if not response.ok:
            raise NetworkError(
                f"Failed to get server public key (status {response.status})",
                status=response.status,
            )
        try:
            body = unwrap_body(response)
        except ProtocolError as err:
            raise KeyParseError("Verification response is malformed") from err
        keydata = body.get("keydata") if isinstance(body, dict) else None
        if not isinstance(keydata, str) or not keydata.strip():
            raise KeyParseError("Verification response has no keydata")
        identity = self._crypto.load_server_identity(keydata)
        self._identity = identity
        logger.info("Server key loaded: %s", identity.fingerprint)
        return identity

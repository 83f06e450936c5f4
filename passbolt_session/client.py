"""
PassboltClient - public API of Passbolt Session.

Composes the pipeline stages in their control-flow order:

    KeyDirectory -> HandshakeEngine -> SessionManager
        -> ResourceTypeCatalog -> ResourcePipeline

- ``login(user_id, client_identity)`` - fetch the server key, perform the
  challenge handshake, then load the resource type catalog
- ``get_resource_types()`` - refresh the catalog
- ``add_resource(submission)`` / ``delete_resource(id)`` /
  ``get_resources()`` - resource operations through the session
- ``logout()`` - invalidate the session

Operations are serialized with an ``asyncio.Lock``; run concurrent
sessions with one client each.
"""
import asyncio
import logging
from typing import Any, Optional, Union
from collections.abc import Mapping

from .catalog import CatalogSnapshot, ResourceTypeCatalog
from .config import ClientConfig
from .crypto import ClientIdentity, CryptoBackend, ServerIdentity
from .exceptions import PassboltError, SessionError
from .handshake import HandshakeEngine
from .keys import KeyDirectory
from .resources import Resource, ResourceId, ResourcePipeline, ResourceSubmission
from .session import Session, SessionManager
from .transport import HTTPTransport, Transport

logger = logging.getLogger("passbolt.session")


class PassboltClient:
    """Client for a Passbolt server.

    Args:
        config: Client configuration, or the base url of the server.
        crypto: Crypto backend; defaults to the OpenPGP backend.
        transport: HTTP transport; defaults to an aiohttp transport owned
            by this client.

    Raises:
        ValidationError: If ``config`` is a string that is not an http(s) url.
    """

    def __init__(
        self,
        config: Union[ClientConfig, str],
        crypto: Optional[CryptoBackend] = None,
        transport: Optional[Transport] = None,
    ):
        if isinstance(config, str):
            config = ClientConfig.create(config)
        self.config = config
        if crypto is None:
            from .pgp import PGPBackend
            crypto = PGPBackend()
        self._crypto = crypto
        self._owns_transport = transport is None
        if transport is None:
            transport = HTTPTransport(
                timeout=config.timeout, verify_ssl=config.verify_ssl,
            )
        self._transport = transport
        self._lock = asyncio.Lock()
        self._client_identity: Optional[ClientIdentity] = None
        self.keys = KeyDirectory(config, transport, crypto)
        self.handshake = HandshakeEngine(config, transport, crypto)
        self.sessions = SessionManager(config, transport)
        self.catalog = ResourceTypeCatalog(config, transport)
        self.resources = ResourcePipeline(config, transport, crypto)

    def __repr__(self) -> str:
        return (
            f"<PassboltClient url={self.config.base_url} "
            f"authenticated={self.sessions.is_authenticated}>"
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def session(self) -> Optional[Session]:
        return self.sessions.current_session()

    @property
    def resource_types(self) -> CatalogSnapshot:
        return self.catalog.snapshot

    def _require_identities(self) -> tuple[ServerIdentity, ClientIdentity]:
        server = self.keys.identity
        client = self._client_identity
        if server is None or client is None:
            raise SessionError("Key material is not loaded; login first")
        return server, client

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def login(
        self,
        user_id: str,
        client_identity: ClientIdentity,
        load_catalog: bool = True,
    ) -> bool:
        """Login to the server and retrieve the JWT tokens.

        Args:
            user_id: UUID of the user on the server.
            client_identity: Private key of the user.
            load_catalog: Load the resource type catalog after login.

        Returns:
            True once the session is established.

        Raises:
            NetworkError, KeyParseError: The server key is unavailable.
            AuthError: The handshake failed; no session is kept.
        """
        async with self._lock:
            self.sessions.clear()
            server = await self.keys.fetch_server_identity(refresh=True)
            session = await self.handshake.login(user_id, client_identity, server)
            self._client_identity = client_identity
            self.sessions.establish(session)
            if load_catalog:
                try:
                    await self.catalog.refresh(session)
                except PassboltError as err:
                    logger.warning("Cannot read resource types: %s", err)
            return True

    async def logout(self) -> None:
        """Invalidate the session; local tokens are dropped in every case."""
        async with self._lock:
            await self.sessions.logout()

    # ------------------------------------------------------------------
    # Catalog and resources
    # ------------------------------------------------------------------

    async def get_resource_types(self) -> CatalogSnapshot:
        async with self._lock:
            return await self.catalog.refresh(self.sessions.require())

    async def get_resources(self) -> list[Resource]:
        async with self._lock:
            return await self.resources.list(self.sessions.require())

    async def add_resource(
        self, submission: Union[ResourceSubmission, Mapping[str, Any]]
    ) -> ResourceId:
        """Add a resource; see ``ResourcePipeline.submit``."""
        async with self._lock:
            session = self.sessions.require()
            server, client = self._require_identities()
            return await self.resources.submit(
                session, self.catalog.snapshot, submission, server, client,
            )

    async def delete_resource(self, resource_id: ResourceId) -> None:
        async with self._lock:
            await self.resources.delete(self.sessions.require(), resource_id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        if self._owns_transport:
            await self._transport.close()

    async def __aenter__(self) -> "PassboltClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

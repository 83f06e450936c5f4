"""
Resource Type Catalog - server-declared secret schemas.

Maps each resource type slug (``"password-string"``,
``"password-and-description"``, ...) to the server id that must be sent
with a new resource. A refresh builds a new immutable snapshot and swaps
it in; a failed refresh keeps the previous snapshot.
"""
import logging
from types import MappingProxyType
from collections.abc import Iterator, Mapping

from .api import unwrap_body
from .config import ClientConfig, RESOURCE_TYPES_PATH
from .exceptions import NetworkError, ProtocolError
from .session import Session
from .transport import Transport

logger = logging.getLogger("passbolt.session.catalog")


class CatalogSnapshot(Mapping[str, str]):
    """Read-only slug -> resource type id mapping."""

    def __init__(self, types: Mapping[str, str] | None = None):
        self._types = MappingProxyType(dict(types or {}))

    def __getitem__(self, slug: str) -> str:
        return self._types[slug]

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)

    def __repr__(self) -> str:
        return f"<CatalogSnapshot slugs={sorted(self._types)}>"

    def type_id(self, slug: str) -> str | None:
        return self._types.get(slug)


def parse_resource_types(body) -> CatalogSnapshot:
    """Build a snapshot from the ``body`` of /resource-types.json.

    Raises:
        ProtocolError: If body is not a list of {slug, id} records.
    """
    if not isinstance(body, list):
        raise ProtocolError("Resource types body is not a list")
    types: dict[str, str] = {}
    for record in body:
        if not isinstance(record, dict):
            raise ProtocolError("Resource type record is not an object")
        slug = record.get("slug")
        type_id = record.get("id")
        if not isinstance(slug, str) or not isinstance(type_id, str):
            raise ProtocolError("Resource type record needs string slug and id")
        types[slug] = type_id
    return CatalogSnapshot(types)


class ResourceTypeCatalog:
    """Holds the current CatalogSnapshot of a client."""

    def __init__(self, config: ClientConfig, transport: Transport):
        self._config = config
        self._transport = transport
        self._snapshot = CatalogSnapshot()

    @property
    def snapshot(self) -> CatalogSnapshot:
        return self._snapshot

    async def refresh(self, session: Session) -> CatalogSnapshot:
        """Fetch resource types and replace the snapshot.

        Raises:
            NetworkError: Transport failure or non-2xx status.
            ProtocolError: Unexpected response shape.
        """
        response = await self._transport.request(
            "GET",
            self._config.url(RESOURCE_TYPES_PATH),
            headers=session.authorization,
        )
        if not response.ok:
            raise NetworkError(
                f"Error getting resource types (status {response.status})",
                status=response.status,
            )
        snapshot = parse_resource_types(unwrap_body(response))
        self._snapshot = snapshot
        logger.info("Resource types loaded: %d", len(snapshot))
        return snapshot

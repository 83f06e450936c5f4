"""
Secret Submission Pipeline - create, list and delete resources.

A resource is only submitted after its type slug has been found in the
catalog and its secret has been encrypted to the server key (signed by the
client key). Plaintext secrets never reach the transport.

Security Note:
    Never log passwords or ciphertext. Only log type slugs and resource ids.
"""
import logging
from typing import Any, Optional, Union
from urllib.parse import quote
from collections.abc import Mapping

import pydantic
from pydantic import BaseModel, ConfigDict, Field, SecretStr

from .api import raise_for_api_error, unwrap_body
from .catalog import CatalogSnapshot
from .config import ClientConfig, RESOURCE_PATH, RESOURCES_PATH
from .crypto import ClientIdentity, CryptoBackend, ServerIdentity
from .exceptions import NetworkError, ProtocolError, ValidationError
from .session import Session
from .transport import Transport

logger = logging.getLogger("passbolt.session.resources")

ResourceId = str


class ResourceSubmission(BaseModel):
    """Caller input for a new resource.

    Accepts both ``resource_type`` and ``resourceType`` as key.
    """

    resource_type: str = Field(alias="resourceType", min_length=1)
    username: str = ""
    password: SecretStr
    name: Optional[str] = None
    uri: Optional[str] = None
    description: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    @property
    def resource_name(self) -> str:
        return self.name or f"password4{self.username}"

    @classmethod
    def parse(cls, data: Mapping[str, Any]) -> "ResourceSubmission":
        """Validate a plain mapping.

        Raises:
            ValidationError: If a required field is missing or invalid.
        """
        try:
            return cls.model_validate(dict(data))
        except pydantic.ValidationError as err:
            fields = sorted(
                ".".join(str(p) for p in e["loc"]) for e in err.errors()
            )
            raise ValidationError(
                f"Invalid resource parameters: {', '.join(fields)}"
            ) from err


class Resource(BaseModel):
    """A resource as listed by the server."""

    id: str
    name: str = ""
    resource_type_id: Optional[str] = None
    username: Optional[str] = None
    uri: Optional[str] = None
    description: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class ResourcePipeline:
    """Validates, encrypts and submits resources through a session."""

    def __init__(
        self, config: ClientConfig, transport: Transport, crypto: CryptoBackend
    ):
        self._config = config
        self._transport = transport
        self._crypto = crypto

    def build_body(
        self,
        submission: ResourceSubmission,
        type_id: str,
        ciphertext: str,
    ) -> dict:
        body: dict[str, Any] = {
            "name": submission.resource_name,
            "resource_type_id": type_id,
            "secrets": [{"data": ciphertext}],
        }
        for field in ("username", "uri", "description"):
            value = getattr(submission, field)
            if value:
                body[field] = value
        return body

    async def submit(
        self,
        session: Session,
        catalog: CatalogSnapshot,
        submission: Union[ResourceSubmission, Mapping[str, Any]],
        server: ServerIdentity,
        client: ClientIdentity,
    ) -> ResourceId:
        """Encrypt and create a resource.

        Returns:
            Id of the created resource.

        Raises:
            ValidationError: Unknown type slug or missing field; nothing is
                sent.
            EncryptionError: The secret could not be encrypted.
            NetworkError: Transport failure.
            ApiError: Server answered with a non-200 status.
        """
        if not isinstance(submission, ResourceSubmission):
            submission = ResourceSubmission.parse(submission)
        type_id = catalog.type_id(submission.resource_type)
        if type_id is None:
            raise ValidationError(
                f"Unknown resource type: {submission.resource_type}"
            )
        logger.debug("Add resource of type: %s", submission.resource_type)
        ciphertext = self._crypto.encrypt(
            submission.password.get_secret_value(), server, client
        )
        response = await self._transport.request(
            "POST",
            self._config.url(RESOURCES_PATH),
            headers=session.authorization,
            json=self.build_body(submission, type_id, ciphertext),
        )
        raise_for_api_error(response)
        body = unwrap_body(response)
        resource_id = body.get("id") if isinstance(body, dict) else None
        if not isinstance(resource_id, str):
            raise ProtocolError("Created resource has no id")
        logger.info("New resource created: %s", resource_id)
        return resource_id

    async def delete(self, session: Session, resource_id: ResourceId) -> None:
        """Delete a resource.

        Raises:
            ValidationError: Empty resource id.
            NetworkError: Transport failure.
            ApiError: Server answered with a non-200 status.
        """
        if not resource_id:
            raise ValidationError("Resource id cannot be empty")
        response = await self._transport.request(
            "DELETE",
            self._config.url(RESOURCE_PATH.format(resource_id=quote(resource_id, safe=""))),
            headers=session.authorization,
        )
        raise_for_api_error(response)
        logger.info("Resource deleted: %s", resource_id)

    async def list(self, session: Session) -> list[Resource]:
        """Return every resource visible to the session.

        No pagination: only use with a small number of resources.

        Raises:
            NetworkError: Transport failure or non-2xx status.
            ProtocolError: Unexpected response shape.
        """
        response = await self._transport.request(
            "GET",
            self._config.url(RESOURCES_PATH),
            headers=session.authorization,
        )
        if not response.ok:
            raise NetworkError(
                f"Error listing resources (status {response.status})",
                status=response.status,
            )
        body = unwrap_body(response)
        if not isinstance(body, list):
            raise ProtocolError("Resources body is not a list")
        try:
            resources = [Resource.model_validate(item) for item in body]
        except pydantic.ValidationError as err:
            raise ProtocolError(f"Malformed resource record: {err}") from err
        logger.debug("Found %d resources", len(resources))
        return resources

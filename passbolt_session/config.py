"""
Client Configuration - Server location and validated protocol settings.

Reads settings from environment variables:
    PASSBOLT_URL = <base url of the Passbolt server>
    PASSBOLT_TIMEOUT = <per-request timeout in seconds>
    PASSBOLT_CHALLENGE_TTL = <login challenge lifetime in seconds>
    PASSBOLT_VERIFY_SSL = <true|false>
"""
import os
import logging

import pydantic
from pydantic import BaseModel, Field, field_validator

from .exceptions import ValidationError

logger = logging.getLogger("passbolt.session")

# Endpoints, relative to the base url.
VERIFY_PATH = "/auth/verify.json"
LOGIN_PATH = "/auth/jwt/login.json"
LOGOUT_PATH = "/auth/jwt/logout.json"
RESOURCE_TYPES_PATH = "/resource-types.json"
RESOURCES_PATH = "/resources.json"
RESOURCE_PATH = "/resources/{resource_id}.json"

PROTOCOL_VERSION = "1.0.0"

_TRUE_VALUES = ("1", "true", "yes", "on")


class ClientConfig(BaseModel):
    """Validated client configuration."""

    base_url: str
    timeout: float = Field(default=30, ge=1)
    challenge_ttl: int = Field(default=120, ge=10)
    protocol_version: str = Field(default=PROTOCOL_VERSION)
    verify_ssl: bool = True

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an http(s) url and strip the trailing slash."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) url, got {v!r}")
        return v.rstrip("/")

    def url(self, path: str) -> str:
        """Return the absolute url for an endpoint path."""
        return self.base_url + path

    @classmethod
    def create(cls, base_url: str, **kwargs) -> "ClientConfig":
        """Validate caller supplied settings.

        Raises:
            ValidationError: If a setting is missing or invalid.
        """
        try:
            return cls(base_url=base_url, **kwargs)
        except pydantic.ValidationError as err:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}"
                for e in err.errors()
            )
            raise ValidationError(f"Invalid configuration: {problems}") from err

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Create ClientConfig by loading values from environment.

        Returns:
            Populated ClientConfig instance.

        Raises:
            RuntimeError: If PASSBOLT_URL is not set.
        """
        base_url = os.environ.get("PASSBOLT_URL")
        if not base_url:
            raise RuntimeError(
                "PASSBOLT_URL environment variable is not set"
            )
        values = {"base_url": base_url}
        if "PASSBOLT_TIMEOUT" in os.environ:
            values["timeout"] = float(os.environ["PASSBOLT_TIMEOUT"])
        if "PASSBOLT_CHALLENGE_TTL" in os.environ:
            values["challenge_ttl"] = int(os.environ["PASSBOLT_CHALLENGE_TTL"])
        if "PASSBOLT_VERIFY_SSL" in os.environ:
            values["verify_ssl"] = (
                os.environ["PASSBOLT_VERIFY_SSL"].lower() in _TRUE_VALUES
            )
        config = cls(**values)
        logger.debug("Loaded client config for %s", config.base_url)
        return config

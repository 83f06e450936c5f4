"""
HTTP Transport - thin request/response adapter over aiohttp.

The rest of the package only relies on ``request()`` returning a
``Response`` (status + raw body); anything implementing the same coroutine
can stand in for ``HTTPTransport``.

Security Note:
    Never log headers or bodies: they carry bearer tokens and ciphertext.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import orjson
import aiohttp

from .exceptions import NetworkError, ProtocolError

logger = logging.getLogger("passbolt.session.transport")


@dataclass(frozen=True)
class Response:
    """Status and raw body of an HTTP exchange."""

    status: int
    body: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            ProtocolError: If the body is not valid JSON.
        """
        try:
            return orjson.loads(self.body)
        except orjson.JSONDecodeError as err:
            raise ProtocolError(
                f"Response body is not valid JSON (status {self.status})"
            ) from err


class Transport(Protocol):
    async def request(
        self,
        method: str,
        url: str,
        headers: Optional[dict[str, str]] = None,
        json: Any = None,
    ) -> Response:
        ...


class HTTPTransport:
    """aiohttp-backed transport.

    Args:
        session: Existing ``aiohttp.ClientSession``; one is created (and
            owned) when omitted.
        timeout: Total timeout in seconds applied to every request.
        verify_ssl: Verify the server certificate.
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 30,
        verify_ssl: bool = True,
    ):
        self._session = session
        self._owned = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._verify_ssl = verify_ssl

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owned = True
        return self._session

    async def request(
        self,
        method: str,
        url: str,
        headers: Optional[dict[str, str]] = None,
        json: Any = None,
    ) -> Response:
        """Perform an HTTP request and read the whole body.

        Raises:
            NetworkError: On connection failure or timeout.
        """
        headers = dict(headers or {})
        data = None
        if json is not None:
            data = orjson.dumps(json)
            headers.setdefault("Content-Type", "application/json")
        headers.setdefault("Accept", "application/json")
        session = self._get_session()
        try:
            async with session.request(
                method,
                url,
                headers=headers,
                data=data,
                timeout=self._timeout,
                ssl=self._verify_ssl,
            ) as resp:
                body = await resp.read()
        except asyncio.TimeoutError as err:
            raise NetworkError(f"{method} {url} timed out") from err
        except aiohttp.ClientError as err:
            raise NetworkError(f"{method} {url} failed: {err}") from err
        logger.debug("%s %s -> %s", method, url, resp.status)
        return Response(status=resp.status, body=body)

    async def close(self) -> None:
        if self._owned and self._session is not None:
            await self._session.close()
            self._session = None

"""
Response envelope helpers.

Every Passbolt JSON response is wrapped as::

    {"header": {"code": <int>, "message": <str>, ...}, "body": <payload>}

Error bodies are parsed tolerantly: whatever part of the header is missing
falls back to the HTTP status and the raw response text.
"""
import logging
from typing import Any

from .exceptions import ApiError, ProtocolError
from .transport import Response

logger = logging.getLogger("passbolt.session.api")

_MAX_MESSAGE = 512


def unwrap_body(response: Response) -> Any:
    """Return the ``body`` member of a JSON envelope.

    Raises:
        ProtocolError: If the response is not JSON or has no ``body``.
    """
    payload = response.json()
    if not isinstance(payload, dict) or "body" not in payload:
        raise ProtocolError(
            f"Response envelope has no 'body' (status {response.status})"
        )
    return payload["body"]


def parse_api_error(response: Response) -> ApiError:
    """Build an ApiError from a failed response.

    Never raises: unexpected shapes degrade to the HTTP status and the
    (truncated) raw text.
    """
    code: int = response.status
    message = response.text[:_MAX_MESSAGE] or f"HTTP {response.status}"
    details = None
    try:
        payload = response.json()
    except ProtocolError:
        payload = None
    if isinstance(payload, dict):
        header = payload.get("header")
        if isinstance(header, dict):
            if isinstance(header.get("code"), int):
                code = header["code"]
            if isinstance(header.get("message"), str) and header["message"]:
                message = header["message"]
        body = payload.get("body")
        if isinstance(body, (dict, list)) and body:
            details = body
    logger.debug("API error %s (status %s)", code, response.status)
    return ApiError(code, message, status=response.status, details=details)


def raise_for_api_error(response: Response) -> None:
    """Raise an ApiError unless the response has status 200."""
    if response.status != 200:
        raise parse_api_error(response)

"""
Shared fixtures: a scripted Passbolt server behind a fake transport and a
deterministic crypto backend, so the client runs without network or GPG.
"""
import base64
from typing import Any, Optional
from urllib.parse import urlparse

import orjson
import pytest

from passbolt_session.config import ClientConfig
from passbolt_session.crypto import ClientIdentity, ServerIdentity
from passbolt_session.exceptions import EncryptionError, KeyParseError, NetworkError
from passbolt_session.transport import Response

BASE_URL = "https://passbolt.local"
USER_ID = "u1"
SERVER_FP = "SERVERFP"
CLIENT_FP = "CLIENTFP"
PASSWORD_STRING_ID = "a28a04cd-6f53-518a-967c-9963bf9cec51"
PASSWORD_DESC_ID = "669f8c64-242a-59fb-92fc-81f660975fd3"

_MESSAGE_HEADER = "-----BEGIN FAKE MESSAGE-----\n"


class FakeCrypto:
    """Armors JSON envelopes naming sender and recipient fingerprints."""

    def load_server_identity(self, armored: str) -> ServerIdentity:
        if not armored.startswith("FAKE PUBLIC KEY "):
            raise KeyParseError("not a public key")
        fp = armored[len("FAKE PUBLIC KEY "):]
        return ServerIdentity(key=armored, fingerprint=fp)

    def load_client_identity(
        self, armored: str, passphrase: Optional[str] = None
    ) -> ClientIdentity:
        if not armored.startswith("FAKE PRIVATE KEY "):
            raise KeyParseError("not a private key")
        fp = armored[len("FAKE PRIVATE KEY "):]
        return ClientIdentity(key=armored, passphrase=passphrase, fingerprint=fp)

    @staticmethod
    def seal(plaintext: str, to_fp: str, from_fp: str) -> str:
        envelope = orjson.dumps({"to": to_fp, "from": from_fp, "data": plaintext})
        return _MESSAGE_HEADER + base64.b64encode(envelope).decode("ascii")

    @staticmethod
    def open(ciphertext: str) -> dict:
        if not ciphertext.startswith(_MESSAGE_HEADER):
            raise EncryptionError("not an armored message")
        raw = base64.b64decode(ciphertext[len(_MESSAGE_HEADER):])
        return orjson.loads(raw)

    def encrypt(self, plaintext, recipient, signer) -> str:
        return self.seal(plaintext, recipient.fingerprint, signer.fingerprint)

    def decrypt(self, ciphertext, recipient, sender) -> str:
        envelope = self.open(ciphertext)
        if envelope["to"] != recipient.fingerprint:
            raise EncryptionError("wrong recipient key")
        if envelope["from"] != sender.fingerprint:
            raise EncryptionError("bad signature")
        return envelope["data"]


def envelope(body: Any, code: int = 200, message: str = "OK") -> bytes:
    return orjson.dumps({
        "header": {"status": "success", "code": code, "message": message},
        "body": body,
    })


class FakeServer:
    """Scripted Passbolt API implementing the Transport interface.

    ``overrides`` maps (method, path) to a Response, or an exception to
    raise, replacing the scripted behaviour for that endpoint.
    """

    def __init__(self):
        self.calls: list[dict] = []
        self.overrides: dict[tuple[str, str], Any] = {}
        self.echo_token: Optional[str] = None
        self.signer_fp = SERVER_FP
        self.resource_types = [
            {"id": PASSWORD_STRING_ID, "slug": "password-string"},
            {"id": PASSWORD_DESC_ID, "slug": "password-and-description"},
        ]
        self.resources: dict[str, dict] = {
            "r-1": {"id": "r-1", "name": "existing", "resource_type_id": PASSWORD_STRING_ID},
        }
        self.access_token = "access-token-1"
        self.refresh_token = "refresh-token-1"
        self.revoked: list[str] = []
        self.last_challenge: Optional[dict] = None
        self.closed = False

    async def close(self) -> None:
        self.closed = True

    def paths(self) -> list[str]:
        return [f"{c['method']} {c['path']}" for c in self.calls]

    def authorized(self, headers) -> bool:
        return (headers or {}).get("Authorization") == f"Bearer {self.access_token}"

    async def request(self, method, url, headers=None, json=None) -> Response:
        path = urlparse(url).path
        self.calls.append(
            {"method": method, "path": path, "headers": dict(headers or {}), "json": json}
        )
        override = self.overrides.get((method, path))
        if isinstance(override, Exception):
            raise override
        if override is not None:
            return override
        return self.dispatch(method, path, headers, json)

    def dispatch(self, method, path, headers, json) -> Response:
        if (method, path) == ("GET", "/auth/verify.json"):
            return Response(200, envelope({
                "fingerprint": SERVER_FP, "keydata": f"FAKE PUBLIC KEY {SERVER_FP}",
            }))
        if (method, path) == ("POST", "/auth/jwt/login.json"):
            return self.login(json)
        if not self.authorized(headers):
            return Response(401, envelope(None, 401, "Authentication is required to continue"))
        if (method, path) == ("POST", "/auth/jwt/logout.json"):
            self.revoked.append(json["refresh_token"])
            return Response(200, envelope(None))
        if (method, path) == ("GET", "/resource-types.json"):
            return Response(200, envelope(self.resource_types))
        if (method, path) == ("GET", "/resources.json"):
            return Response(200, envelope(list(self.resources.values())))
        if (method, path) == ("POST", "/resources.json"):
            resource_id = f"r-{len(self.resources) + 1}"
            self.resources[resource_id] = {
                "id": resource_id,
                "name": json["name"],
                "resource_type_id": json["resource_type_id"],
            }
            return Response(200, envelope(self.resources[resource_id]))
        if method == "DELETE" and path.startswith("/resources/"):
            resource_id = path[len("/resources/"):-len(".json")]
            if resource_id not in self.resources:
                return Response(404, envelope(None, 404, "The resource does not exist."))
            del self.resources[resource_id]
            return Response(200, envelope(None))
        return Response(404, b"Not Found")

    def login(self, json) -> Response:
        if json.get("user_id") != USER_ID:
            return Response(404, envelope(None, 404, "The user does not exist."))
        sealed = FakeCrypto.open(json["challenge"])
        if sealed["to"] != SERVER_FP or sealed["from"] != CLIENT_FP:
            return Response(400, envelope(None, 400, "The challenge cannot be decrypted."))
        self.last_challenge = orjson.loads(sealed["data"])
        reply = {
            "version": "1.0.0",
            "domain": BASE_URL,
            "verify_token": self.echo_token or self.last_challenge["verify_token"],
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
        }
        challenge = FakeCrypto.seal(
            orjson.dumps(reply).decode(), CLIENT_FP, self.signer_fp
        )
        return Response(200, envelope({"challenge": challenge}))


@pytest.fixture
def config():
    return ClientConfig(base_url=BASE_URL + "/", timeout=5)


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def crypto():
    return FakeCrypto()


@pytest.fixture
def server_identity(crypto):
    return crypto.load_server_identity(f"FAKE PUBLIC KEY {SERVER_FP}")


@pytest.fixture
def client_identity(crypto):
    return crypto.load_client_identity(f"FAKE PRIVATE KEY {CLIENT_FP}", "secret")


@pytest.fixture
def offline():
    """Error raised by a transport that cannot reach the server."""
    return NetworkError("connection refused")

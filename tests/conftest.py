"""Root-level pytest configuration and shared fixtures.

Adds the src/ directory to sys.path so cascade can be imported without installation.
Provides a controllable clock, httpx mock-transport helpers, and a fake
identity/store/vault backend used across the test suites.

Key exports:
    - FakeClock: manually advanced aware UTC clock
    - make_mock_client / json_response: httpx.MockTransport helpers
    - MockCloudBackend: identity endpoint, configuration store and vault in one handler
"""

import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

IDENTITY_ENDPOINT = "https://fake-identity-endpoint/msi/token"
IDENTITY_HEADER = "cascade-identity-secret"
STORE_NAME = "mock-app-config"
STORE_HOST = f"{STORE_NAME}.azconfig.io"
VAULT_HOST = "demo-vault.vault.azure.net"
SECRET_URI = f"https://{VAULT_HOST}/secrets/example-secret"
FEATURE_CONTENT_TYPE = "application/vnd.microsoft.appconfig.ff+json;charset=utf-8"
VAULTREF_CONTENT_TYPE = (
    "application/vnd.microsoft.appconfig.keyvaultref+json;charset=utf-8"
)


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Aware UTC clock that only moves when advanced."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    """Provide a FakeClock starting at 2026-01-01T00:00:00Z."""
    return FakeClock()


# ---------------------------------------------------------------------------
# httpx helpers
# ---------------------------------------------------------------------------


def make_mock_client(
    handler: Callable[[httpx.Request], httpx.Response],
) -> httpx.AsyncClient:
    """Create an httpx.AsyncClient with a mock transport handler.

    Args:
        handler: A callable(request) -> httpx.Response.

    Returns:
        An httpx.AsyncClient using MockTransport.
    """
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def json_response(data: Any, status_code: int = 200) -> httpx.Response:
    """Build a mock httpx.Response with JSON body."""
    return httpx.Response(
        status_code=status_code,
        content=json.dumps(data).encode(),
        headers={"content-type": "application/json"},
    )


# ---------------------------------------------------------------------------
# Fake cloud backend
# ---------------------------------------------------------------------------


class MockCloudBackend:
    """Identity endpoint, configuration store and vault behind one transport.

    Attributes:
        label: Label the store accepts; any other label gets a 400
        items: Store items by key
        secrets: Vault secret values by URI path
        requests: Every request received, in order
        token_lifetime: Lifetime of issued tokens
        issued: Number of tokens issued so far
    """

    def __init__(self, clock: FakeClock, label: str = "development"):
        self.clock = clock
        self.label = label
        self.items: Dict[str, Dict[str, Any]] = {}
        self.secrets: Dict[str, str] = {"/secrets/example-secret": "test_b"}
        self.requests: List[httpx.Request] = []
        self.token_lifetime = timedelta(minutes=30)
        self.issued = 0
        self.identity_status = 200

    def add_item(
        self, key: str, value: str, content_type: Optional[str] = ""
    ) -> "MockCloudBackend":
        self.items[key] = {
            "etag": "yAxcsTBeBrAuL0VpwiaKqso6usB",
            "key": key,
            "label": self.label,
            "content_type": content_type,
            "value": value,
            "tags": {},
            "locked": False,
            "last_modified": "2021-10-29T19:38:43+00:00",
        }
        return self

    def requests_to(self, host: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host == "fake-identity-endpoint":
            return self._identity(request)
        if host == STORE_HOST:
            return self._store(request)
        if host == VAULT_HOST:
            return self._vault(request)
        return httpx.Response(status_code=502)

    def _identity(self, request: httpx.Request) -> httpx.Response:
        if request.headers.get("X-IDENTITY-HEADER") != IDENTITY_HEADER:
            return json_response({"error": "bad identity header"}, status_code=401)
        if self.identity_status != 200:
            return json_response({"error": "unavailable"}, status_code=self.identity_status)

        self.issued += 1
        resource = request.url.params.get("resource")
        expires = self.clock() + self.token_lifetime
        return json_response(
            {
                "resource": resource,
                "access_token": f"token-{self.issued}-{resource}",
                "expires_on": str(int(expires.timestamp())),
            }
        )

    def _authorized(self, request: httpx.Request) -> bool:
        auth = request.headers.get("Authorization", "")
        return auth.startswith("Bearer token-")

    def _store(self, request: httpx.Request) -> httpx.Response:
        if not self._authorized(request):
            return httpx.Response(status_code=401)
        if request.url.params.get("label") != self.label:
            return json_response(
                {
                    "type": "https://azconfig.io/errors/invalid-argument",
                    "title": "Invalid label",
                    "status": 400,
                },
                status_code=400,
            )
        key = request.url.path.rsplit("/", 1)[-1]
        item = self.items.get(key)
        if item is None:
            return httpx.Response(status_code=404)
        return json_response(item)

    def _vault(self, request: httpx.Request) -> httpx.Response:
        if not self._authorized(request):
            return httpx.Response(status_code=401)
        value = self.secrets.get(request.url.path)
        if value is None:
            return json_response({"error": {"code": "SecretNotFound"}}, status_code=404)
        return json_response(
            {
                "value": value,
                "contentType": "text/plain; charset=utf-8",
                "id": f"https://{VAULT_HOST}{request.url.path}/d4a13ffb0a764302b29dd22cfc464ed4",
                "attributes": {"enabled": True, "created": 1588714677},
            }
        )


@pytest.fixture
def backend(clock: FakeClock) -> MockCloudBackend:
    """Provide a fake backend accepting the 'development' label."""
    return MockCloudBackend(clock)


@pytest.fixture
async def backend_client(backend: MockCloudBackend):
    """Provide an httpx client routed to the fake backend."""
    client = make_mock_client(backend)
    yield client
    await client.aclose()


@pytest.fixture
def identity_env() -> Dict[str, str]:
    """Provide the hosting-platform identity bindings."""
    return {
        "IDENTITY_ENDPOINT": IDENTITY_ENDPOINT,
        "IDENTITY_HEADER": IDENTITY_HEADER,
    }

"""Unit tests for resource authorization strategies and the token cache.

Verifies token reuse within the validity window, refresh after expiry and
within the safety margin, per-resource isolation, error mapping for failed
acquisitions, expiry parsing, and the authorization registry.
"""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List
from urllib.parse import parse_qs

import httpx
import pytest

from cascade.authorization import (
    AccessToken,
    AppRegistrationAuthorization,
    ManagedIdentityAuthorization,
    ResourceAuthorizationContext,
)
from cascade.authorization.token import parse_expiry
from cascade.exception.errors import AuthorizationError, MissingRequiredFieldError

STORE_RESOURCE = "https://mock-app-config.azconfig.io/"
VAULT_RESOURCE = "https://vault.azure.net"


def _make_mock_client(handler: Any) -> httpx.AsyncClient:
    """Create an httpx.AsyncClient with a mock transport handler."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _json_response(data: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code=status_code,
        content=json.dumps(data).encode(),
        headers={"content-type": "application/json"},
    )


@pytest.fixture
def managed_identity(
    backend: Any, backend_client: httpx.AsyncClient, identity_env: Dict[str, str], clock: Any
) -> ManagedIdentityAuthorization:
    """Provide a managed identity authorization against the fake backend."""
    return ManagedIdentityAuthorization.from_environment(
        identity_env, http_client=backend_client, clock=clock
    )


# ---------------------------------------------------------------------------
# AccessToken
# ---------------------------------------------------------------------------


class TestAccessToken:
    """Tests for the AccessToken expiry rule."""

    def test_unexpired_before_expiry(self, clock: Any) -> None:
        token = AccessToken("t", "r", clock() + timedelta(minutes=1))

        assert token.is_expired(clock()) is False

    def test_expired_at_expiry(self, clock: Any) -> None:
        token = AccessToken("t", "r", clock())

        assert token.is_expired(clock()) is True

    def test_skew_expires_early(self, clock: Any) -> None:
        """A token inside the safety margin is treated as expired."""
        token = AccessToken("t", "r", clock() + timedelta(seconds=30))

        assert token.is_expired(clock(), skew=timedelta(seconds=60)) is True

    def test_repr_hides_token_value(self, clock: Any) -> None:
        token = AccessToken("super-secret", "r", clock())

        assert "super-secret" not in repr(token)


class TestParseExpiry:
    """Tests for parse_expiry."""

    NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def test_epoch_seconds(self) -> None:
        expected = self.NOW + timedelta(hours=1)
        payload = {"expires_on": str(int(expected.timestamp()))}

        assert parse_expiry(payload, self.NOW, "r") == expected

    def test_iso_timestamp(self) -> None:
        payload = {"expires_on": "2026-01-01T00:30:00+00:00"}

        assert parse_expiry(payload, self.NOW, "r") == self.NOW + timedelta(minutes=30)

    def test_expires_in(self) -> None:
        assert parse_expiry({"expires_in": "3599"}, self.NOW, "r") == self.NOW + timedelta(
            seconds=3599
        )

    @pytest.mark.parametrize(
        "payload", [{}, {"expires_on": "next tuesday"}, {"expires_in": "soon"}]
    )
    def test_missing_or_malformed_raises(self, payload: Dict[str, Any]) -> None:
        with pytest.raises(AuthorizationError):
            parse_expiry(payload, self.NOW, "r")


# ---------------------------------------------------------------------------
# ManagedIdentityAuthorization
# ---------------------------------------------------------------------------


class TestManagedIdentityAuthorization:
    """Tests for token acquisition and caching through the identity endpoint."""

    async def test_sends_resource_and_identity_header(
        self, managed_identity: ManagedIdentityAuthorization, backend: Any
    ) -> None:
        await managed_identity.get_token(STORE_RESOURCE)

        request = backend.requests[-1]
        assert request.url.params["resource"] == STORE_RESOURCE
        assert request.url.params["api-version"] == "2019-08-01"
        assert request.headers["X-IDENTITY-HEADER"] == "cascade-identity-secret"

    async def test_token_reused_within_validity(
        self, managed_identity: ManagedIdentityAuthorization, backend: Any, clock: Any
    ) -> None:
        """Two reads inside the validity window return the same access token."""
        first = await managed_identity.get_token(STORE_RESOURCE)
        clock.advance(minutes=10)
        second = await managed_identity.get_token(STORE_RESOURCE)

        assert first.access_token == second.access_token
        assert backend.issued == 1

    async def test_new_token_after_expiry(
        self, managed_identity: ManagedIdentityAuthorization, backend: Any, clock: Any
    ) -> None:
        first = await managed_identity.get_token(STORE_RESOURCE)
        clock.advance(minutes=31)
        second = await managed_identity.get_token(STORE_RESOURCE)

        assert first.access_token != second.access_token
        assert backend.issued == 2

    async def test_refreshes_inside_safety_margin(
        self, managed_identity: ManagedIdentityAuthorization, backend: Any, clock: Any
    ) -> None:
        """With the default 60s margin, a token 30s from expiry is replaced."""
        await managed_identity.get_token(STORE_RESOURCE)
        clock.advance(minutes=29, seconds=30)
        await managed_identity.get_token(STORE_RESOURCE)

        assert backend.issued == 2

    async def test_tokens_isolated_per_resource(
        self, managed_identity: ManagedIdentityAuthorization
    ) -> None:
        store_token = await managed_identity.get_token(STORE_RESOURCE)
        vault_token = await managed_identity.get_token(VAULT_RESOURCE)

        assert store_token.resource == STORE_RESOURCE
        assert vault_token.resource == VAULT_RESOURCE
        assert store_token.access_token != vault_token.access_token
        assert (await managed_identity.get_token(STORE_RESOURCE)) is store_token

    async def test_force_refresh(
        self, managed_identity: ManagedIdentityAuthorization, backend: Any
    ) -> None:
        first = await managed_identity.get_token(STORE_RESOURCE)
        second = await managed_identity.get_token(STORE_RESOURCE, force_refresh=True)

        assert first.access_token != second.access_token
        assert backend.issued == 2

    async def test_get_access_token_returns_string(
        self, managed_identity: ManagedIdentityAuthorization
    ) -> None:
        assert (await managed_identity.get_access_token(STORE_RESOURCE)).startswith("token-")

    async def test_non_2xx_raises(
        self, managed_identity: ManagedIdentityAuthorization, backend: Any
    ) -> None:
        backend.identity_status = 500

        with pytest.raises(AuthorizationError) as exc_info:
            await managed_identity.get_token(STORE_RESOURCE)

        assert exc_info.value.details["status"] == 500

    async def test_failure_keeps_no_token(
        self, managed_identity: ManagedIdentityAuthorization, backend: Any
    ) -> None:
        backend.identity_status = 503
        with pytest.raises(AuthorizationError):
            await managed_identity.get_token(STORE_RESOURCE)

        assert managed_identity.get_stats()["total_tokens"] == 0

    async def test_network_error_raises(self, identity_env: Dict[str, str]) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        authorization = ManagedIdentityAuthorization.from_environment(
            identity_env, http_client=_make_mock_client(handler)
        )

        with pytest.raises(AuthorizationError) as exc_info:
            await authorization.get_token(STORE_RESOURCE)

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.parametrize(
        "body",
        [
            b"not json",
            json.dumps(["list"]).encode(),
            json.dumps({"expires_in": 3600}).encode(),
            json.dumps({"access_token": "", "expires_in": 3600}).encode(),
            json.dumps({"access_token": "t"}).encode(),
        ],
    )
    async def test_malformed_payload_raises(
        self, identity_env: Dict[str, str], body: bytes
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code=200, content=body)

        authorization = ManagedIdentityAuthorization.from_environment(
            identity_env, http_client=_make_mock_client(handler)
        )

        with pytest.raises(AuthorizationError):
            await authorization.get_token(STORE_RESOURCE)

    async def test_already_expired_token_rejected(
        self, identity_env: Dict[str, str], clock: Any
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            expired = clock() - timedelta(minutes=1)
            return _json_response(
                {"access_token": "t", "expires_on": str(int(expired.timestamp()))}
            )

        authorization = ManagedIdentityAuthorization.from_environment(
            identity_env, http_client=_make_mock_client(handler), clock=clock
        )

        with pytest.raises(AuthorizationError):
            await authorization.get_token(STORE_RESOURCE)

    async def test_user_assigned_client_id_sent(
        self, backend: Any, backend_client: httpx.AsyncClient, identity_env: Dict[str, str]
    ) -> None:
        authorization = ManagedIdentityAuthorization.from_environment(
            identity_env, client_id="user-assigned-id", http_client=backend_client
        )

        await authorization.get_token(STORE_RESOURCE)

        assert backend.requests[-1].url.params["client_id"] == "user-assigned-id"

    @pytest.mark.parametrize("missing", ["IDENTITY_ENDPOINT", "IDENTITY_HEADER"])
    def test_missing_bindings_rejected(
        self, identity_env: Dict[str, str], missing: str
    ) -> None:
        env = {k: v for k, v in identity_env.items() if k != missing}

        with pytest.raises(MissingRequiredFieldError) as exc_info:
            ManagedIdentityAuthorization.from_environment(env)

        assert exc_info.value.field == missing

    async def test_concurrent_requests_share_resource_entry(
        self, managed_identity: ManagedIdentityAuthorization
    ) -> None:
        tokens = await asyncio.gather(
            *(managed_identity.get_token(STORE_RESOURCE) for _ in range(10))
        )

        assert {t.resource for t in tokens} == {STORE_RESOURCE}
        assert managed_identity.get_stats()["total_tokens"] == 1


# ---------------------------------------------------------------------------
# AppRegistrationAuthorization
# ---------------------------------------------------------------------------


class TestAppRegistrationAuthorization:
    """Tests for the client-credentials strategy."""

    @pytest.fixture
    def captured(self) -> List[httpx.Request]:
        return []

    @pytest.fixture
    def app_registration(
        self, captured: List[httpx.Request], clock: Any
    ) -> AppRegistrationAuthorization:
        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            form = parse_qs(request.content.decode())
            return _json_response(
                {
                    "token_type": "Bearer",
                    "expires_in": "3599",
                    "resource": form["resource"][0],
                    "access_token": f"app-token-{len(captured)}",
                }
            )

        return AppRegistrationAuthorization(
            tenant="tenant-id",
            client_id="client-id",
            secret="client-secret",
            http_client=_make_mock_client(handler),
            clock=clock,
        )

    async def test_posts_client_credentials(
        self, app_registration: AppRegistrationAuthorization, captured: List[httpx.Request]
    ) -> None:
        await app_registration.get_token(VAULT_RESOURCE)

        request = captured[0]
        form = parse_qs(request.content.decode())
        assert request.method == "POST"
        assert str(request.url) == "https://login.microsoftonline.com/tenant-id/oauth2/token"
        assert form["grant_type"] == ["client_credentials"]
        assert form["client_id"] == ["client-id"]
        assert form["client_secret"] == ["client-secret"]
        assert form["resource"] == [VAULT_RESOURCE]

    async def test_expiry_from_expires_in(
        self, app_registration: AppRegistrationAuthorization, clock: Any
    ) -> None:
        token = await app_registration.get_token(VAULT_RESOURCE)

        assert token.expires == clock() + timedelta(seconds=3599)

    async def test_reuse_then_refresh(
        self,
        app_registration: AppRegistrationAuthorization,
        captured: List[httpx.Request],
        clock: Any,
    ) -> None:
        first = await app_registration.get_token(VAULT_RESOURCE)
        second = await app_registration.get_token(VAULT_RESOURCE)
        clock.advance(hours=1)
        third = await app_registration.get_token(VAULT_RESOURCE)

        assert first.access_token == second.access_token
        assert third.access_token != first.access_token
        assert len(captured) == 2

    def test_id_defaults_to_client_id(
        self, app_registration: AppRegistrationAuthorization
    ) -> None:
        assert app_registration.id == "client-id"

    @pytest.mark.parametrize("field", ["tenant", "client_id", "secret"])
    def test_missing_credentials_rejected(self, field: str) -> None:
        kwargs = {"tenant": "t", "client_id": "c", "secret": "s", field: ""}

        with pytest.raises(MissingRequiredFieldError):
            AppRegistrationAuthorization(**kwargs)


# ---------------------------------------------------------------------------
# ResourceAuthorizationContext
# ---------------------------------------------------------------------------


class TestResourceAuthorizationContext:
    """Tests for the authorization registry."""

    async def test_get_token_by_id(
        self, managed_identity: ManagedIdentityAuthorization
    ) -> None:
        context = ResourceAuthorizationContext()
        context.add(managed_identity)

        token = await context.get_token(STORE_RESOURCE)

        assert token.resource == STORE_RESOURCE
        assert "ManagedIdentityAuthorization" in context
        assert len(context) == 1

    def test_unknown_id_raises(self) -> None:
        with pytest.raises(AuthorizationError) as exc_info:
            ResourceAuthorizationContext().get("nope")

        assert exc_info.value.code == "AUTHORIZATION_NOT_FOUND"

    def test_find_returns_none_for_unknown(self) -> None:
        assert ResourceAuthorizationContext().find("nope") is None

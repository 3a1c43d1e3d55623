"""Resource authorization strategies with per-resource token caching.

A ResourceAuthorization acquires bearer tokens for a resource audience from
an identity provider and keeps one token per resource until it nears
expiry. Two strategies are provided:

- ManagedIdentityAuthorization: the platform's local identity endpoint
- AppRegistrationAuthorization: OAuth2 client credentials of a registered app
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Mapping, Optional, Union

import httpx

from cascade.authorization.token import AccessToken, parse_expiry, utcnow
from cascade.constants import (
    DEFAULT_AUTHORITY,
    DEFAULT_TOKEN_SKEW_SECONDS,
    IDENTITY_ENDPOINT_ENV,
    IDENTITY_HEADER_ENV,
    IDENTITY_HEADER_NAME,
    MANAGED_IDENTITY_API_VERSION,
    MANAGED_IDENTITY_ID,
)
from cascade.exception.errors import AuthorizationError, MissingRequiredFieldError
from cascade.infrastructure.http import HttpClient, as_http_client

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class ResourceAuthorization(ABC):
    """Base class for token acquisition strategies.

    Tokens are cached by resource audience. A cached token is reused while
    ``now < expires - skew``; after that the next request acquires a fresh
    one and replaces the entry.

    Attributes:
        id: Identifier used to register the authorization
        skew: Safety margin subtracted from the provider's expiry
        http: HTTP client holder
    """

    def __init__(
        self,
        authorization_id: str,
        skew: timedelta = timedelta(seconds=DEFAULT_TOKEN_SKEW_SECONDS),
        http_client: Union[HttpClient, httpx.AsyncClient, None] = None,
        clock: Optional[Clock] = None,
    ):
        """Initialize resource authorization.

        Args:
            authorization_id: Registry identifier
            skew: Treat tokens as expired this long before their real expiry
            http_client: Shared HttpClient or an httpx.AsyncClient to use
            clock: Source of the current aware UTC time
        """
        self.id = authorization_id
        self.skew = skew
        self.http = as_http_client(http_client)
        self._clock = clock or utcnow
        self._tokens: Dict[str, AccessToken] = {}
        self._lock = asyncio.Lock()

    async def get_token(self, resource: str, force_refresh: bool = False) -> AccessToken:
        """Return a valid token for ``resource``.

        Args:
            resource: Resource audience
            force_refresh: Skip the cache and acquire a new token

        Returns:
            Token scoped to ``resource``

        Raises:
            AuthorizationError: If a new token could not be acquired
        """
        if not force_refresh:
            async with self._lock:
                cached = self._tokens.get(resource)
            if cached is not None and not cached.is_expired(self._clock(), self.skew):
                logger.debug(f"Reusing cached token for {resource} ({self.id})")
                return cached

        token = await self._acquire_token(resource)

        async with self._lock:
            self._tokens[resource] = token

        return token

    async def get_access_token(self, resource: str) -> str:
        """Return only the bearer string for ``resource``."""
        token = await self.get_token(resource)
        return token.access_token

    async def _acquire_token(self, resource: str) -> AccessToken:
        now = self._clock()
        try:
            response = await self._request_token(resource)
        except httpx.HTTPError as e:
            raise AuthorizationError(
                f"Token request failed for {resource}: {e}", resource=resource
            ) from e

        if not response.is_success:
            raise AuthorizationError(
                f"Identity provider returned {response.status_code} for {resource}",
                resource=resource,
                status=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise AuthorizationError(
                f"Malformed token response for {resource}", resource=resource
            ) from e

        if not isinstance(payload, dict):
            raise AuthorizationError(
                f"Malformed token response for {resource}", resource=resource
            )

        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise AuthorizationError(
                f"Token response for {resource} has no access_token",
                resource=resource,
            )

        expires = parse_expiry(payload, now, resource)
        if expires <= now:
            raise AuthorizationError(
                f"Identity provider issued an expired token for {resource}",
                resource=resource,
            )

        logger.info(
            f"Acquired token for {resource} via {self.id}, expires {expires.isoformat()}"
        )
        return AccessToken(access_token=access_token, resource=resource, expires=expires)

    @abstractmethod
    async def _request_token(self, resource: str) -> httpx.Response:
        """Call the identity provider for a token scoped to ``resource``."""
        pass

    async def clear(self) -> None:
        """Drop all cached tokens."""
        async with self._lock:
            self._tokens.clear()

    def get_stats(self) -> Dict[str, Any]:
        """Get token cache statistics.

        Returns:
            Statistics dictionary (no token values)
        """
        now = self._clock()
        expired = sum(
            1 for token in self._tokens.values() if token.is_expired(now, self.skew)
        )
        return {
            "authorization_id": self.id,
            "total_tokens": len(self._tokens),
            "expired_tokens": expired,
            "resources": sorted(self._tokens),
        }

    async def close(self) -> None:
        await self.http.disconnect()


class ManagedIdentityAuthorization(ResourceAuthorization):
    """Tokens from the platform-managed identity endpoint.

    Attributes:
        endpoint: Local identity endpoint URL
        client_id: Optional user-assigned identity client id
    """

    def __init__(
        self,
        endpoint: str,
        header: str,
        client_id: Optional[str] = None,
        authorization_id: str = MANAGED_IDENTITY_ID,
        **kwargs,
    ):
        """Initialize managed identity authorization.

        Args:
            endpoint: Identity endpoint URL
            header: Shared secret sent in the identity header
            client_id: User-assigned identity client id, if any
            authorization_id: Registry identifier

        Raises:
            MissingRequiredFieldError: If endpoint or header is empty
        """
        if not endpoint:
            raise MissingRequiredFieldError(IDENTITY_ENDPOINT_ENV)
        if not header:
            raise MissingRequiredFieldError(IDENTITY_HEADER_ENV)

        super().__init__(authorization_id, **kwargs)
        self.endpoint = endpoint
        self.client_id = client_id
        self._header = header

    @classmethod
    def from_environment(
        cls, env: Mapping[str, str], client_id: Optional[str] = None, **kwargs
    ) -> "ManagedIdentityAuthorization":
        """Build from the IDENTITY_ENDPOINT and IDENTITY_HEADER bindings."""
        return cls(
            endpoint=env.get(IDENTITY_ENDPOINT_ENV, ""),
            header=env.get(IDENTITY_HEADER_ENV, ""),
            client_id=client_id,
            **kwargs,
        )

    async def _request_token(self, resource: str) -> httpx.Response:
        params = {"resource": resource, "api-version": MANAGED_IDENTITY_API_VERSION}
        if self.client_id:
            params["client_id"] = self.client_id

        client = await self.http.get_client()
        return await client.get(
            self.endpoint,
            params=params,
            headers={IDENTITY_HEADER_NAME: self._header},
        )


class AppRegistrationAuthorization(ResourceAuthorization):
    """Tokens from the OAuth2 client-credentials grant of a registered application.

    Attributes:
        tenant: Directory tenant id
        client_id: Application (client) id
        authority: Identity provider base URL
    """

    def __init__(
        self,
        tenant: str,
        client_id: str,
        secret: str,
        authority: str = DEFAULT_AUTHORITY,
        authorization_id: Optional[str] = None,
        **kwargs,
    ):
        """Initialize app registration authorization.

        Args:
            tenant: Directory tenant id
            client_id: Application id
            secret: Client secret
            authority: Identity provider base URL
            authorization_id: Registry identifier (defaults to client_id)

        Raises:
            MissingRequiredFieldError: If tenant, client_id or secret is empty
        """
        for field, value in (("tenant", tenant), ("client_id", client_id), ("secret", secret)):
            if not value:
                raise MissingRequiredFieldError(field)

        super().__init__(authorization_id or client_id, **kwargs)
        self.tenant = tenant
        self.client_id = client_id
        self.authority = authority.rstrip("/")
        self._secret = secret

    @property
    def token_url(self) -> str:
        return f"{self.authority}/{self.tenant}/oauth2/token"

    async def _request_token(self, resource: str) -> httpx.Response:
        client = await self.http.get_client()
        return await client.post(
            self.token_url,
            data={
                "grant_type": "client_credentials",
                "client_id": self.client_id,
                "client_secret": self._secret,
                "resource": resource,
            },
        )

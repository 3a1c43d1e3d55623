"""Vault client for dereferencing secret URIs.

Secrets are fetched with a bearer token scoped to the vault's resource
audience. Every failure, including a failed token acquisition, surfaces as
VaultResolutionError so callers can tell it apart from an absent property.
"""

import logging
from typing import Union

import httpx
from pydantic import ValidationError as PydanticValidationError

from cascade.authorization.resource_authorization import ResourceAuthorization
from cascade.constants import DEFAULT_VAULT_API_VERSION, DEFAULT_VAULT_RESOURCE
from cascade.exception.errors import AuthorizationError, VaultResolutionError
from cascade.infrastructure.http import HttpClient, as_http_client
from cascade.properties.models import VaultSecret

logger = logging.getLogger(__name__)


class Vault:
    """Secret fetcher for a vault service.

    Attributes:
        authorization: Token source for the vault audience
        resource: Vault resource audience
        api_version: Vault API version query parameter
        http: HTTP client holder
    """

    def __init__(
        self,
        authorization: ResourceAuthorization,
        http_client: Union[HttpClient, httpx.AsyncClient, None] = None,
        resource: str = DEFAULT_VAULT_RESOURCE,
        api_version: str = DEFAULT_VAULT_API_VERSION,
    ):
        """Initialize vault client.

        Args:
            authorization: Authorization used for vault tokens
            http_client: Shared HttpClient or an httpx.AsyncClient
            resource: Resource audience for vault tokens
            api_version: Vault API version
        """
        self.authorization = authorization
        self.resource = resource
        self.api_version = api_version
        self.http = as_http_client(http_client)

    async def get_secret(self, uri: str) -> str:
        """Fetch the current value of the secret at ``uri``.

        Args:
            uri: Secret identifier URI

        Returns:
            Secret value

        Raises:
            VaultResolutionError: If the secret cannot be fetched
        """
        try:
            token = await self.authorization.get_access_token(self.resource)
        except AuthorizationError as e:
            raise VaultResolutionError(
                f"Could not authorize vault request: {e.message}", url=uri
            ) from e

        client = await self.http.get_client()
        try:
            response = await client.get(
                uri,
                params={"api-version": self.api_version},
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            raise VaultResolutionError(
                f"Vault request failed: {e}", url=uri
            ) from e

        if response.status_code != 200:
            raise VaultResolutionError(
                f"Vault returned {response.status_code} for secret",
                url=uri,
                status=response.status_code,
            )

        try:
            secret = VaultSecret.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            raise VaultResolutionError(
                "Malformed secret payload from vault", url=uri
            ) from e

        logger.debug(f"Resolved vault secret {uri}")
        return secret.value

    async def close(self) -> None:
        await self.http.disconnect()

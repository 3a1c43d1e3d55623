"""Property handler backed by a remote key-value configuration store.

Lookups are scoped to one store and one label partition fixed at
construction. Every request carries a bearer token for the store's resource
audience. Items typed as vault references are dereferenced through the
Vault, so callers always receive the secret value and never the pointer.
"""

import json
import logging
from datetime import timedelta
from typing import Optional, Union
from urllib.parse import quote

import httpx
from pydantic import ValidationError as PydanticValidationError

from cascade.authorization.resource_authorization import (
    ManagedIdentityAuthorization,
    ResourceAuthorization,
)
from cascade.constants import (
    DEFAULT_STORE_DOMAIN,
    DEFAULT_STORE_LABEL,
    DEFAULT_STORE_VERSION,
    DEFAULT_TOKEN_SKEW_SECONDS,
)
from cascade.exception.errors import (
    AuthorizationError,
    HandlerLifecycleError,
    LabelMismatchError,
    MissingRequiredFieldError,
    RemoteResolutionError,
    VaultResolutionError,
)
from cascade.infrastructure.http import HttpClient, as_http_client
from cascade.properties.handlers.base import Environment, HandlerState, PropertyHandler
from cascade.properties.models import (
    ConfigurationItemType,
    RemoteConfigurationItem,
    VaultReference,
)
from cascade.vault import Vault

logger = logging.getLogger(__name__)


class RemoteStorePropertyHandler(PropertyHandler):
    """Resolves properties from a remote configuration store.

    When no authorization is supplied, a managed identity authorization is
    built from the environment during ``initialize``; the vault, when not
    supplied, shares that authorization and HTTP client.

    Attributes:
        store_name: Configuration store name
        label: Label partition queried
        version: Store API version
        domain: Store provider domain
    """

    def __init__(
        self,
        store_name: str,
        label: str = DEFAULT_STORE_LABEL,
        version: str = DEFAULT_STORE_VERSION,
        domain: str = DEFAULT_STORE_DOMAIN,
        authorization: Optional[ResourceAuthorization] = None,
        vault: Optional[Vault] = None,
        http_client: Union[HttpClient, httpx.AsyncClient, None] = None,
        token_skew: timedelta = timedelta(seconds=DEFAULT_TOKEN_SKEW_SECONDS),
    ):
        """Initialize remote store handler.

        Args:
            store_name: Configuration store name
            label: Label partition (e.g. development, production)
            version: Store API version
            domain: Store provider domain
            authorization: Token source for the store audience
            vault: Vault used for vault-reference items
            http_client: Shared HttpClient or an httpx.AsyncClient
            token_skew: Safety margin of the managed identity built at initialize

        Raises:
            MissingRequiredFieldError: If store_name is empty
        """
        super().__init__()
        if not store_name or not store_name.strip():
            raise MissingRequiredFieldError("store_name")

        self._store_name = store_name.strip()
        self._label = label
        self._version = version
        self._domain = domain
        self._authorization = authorization
        self._vault = vault
        self._token_skew = token_skew
        self.http = as_http_client(http_client)

    @property
    def store_name(self) -> str:
        return self._store_name

    @property
    def label(self) -> str:
        return self._label

    @property
    def version(self) -> str:
        return self._version

    @property
    def domain(self) -> str:
        return self._domain

    @property
    def base_url(self) -> str:
        return f"https://{self._store_name}.{self._domain}"

    @property
    def resource(self) -> str:
        """Resource audience of store tokens."""
        return f"{self.base_url}/"

    @property
    def authorization(self) -> Optional[ResourceAuthorization]:
        return self._authorization

    @property
    def vault(self) -> Optional[Vault]:
        return self._vault

    async def _initialize(self, env: Environment) -> None:
        if self._authorization is None:
            self._authorization = ManagedIdentityAuthorization.from_environment(
                env, http_client=self.http, skew=self._token_skew
            )
            logger.info(
                f"Using managed identity for configuration store {self._store_name}"
            )
        if self._vault is None:
            self._vault = Vault(self._authorization, http_client=self.http)

    def build_url(self, key: str) -> str:
        return f"{self.base_url}/kv/{quote(key, safe='')}"

    async def _get_raw_property(self, key: str) -> Optional[str]:
        item = await self.get_item(key)
        if item is None:
            return None

        if item.item_type is ConfigurationItemType.VAULT_REFERENCE:
            return await self._dereference(item)

        return item.value

    async def get_item(self, key: str) -> Optional[RemoteConfigurationItem]:
        """Fetch the raw store item for ``key``.

        Returns:
            Store item, or None when the key does not exist

        Raises:
            AuthorizationError: On token failure or a 401/403 response
            LabelMismatchError: When the store rejects the label
            RemoteResolutionError: On transport failure or unexpected responses
        """
        if self.state is not HandlerState.READY:
            raise HandlerLifecycleError(self.name, self.state.value, "read from")

        url = self.build_url(key)
        token = await self._authorization.get_access_token(self.resource)

        client = await self.http.get_client()
        try:
            response = await client.get(
                url,
                params={"label": self._label, "api-version": self._version},
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            raise RemoteResolutionError(
                f"Configuration store request failed for '{key}': {e}", url=url
            ) from e

        status = response.status_code
        if status == 404:
            logger.debug(f"Key '{key}' not found in {self._store_name}/{self._label}")
            return None
        if status in (401, 403):
            raise AuthorizationError(
                f"Configuration store rejected authorization ({status})",
                resource=self.resource,
                status=status,
            )
        if status == 400:
            raise LabelMismatchError(self._label, url=url, status=status)
        if status != 200:
            raise RemoteResolutionError(
                f"Configuration store returned {status} for '{key}'",
                url=url,
                status=status,
            )

        try:
            return RemoteConfigurationItem.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            raise RemoteResolutionError(
                f"Malformed configuration item for '{key}'", url=url, status=status
            ) from e

    async def _dereference(self, item: RemoteConfigurationItem) -> str:
        try:
            reference = VaultReference.model_validate(json.loads(item.value or ""))
        except (ValueError, PydanticValidationError) as e:
            raise VaultResolutionError(
                f"Malformed vault reference for '{item.key}'"
            ) from e

        logger.debug(f"Dereferencing vault reference for '{item.key}'")
        return await self._vault.get_secret(reference.uri)

    async def close(self) -> None:
        await self.http.disconnect()

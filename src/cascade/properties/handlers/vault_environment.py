"""Environment property handler that dereferences vault references.

Hosting platforms let an app setting point at a vault secret instead of
holding the value. Such a setting is a JSON object whose only member is
``uri``; this handler resolves it through the Vault. Every other value is
returned unchanged.
"""

import json
import logging
from datetime import timedelta
from typing import Optional, Union

import httpx

from cascade.authorization.resource_authorization import (
    ManagedIdentityAuthorization,
    ResourceAuthorization,
)
from cascade.constants import DEFAULT_TOKEN_SKEW_SECONDS
from cascade.infrastructure.http import HttpClient, as_http_client
from cascade.properties.handlers.base import Environment
from cascade.properties.handlers.environment import EnvironmentPropertyHandler
from cascade.properties.models import VaultReference
from cascade.vault import Vault

logger = logging.getLogger(__name__)


def parse_vault_reference(value: str) -> Optional[VaultReference]:
    """Return the reference when ``value`` is a ``{"uri": ...}`` object, else None."""
    text = value.strip()
    if not text.startswith("{"):
        return None

    try:
        data = json.loads(text)
    except (ValueError, RecursionError):
        return None

    if not isinstance(data, dict) or set(data) != {"uri"}:
        return None
    uri = data["uri"]
    if not isinstance(uri, str) or not uri:
        return None
    return VaultReference(uri=uri)


class VaultEnvironmentPropertyHandler(EnvironmentPropertyHandler):
    """Environment handler whose values may be vault references.

    When no vault is supplied, one is built during ``initialize``. It uses
    the given authorization, or a managed identity from the environment.

    Attributes:
        http: HTTP client holder shared with the vault
    """

    def __init__(
        self,
        authorization: Optional[ResourceAuthorization] = None,
        vault: Optional[Vault] = None,
        http_client: Union[HttpClient, httpx.AsyncClient, None] = None,
        token_skew: timedelta = timedelta(seconds=DEFAULT_TOKEN_SKEW_SECONDS),
    ):
        super().__init__()
        self._authorization = authorization
        self._vault = vault
        self._token_skew = token_skew
        self.http = as_http_client(http_client)

    @property
    def authorization(self) -> Optional[ResourceAuthorization]:
        return self._authorization

    @property
    def vault(self) -> Optional[Vault]:
        return self._vault

    async def _initialize(self, env: Environment) -> None:
        await super()._initialize(env)
        if self._vault is not None:
            return

        if self._authorization is None:
            self._authorization = ManagedIdentityAuthorization.from_environment(
                env, http_client=self.http, skew=self._token_skew
            )
            logger.info("Using managed identity for vault-referenced app settings")
        self._vault = Vault(self._authorization, http_client=self.http)

    async def _get_raw_property(self, key: str) -> Optional[str]:
        value = await super()._get_raw_property(key)
        if value is None:
            return None

        reference = parse_vault_reference(value)
        if reference is None:
            return value

        logger.debug(f"Dereferencing vault reference for '{key}'")
        return await self._vault.get_secret(reference.uri)

    async def close(self) -> None:
        await self.http.disconnect()

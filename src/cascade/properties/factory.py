"""Property handler factory.

Builds the handler chain described by AppSettings: the backend handler
(environment, vault-aware environment or remote store), its authorization
strategy, and the optional TTL cache decorator.
"""

import logging
from datetime import timedelta
from typing import Optional, Union

import httpx

from cascade.authorization.resource_authorization import (
    AppRegistrationAuthorization,
    ResourceAuthorization,
)
from cascade.config.app_settings import AppSettings
from cascade.exception.errors import ValidationError
from cascade.infrastructure.http import HttpClient, as_http_client
from cascade.properties.handlers.base import PropertyHandler
from cascade.properties.handlers.cache import CachePropertyHandler
from cascade.properties.handlers.environment import EnvironmentPropertyHandler
from cascade.properties.handlers.remote_store import RemoteStorePropertyHandler
from cascade.properties.handlers.vault_environment import VaultEnvironmentPropertyHandler

logger = logging.getLogger(__name__)


def build_authorization(
    settings: AppSettings, http_client: HttpClient
) -> Optional[ResourceAuthorization]:
    """Build the app registration authorization when configured.

    Returns:
        AppRegistrationAuthorization, or None to let the handler fall back
        to the managed identity at initialize time
    """
    if not settings.use_app_registration:
        return None

    return AppRegistrationAuthorization(
        tenant=settings.tenant_id or "",
        client_id=settings.client_id or "",
        secret=settings.client_secret or "",
        authority=settings.authority,
        skew=timedelta(seconds=settings.token_skew_seconds),
        http_client=http_client,
    )


def build_property_handler(
    settings: AppSettings,
    http_client: Union[HttpClient, httpx.AsyncClient, None] = None,
) -> PropertyHandler:
    """Create the property handler chain for the given settings.

    Args:
        settings: Application settings
        http_client: Shared client for all remote calls

    Returns:
        Handler, cache-decorated when cache_enabled is set

    Raises:
        ValidationError: If the settings do not describe a valid handler
    """
    errors = settings.validate_handler_config()
    if errors:
        raise ValidationError(
            "Invalid property handler configuration",
            details={"validation_errors": errors},
        )

    http = as_http_client(http_client, timeout=settings.http_timeout_seconds)

    token_skew = timedelta(seconds=settings.token_skew_seconds)
    handler: PropertyHandler
    if settings.uses_remote_store():
        handler = RemoteStorePropertyHandler(
            store_name=settings.store_name or "",
            label=settings.store_label,
            version=settings.store_api_version,
            domain=settings.store_domain,
            authorization=build_authorization(settings, http),
            http_client=http,
            token_skew=token_skew,
        )
    elif settings.uses_vault_environment():
        handler = VaultEnvironmentPropertyHandler(
            authorization=build_authorization(settings, http),
            http_client=http,
            token_skew=token_skew,
        )
    else:
        handler = EnvironmentPropertyHandler()

    if settings.cache_enabled:
        handler = CachePropertyHandler(
            handler, ttl=timedelta(seconds=settings.cache_ttl_seconds)
        )

    logger.info(f"Built property handler: {handler.name}")
    return handler

"""Cascade: property resolution and credential caching for async services.

Resolves typed configuration values from the environment, a remote key-value
configuration store, and a secrets vault, with TTL caching of values and
per-resource caching of bearer tokens.
"""

from cascade.authorization import (
    AccessToken,
    AppRegistrationAuthorization,
    ManagedIdentityAuthorization,
    ResourceAuthorization,
    ResourceAuthorizationContext,
)
from cascade.configuration import Configuration, ConfigurationState
from cascade.properties.factory import build_property_handler
from cascade.properties.handlers import (
    CachePropertyHandler,
    EnvironmentPropertyHandler,
    PropertyHandler,
    RemoteStorePropertyHandler,
    VaultEnvironmentPropertyHandler,
)
from cascade.vault import Vault

__version__ = "0.1.0"

__all__ = [
    "AccessToken",
    "AppRegistrationAuthorization",
    "CachePropertyHandler",
    "Configuration",
    "ConfigurationState",
    "EnvironmentPropertyHandler",
    "ManagedIdentityAuthorization",
    "PropertyHandler",
    "RemoteStorePropertyHandler",
    "ResourceAuthorization",
    "ResourceAuthorizationContext",
    "Vault",
    "VaultEnvironmentPropertyHandler",
    "build_property_handler",
]

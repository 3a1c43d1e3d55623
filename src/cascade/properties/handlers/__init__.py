"""Property handlers: environment, vault-aware environment, remote store, TTL cache."""

from cascade.properties.handlers.base import HandlerState, PropertyHandler
from cascade.properties.handlers.cache import CachedProperty, CachePropertyHandler
from cascade.properties.handlers.environment import EnvironmentPropertyHandler
from cascade.properties.handlers.remote_store import RemoteStorePropertyHandler
from cascade.properties.handlers.vault_environment import VaultEnvironmentPropertyHandler

__all__ = [
    "CachedProperty",
    "CachePropertyHandler",
    "EnvironmentPropertyHandler",
    "HandlerState",
    "PropertyHandler",
    "RemoteStorePropertyHandler",
    "VaultEnvironmentPropertyHandler",
]

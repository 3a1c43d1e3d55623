"""Property resolution: typed coercion, wire models, and handler chains."""

from cascade.properties.models import (
    ConfigurationItemType,
    FeatureFlag,
    RemoteConfigurationItem,
    VaultSecret,
)

__all__ = [
    "ConfigurationItemType",
    "FeatureFlag",
    "RemoteConfigurationItem",
    "VaultSecret",
]

"""Wire models for remote configuration items, vault secrets, and feature flags."""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from cascade.constants import (
    FEATURE_FLAG_CONTENT_TYPE,
    VAULT_REFERENCE_CONTENT_TYPE,
)


class ConfigurationItemType(str, Enum):
    """Payload shape of a remote configuration item."""

    KEY_VALUE = "kvp"
    FEATURE_FLAG = "feature"
    VAULT_REFERENCE = "vaultref"


class RemoteConfigurationItem(BaseModel):
    """Key-value item returned by the remote configuration store.

    Attributes:
        key: Item key
        label: Label partition the item belongs to
        content_type: Media type distinguishing plain, feature and vault-reference items
        value: Raw item value (JSON text for feature flags and vault references)
        etag: Entity tag
        tags: Free-form item tags
        locked: Whether the item is read-only in the store
        last_modified: Last modification timestamp as sent by the store
    """

    model_config = ConfigDict(extra="ignore")

    key: str
    label: Optional[str] = None
    content_type: Optional[str] = None
    value: Optional[str] = None
    etag: Optional[str] = None
    tags: Dict[str, Any] = Field(default_factory=dict)
    locked: bool = False
    last_modified: Optional[str] = None

    @property
    def item_type(self) -> ConfigurationItemType:
        """Discriminate the payload by its content type (parameters ignored)."""
        media_type = (self.content_type or "").split(";", 1)[0].strip().lower()
        if media_type == VAULT_REFERENCE_CONTENT_TYPE:
            return ConfigurationItemType.VAULT_REFERENCE
        if media_type == FEATURE_FLAG_CONTENT_TYPE:
            return ConfigurationItemType.FEATURE_FLAG
        return ConfigurationItemType.KEY_VALUE


class VaultReference(BaseModel):
    """Pointer payload of a vault-reference item."""

    model_config = ConfigDict(extra="ignore")

    uri: str = Field(min_length=1)


class VaultSecret(BaseModel):
    """Secret bundle returned by the vault."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    value: str
    content_type: Optional[str] = Field(default=None, alias="contentType")
    id: Optional[str] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)


class FeatureFlag(BaseModel):
    """Feature flag payload stored in the remote configuration store."""

    model_config = ConfigDict(extra="ignore")

    id: str
    description: str = ""
    enabled: bool = False
    conditions: Dict[str, Any] = Field(default_factory=dict)

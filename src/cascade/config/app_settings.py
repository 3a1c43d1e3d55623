"""Engine configuration from environment variables.

This module provides the AppSettings class which loads immutable settings
from environment variables at startup: which property handler to use, the
remote store coordinates, cache and token lifetimes, and logging.

The identity endpoint bindings (IDENTITY_ENDPOINT, IDENTITY_HEADER) are not
part of AppSettings; their names are fixed by the hosting platform and they
are read by ManagedIdentityAuthorization.from_environment.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cascade.constants import (
    DEFAULT_AUTHORITY,
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_STORE_DOMAIN,
    DEFAULT_STORE_LABEL,
    DEFAULT_STORE_VERSION,
    DEFAULT_TOKEN_SKEW_SECONDS,
    HANDLER_ENVIRONMENT,
    HANDLER_REMOTE_STORE,
    HANDLER_VAULT_ENVIRONMENT,
)


class AppSettings(BaseSettings):
    """Static configuration loaded from environment variables.

    All settings can be overridden via environment variables with the
    CASCADE_ prefix. For example, store_label can be set via CASCADE_STORE_LABEL.

    Attributes:
        property_handler: Handler backend (environment, vault_environment or remote_store)
        store_name: Remote configuration store name
        store_label: Label partition of the store
        store_domain: Store provider domain
        store_api_version: Store API version
        cache_enabled: Wrap the handler in the TTL cache
        cache_ttl_seconds: Cache time-to-live
        token_skew_seconds: Safety margin before token expiry
        http_timeout_seconds: Request timeout for owned HTTP clients
        use_app_registration: Authorize with client credentials instead of managed identity
        tenant_id: Directory tenant for app registration
        client_id: Application id for app registration
        client_secret: Client secret for app registration
        authority: Identity provider base URL
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format (json or text)
    """

    model_config = SettingsConfigDict(
        env_prefix="CASCADE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    property_handler: str = Field(default=HANDLER_ENVIRONMENT)

    store_name: Optional[str] = Field(default=None)
    store_label: str = Field(default=DEFAULT_STORE_LABEL)
    store_domain: str = Field(default=DEFAULT_STORE_DOMAIN)
    store_api_version: str = Field(default=DEFAULT_STORE_VERSION)

    cache_enabled: bool = Field(default=False)
    cache_ttl_seconds: int = Field(default=DEFAULT_CACHE_TTL_SECONDS, gt=0)

    token_skew_seconds: int = Field(default=DEFAULT_TOKEN_SKEW_SECONDS, ge=0)
    http_timeout_seconds: float = Field(default=DEFAULT_HTTP_TIMEOUT_SECONDS, gt=0)

    use_app_registration: bool = Field(default=False)
    tenant_id: Optional[str] = Field(default=None)
    client_id: Optional[str] = Field(default=None)
    client_secret: Optional[str] = Field(default=None)
    authority: str = Field(default=DEFAULT_AUTHORITY)

    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text")

    def uses_remote_store(self) -> bool:
        """Check if the remote store handler is selected."""
        return self.property_handler.lower() == HANDLER_REMOTE_STORE

    def uses_vault_environment(self) -> bool:
        """Check if the vault-aware environment handler is selected."""
        return self.property_handler.lower() == HANDLER_VAULT_ENVIRONMENT

    def validate_handler_config(self) -> list[str]:
        """Validate the handler selection and its required fields.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if self.property_handler.lower() not in (
            HANDLER_ENVIRONMENT,
            HANDLER_VAULT_ENVIRONMENT,
            HANDLER_REMOTE_STORE,
        ):
            errors.append(f"Unknown property handler: {self.property_handler}")

        if self.uses_remote_store() and not self.store_name:
            errors.append("STORE_NAME is required for the remote_store handler")

        if self.use_app_registration:
            for field in ("tenant_id", "client_id", "client_secret"):
                if not getattr(self, field):
                    errors.append(f"{field.upper()} is required for app registration")

        return errors


_app_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """Get singleton instance of static settings.

    Settings are loaded once and cached for application lifetime.

    Returns:
        AppSettings instance
    """
    global _app_settings

    if _app_settings is None:
        _app_settings = AppSettings()

    return _app_settings

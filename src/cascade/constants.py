"""Shared constants: environment bindings, content types, and defaults."""

# Environment bindings injected by the hosting platform
IDENTITY_ENDPOINT_ENV = "IDENTITY_ENDPOINT"
IDENTITY_HEADER_ENV = "IDENTITY_HEADER"
IDENTITY_HEADER_NAME = "X-IDENTITY-HEADER"

# Identity provider
MANAGED_IDENTITY_API_VERSION = "2019-08-01"
MANAGED_IDENTITY_ID = "ManagedIdentityAuthorization"
DEFAULT_AUTHORITY = "https://login.microsoftonline.com"
DEFAULT_TOKEN_SKEW_SECONDS = 60

# Remote configuration store
DEFAULT_STORE_DOMAIN = "azconfig.io"
DEFAULT_STORE_LABEL = "development"
DEFAULT_STORE_VERSION = "1.0"
FEATURE_FLAG_CONTENT_TYPE = "application/vnd.microsoft.appconfig.ff+json"
VAULT_REFERENCE_CONTENT_TYPE = "application/vnd.microsoft.appconfig.keyvaultref+json"

# Vault
DEFAULT_VAULT_RESOURCE = "https://vault.azure.net"
DEFAULT_VAULT_API_VERSION = "7.1"

# Property cache
DEFAULT_CACHE_TTL_SECONDS = 300

# Transport
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0

# Handler selection
HANDLER_ENVIRONMENT = "environment"
HANDLER_REMOTE_STORE = "remote_store"
HANDLER_VAULT_ENVIRONMENT = "vault_environment"

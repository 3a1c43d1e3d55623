"""Resource authorization: bearer token acquisition and per-resource caching."""

from cascade.authorization.context import ResourceAuthorizationContext
from cascade.authorization.resource_authorization import (
    AppRegistrationAuthorization,
    ManagedIdentityAuthorization,
    ResourceAuthorization,
)
from cascade.authorization.token import AccessToken

__all__ = [
    "AccessToken",
    "AppRegistrationAuthorization",
    "ManagedIdentityAuthorization",
    "ResourceAuthorization",
    "ResourceAuthorizationContext",
]

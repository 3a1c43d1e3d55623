"""Exception package.

Provides the exception taxonomy shared by the coercion layer, the property
handlers, the token cache, and the configuration lifecycle.
"""

from cascade.exception.errors import (
    AuthorizationError,
    CascadeException,
    ConfigurationError,
    ConfigurationNotReadyError,
    HandlerLifecycleError,
    LabelMismatchError,
    MissingRequiredFieldError,
    RemoteResolutionError,
    TypeCoercionError,
    ValidationError,
    VaultResolutionError,
)

__all__ = [
    "AuthorizationError",
    "CascadeException",
    "ConfigurationError",
    "ConfigurationNotReadyError",
    "HandlerLifecycleError",
    "LabelMismatchError",
    "MissingRequiredFieldError",
    "RemoteResolutionError",
    "TypeCoercionError",
    "ValidationError",
    "VaultResolutionError",
]

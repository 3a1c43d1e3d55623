"""Custom exceptions for property resolution and credential caching.

All custom exceptions inherit from CascadeException for consistent error handling.
A missing property is never an exception: handlers return None and typed
getters fall back to the caller's default.
"""

from typing import Any, Dict, Optional


class CascadeException(Exception):
    """Base exception for all Cascade errors."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize Cascade exception.

        Args:
            message: Human-readable error message
            code: Error code for programmatic handling
            field: Field name if validation error
            details: Additional error context
        """
        self.message = message
        self.code = code
        self.field = field
        self.details = details or {}
        super().__init__(message)


# Coercion Errors
class TypeCoercionError(CascadeException):
    """Raw value is present but cannot be converted to the requested type."""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        target_type: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if key is not None:
            details["key"] = key
        if target_type is not None:
            details["target_type"] = target_type

        super().__init__(
            message=message,
            code=kwargs.pop("code", "TYPE_COERCION_FAILED"),
            details=details,
            **kwargs,
        )


# Authorization Errors
class AuthorizationError(CascadeException):
    """Token acquisition failed, or a remote service rejected the token."""

    def __init__(
        self,
        message: str = "Authorization failed",
        resource: Optional[str] = None,
        status: Optional[int] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if resource is not None:
            details["resource"] = resource
        if status is not None:
            details["status"] = status

        super().__init__(
            message=message,
            code=kwargs.pop("code", "AUTHORIZATION_FAILED"),
            details=details,
            **kwargs,
        )


# Remote Resolution Errors
class RemoteResolutionError(CascadeException):
    """Configuration store or vault call failed for a reason other than auth."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status: Optional[int] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if url is not None:
            details["url"] = url
        if status is not None:
            details["status"] = status

        super().__init__(
            message=message,
            code=kwargs.pop("code", "REMOTE_RESOLUTION_FAILED"),
            details=details,
            **kwargs,
        )


class LabelMismatchError(RemoteResolutionError):
    """The store rejected the request's label partition."""

    def __init__(self, label: str, **kwargs):
        details = kwargs.pop("details", {})
        details["label"] = label
        super().__init__(
            message=f"Configuration store rejected label: {label}",
            code="LABEL_MISMATCH",
            details=details,
            **kwargs,
        )


class VaultResolutionError(RemoteResolutionError):
    """A secret could not be fetched from the vault."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message=message, code="VAULT_RESOLUTION_FAILED", **kwargs)


# Validation Errors
class ValidationError(CascadeException):
    """Malformed handler or authorization configuration."""

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            code=kwargs.pop("code", "VALIDATION_ERROR"),
            field=field,
            **kwargs,
        )


class MissingRequiredFieldError(ValidationError):
    """Required configuration field is missing."""

    def __init__(self, field: str, **kwargs):
        super().__init__(
            message=f"Required field missing: {field}",
            field=field,
            code="MISSING_REQUIRED_FIELD",
            **kwargs,
        )


# Configuration Errors
class ConfigurationError(CascadeException):
    """Configuration lifecycle error."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            code=kwargs.pop("code", "CONFIGURATION_ERROR"),
            **kwargs,
        )


class HandlerLifecycleError(ConfigurationError):
    """Handler phase invoked out of order."""

    def __init__(self, handler: str, state: str, operation: str, **kwargs):
        super().__init__(
            message=f"Cannot {operation} handler '{handler}' in state {state}",
            code="HANDLER_LIFECYCLE_ERROR",
            details={"handler": handler, "state": state, "operation": operation},
            **kwargs,
        )


class ConfigurationNotReadyError(ConfigurationError):
    """Property read attempted before the configuration reached READY."""

    def __init__(self, name: str, state: str, **kwargs):
        super().__init__(
            message=f"Configuration '{name}' is not ready (state: {state})",
            code="CONFIGURATION_NOT_READY",
            details={"configuration": name, "state": state},
            **kwargs,
        )

"""Bearer token value object and expiry parsing."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from cascade.exception.errors import AuthorizationError


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AccessToken:
    """Bearer token scoped to a single resource audience.

    Tokens are never mutated; a refresh replaces the cached instance.

    Attributes:
        access_token: Opaque bearer token
        resource: Audience the token is valid for
        expires: Absolute expiry (aware UTC)
    """

    access_token: str
    resource: str
    expires: datetime

    def is_expired(
        self, now: Optional[datetime] = None, skew: timedelta = timedelta(0)
    ) -> bool:
        """A token is usable only while ``now < expires - skew``."""
        now = now or utcnow()
        return not now < self.expires - skew

    def __repr__(self) -> str:
        return f"AccessToken(resource={self.resource!r}, expires={self.expires.isoformat()})"


def parse_expiry(payload: Dict[str, Any], now: datetime, resource: str) -> datetime:
    """Extract the absolute expiry from a token endpoint payload.

    Accepts ``expires_on`` as epoch seconds or ISO-8601 text, falling back to
    ``expires_in`` seconds relative to ``now``.

    Raises:
        AuthorizationError: If no usable expiry is present
    """
    expires_on = payload.get("expires_on")
    if expires_on is not None and expires_on != "":
        text = str(expires_on).strip()
        try:
            return datetime.fromtimestamp(float(text), tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            pass
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError as e:
            raise AuthorizationError(
                f"Malformed token expiry: {text}", resource=resource
            ) from e
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    expires_in = payload.get("expires_in")
    if expires_in is not None:
        try:
            return now + timedelta(seconds=float(expires_in))
        except (TypeError, ValueError) as e:
            raise AuthorizationError(
                f"Malformed token lifetime: {expires_in}", resource=resource
            ) from e

    raise AuthorizationError("Token response carries no expiry", resource=resource)

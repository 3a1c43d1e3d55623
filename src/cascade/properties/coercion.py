"""Typed-value coercion for raw property values.

Raw values arrive as strings (environment variables, store values, secrets).
These functions convert a present raw value into the type a caller asked
for. They are pure: no state is kept between calls, so they are safe to call
from any number of concurrent resolutions.

Missing values are handled by the callers (the typed getters on
PropertyHandler), which return the default without calling into this module.
"""

import json
import math
import re
from typing import Any, Callable, Optional, Pattern, Union

from cascade.exception.errors import TypeCoercionError

Number = Union[int, float]
Decoder = Callable[[Any], Any]

_INTEGER_PATTERN = re.compile(r"^[+-]?[0-9]+$")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-finite JSON number: {name}")


def to_string(raw: str, key: Optional[str] = None) -> str:
    """Return the raw value unmodified."""
    return raw


def to_number(raw: str, key: Optional[str] = None) -> Number:
    """Parse a base-10 number.

    Integral text becomes an int, anything else that parses as a finite
    decimal becomes a float.

    Args:
        raw: Raw property value
        key: Property key, for error context

    Returns:
        Parsed number

    Raises:
        TypeCoercionError: If the value is not a finite base-10 number
    """
    text = raw.strip()
    if _INTEGER_PATTERN.match(text):
        return int(text, 10)

    try:
        if "_" in text or not text.isascii():
            raise ValueError(text)
        value = float(text)
    except ValueError as e:
        raise TypeCoercionError(
            f"Value for '{key}' is not a number", key=key, target_type="number"
        ) from e

    if not math.isfinite(value):
        raise TypeCoercionError(
            f"Value for '{key}' is not a finite number",
            key=key,
            target_type="number",
        )
    return value


def to_boolean(raw: str, key: Optional[str] = None) -> bool:
    """Only a case-insensitive 'true' is True; every other present value is False."""
    return raw.strip().lower() == "true"


def to_regexp(raw: str, key: Optional[str] = None) -> Pattern[str]:
    """Compile the raw value as a regular expression.

    Raises:
        TypeCoercionError: If the pattern does not compile
    """
    try:
        return re.compile(raw)
    except re.error as e:
        raise TypeCoercionError(
            f"Value for '{key}' is not a valid regular expression: {e}",
            key=key,
            target_type="regexp",
        ) from e


def to_object(
    raw: str, key: Optional[str] = None, decoder: Optional[Decoder] = None
) -> Any:
    """Parse the raw value as JSON and optionally decode it.

    Args:
        raw: Raw property value
        key: Property key, for error context
        decoder: Callable applied to the parsed structure; its result is
            returned in place of the parsed JSON

    Returns:
        Parsed (and decoded) value

    Raises:
        TypeCoercionError: If parsing or decoding fails
    """
    try:
        parsed = json.loads(raw, parse_constant=_reject_constant)
    except (ValueError, TypeError, RecursionError) as e:
        raise TypeCoercionError(
            f"Value for '{key}' is not valid JSON", key=key, target_type="object"
        ) from e

    if decoder is None:
        return parsed

    try:
        return decoder(parsed)
    except TypeCoercionError:
        raise
    except Exception as e:
        raise TypeCoercionError(
            f"Decoder failed for '{key}': {e}", key=key, target_type="object"
        ) from e

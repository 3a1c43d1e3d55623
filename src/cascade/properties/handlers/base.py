"""Base property handler interface for all backends.

This module defines the abstract handler that every property backend
(environment, remote store, cache decorator) implements. The base class owns
the two-phase startup sequencing and the typed getters; subclasses only
supply the raw lookup.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Mapping, Optional, Pattern

from cascade.exception.errors import HandlerLifecycleError
from cascade.properties import coercion
from cascade.properties.coercion import Decoder, Number

logger = logging.getLogger(__name__)

Environment = Mapping[str, str]


class HandlerState(str, Enum):
    """Startup phase of a property handler."""

    CREATED = "created"
    INITIALIZED = "initialized"
    READY = "ready"


class PropertyHandler(ABC):
    """Abstract base class for property backends.

    ``initialize`` and ``ready`` must both complete, in that order, before
    any property is read. Subclasses implement ``_get_raw_property`` and may
    override the ``_initialize`` and ``_ready`` hooks.

    Attributes:
        state: Current startup phase
    """

    def __init__(self) -> None:
        self.state = HandlerState.CREATED

    @property
    def name(self) -> str:
        """Diagnostic identifier of the handler."""
        return type(self).__name__

    async def initialize(self, env: Optional[Environment] = None) -> None:
        """Run the first startup phase.

        Args:
            env: Hosting environment bindings (defaults to os.environ)

        Raises:
            HandlerLifecycleError: If the handler was already initialized
        """
        if self.state is not HandlerState.CREATED:
            raise HandlerLifecycleError(self.name, self.state.value, "initialize")

        await self._initialize(os.environ if env is None else env)
        self.state = HandlerState.INITIALIZED
        logger.debug(f"Property handler initialized: {self.name}")

    async def ready(self, env: Optional[Environment] = None) -> None:
        """Run the second startup phase.

        Raises:
            HandlerLifecycleError: If initialize has not completed
        """
        if self.state is not HandlerState.INITIALIZED:
            raise HandlerLifecycleError(self.name, self.state.value, "ready")

        await self._ready(os.environ if env is None else env)
        self.state = HandlerState.READY
        logger.debug(f"Property handler ready: {self.name}")

    async def get_raw_property(self, key: str) -> Optional[str]:
        """Resolve the raw value for ``key``.

        Returns:
            Raw value, or None when the key is absent

        Raises:
            HandlerLifecycleError: If the handler is not ready
        """
        if self.state is not HandlerState.READY:
            raise HandlerLifecycleError(self.name, self.state.value, "read from")
        return await self._get_raw_property(key)

    async def _initialize(self, env: Environment) -> None:
        pass

    async def _ready(self, env: Environment) -> None:
        pass

    @abstractmethod
    async def _get_raw_property(self, key: str) -> Optional[str]:
        """Backend lookup; return None when the key does not exist."""
        pass

    async def close(self) -> None:
        """Release transport resources held by the handler."""
        pass

    # Typed getters

    async def get_property(self, key: str, default: Optional[str] = None) -> Optional[str]:
        raw = await self.get_raw_property(key)
        if raw is None:
            return default
        return coercion.to_string(raw, key)

    async def get_number(
        self, key: str, default: Optional[Number] = None
    ) -> Optional[Number]:
        raw = await self.get_raw_property(key)
        if raw is None:
            return default
        return coercion.to_number(raw, key)

    async def get_boolean(
        self, key: str, default: Optional[bool] = None
    ) -> Optional[bool]:
        raw = await self.get_raw_property(key)
        if raw is None:
            return default
        return coercion.to_boolean(raw, key)

    async def get_regexp(
        self, key: str, default: Optional[Pattern[str]] = None
    ) -> Optional[Pattern[str]]:
        raw = await self.get_raw_property(key)
        if raw is None:
            return default
        return coercion.to_regexp(raw, key)

    async def get_object(
        self,
        key: str,
        default: Any = None,
        decoder: Optional[Decoder] = None,
    ) -> Any:
        """Resolve a JSON property, decoding it when a decoder is given.

        The default is returned as-is when the key is absent; the decoder
        only ever sees parsed property values.
        """
        raw = await self.get_raw_property(key)
        if raw is None:
            return default
        return coercion.to_object(raw, key, decoder)

"""Process-wide configuration gateway.

A Configuration is created once at process start. The hosting harness calls
``initialize`` and then ``ready`` (or ``bootstrap`` for both), after which
request handlers read typed properties through it. A failure in either phase
is fatal for the instance: reads keep failing with ConfigurationNotReadyError.
"""

import logging
import os
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Pattern

from cascade.authorization.context import ResourceAuthorizationContext
from cascade.authorization.resource_authorization import ResourceAuthorization
from cascade.exception.errors import ConfigurationError, ConfigurationNotReadyError
from cascade.properties.coercion import Decoder, Number
from cascade.properties.handlers.base import Environment, PropertyHandler
from cascade.properties.handlers.environment import EnvironmentPropertyHandler
from cascade.properties.models import FeatureFlag

logger = logging.getLogger(__name__)


class ConfigurationState(str, Enum):
    """Lifecycle state of a Configuration."""

    CREATED = "created"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class Configuration:
    """Gateway to the active property handler and named configuration items.

    Attributes:
        name: Configuration name (diagnostic)
        authorizations: Resource authorizations available to consumers
        state: Current lifecycle state
    """

    def __init__(self, name: str, items: Optional[Mapping[str, Any]] = None):
        """Initialize configuration.

        Args:
            name: Configuration name
            items: Fixed configuration items
        """
        if not name or not name.strip():
            raise ConfigurationError("Configuration name is required")

        self.name = name.strip()
        self.authorizations = ResourceAuthorizationContext()
        self.state = ConfigurationState.CREATED
        self._items: Dict[str, Any] = dict(items or {})
        self._handler_override: Optional[PropertyHandler] = None
        self._handler: Optional[PropertyHandler] = None

    # Named items

    def get_value(self, key: str, default: Any = None) -> Any:
        return self._items.get(key, default)

    def set_value(self, key: str, value: Any) -> "Configuration":
        self._items[key] = value
        return self

    # Wiring

    def set_property_handler(self, handler: PropertyHandler) -> "Configuration":
        """Select the handler to use instead of the environment default.

        Raises:
            ConfigurationError: If called after initialize
        """
        if self.state is not ConfigurationState.CREATED:
            raise ConfigurationError(
                f"Cannot replace property handler of '{self.name}' in state {self.state.value}"
            )
        self._handler_override = handler
        return self

    def add_authorization(self, authorization: ResourceAuthorization) -> "Configuration":
        self.authorizations.add(authorization)
        return self

    @property
    def property_handler(self) -> Optional[PropertyHandler]:
        """Active handler once initialize has selected it."""
        return self._handler

    @property
    def is_ready(self) -> bool:
        return self.state is ConfigurationState.READY

    # Lifecycle

    async def initialize(self, env: Optional[Environment] = None) -> None:
        """Select and initialize the active property handler.

        Args:
            env: Hosting environment bindings (defaults to os.environ)

        Raises:
            ConfigurationError: If not in CREATED state
        """
        if self.state is not ConfigurationState.CREATED:
            raise ConfigurationError(
                f"Cannot initialize '{self.name}' in state {self.state.value}"
            )

        self.state = ConfigurationState.INITIALIZING
        handler = self._handler_override or EnvironmentPropertyHandler()
        logger.info(f"Initializing configuration '{self.name}' with {handler.name}")

        try:
            await handler.initialize(os.environ if env is None else env)
        except Exception:
            self.state = ConfigurationState.FAILED
            logger.error(
                f"Configuration '{self.name}' failed to initialize", exc_info=True
            )
            raise

        self._handler = handler

    async def ready(self, env: Optional[Environment] = None) -> None:
        """Ready the active handler chain and open the configuration for reads.

        Raises:
            ConfigurationError: If initialize has not completed
        """
        if self.state is not ConfigurationState.INITIALIZING or self._handler is None:
            raise ConfigurationError(
                f"Cannot ready '{self.name}' in state {self.state.value}"
            )

        try:
            await self._handler.ready(os.environ if env is None else env)
        except Exception:
            self.state = ConfigurationState.FAILED
            logger.error(f"Configuration '{self.name}' failed to ready", exc_info=True)
            raise

        self.state = ConfigurationState.READY
        logger.info(f"Configuration '{self.name}' ready")

    async def bootstrap(self, env: Optional[Environment] = None) -> None:
        """Run initialize and ready in order."""
        await self.initialize(env)
        await self.ready(env)

    async def close(self) -> None:
        """Release HTTP clients held by the handler chain and authorizations."""
        if self._handler is not None:
            await self._handler.close()
        await self.authorizations.close()

    # Property access

    def _require_ready(self) -> PropertyHandler:
        if self.state is not ConfigurationState.READY or self._handler is None:
            raise ConfigurationNotReadyError(self.name, self.state.value)
        return self._handler

    async def get_property(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return await self._require_ready().get_property(key, default)

    async def get_number(
        self, key: str, default: Optional[Number] = None
    ) -> Optional[Number]:
        return await self._require_ready().get_number(key, default)

    async def get_boolean(
        self, key: str, default: Optional[bool] = None
    ) -> Optional[bool]:
        return await self._require_ready().get_boolean(key, default)

    async def get_regexp(
        self, key: str, default: Optional[Pattern[str]] = None
    ) -> Optional[Pattern[str]]:
        return await self._require_ready().get_regexp(key, default)

    async def get_object(
        self, key: str, default: Any = None, decoder: Optional[Decoder] = None
    ) -> Any:
        return await self._require_ready().get_object(key, default, decoder)

    async def is_feature_enabled(self, key: str, default: bool = False) -> bool:
        """Evaluate a feature flag property.

        Args:
            key: Property key holding a feature flag payload
            default: Result when the flag does not exist

        Returns:
            The flag's enabled state
        """
        flag = await self.get_object(key, decoder=FeatureFlag.model_validate)
        if flag is None:
            return default
        return flag.enabled

"""Property handler backed by the process environment."""

import os
from typing import Optional

from cascade.properties.handlers.base import Environment, PropertyHandler


class EnvironmentPropertyHandler(PropertyHandler):
    """Resolves properties from environment variables.

    The handler reads from the mapping passed to ``initialize`` (the process
    environment by default). No network and no authentication are involved.
    """

    def __init__(self) -> None:
        super().__init__()
        self._env: Environment = os.environ

    async def _initialize(self, env: Environment) -> None:
        self._env = env

    async def _get_raw_property(self, key: str) -> Optional[str]:
        value = self._env.get(key)
        return None if value is None else str(value)

"""Registry of resource authorizations keyed by identifier."""

import logging
from typing import Dict, List, Optional

from cascade.authorization.resource_authorization import ResourceAuthorization
from cascade.authorization.token import AccessToken
from cascade.constants import MANAGED_IDENTITY_ID
from cascade.exception.errors import AuthorizationError

logger = logging.getLogger(__name__)


class ResourceAuthorizationContext:
    """Holds the authorizations available to a configuration.

    Downstream consumers ask the context for a token by resource and
    authorization id instead of holding strategy instances themselves.
    """

    def __init__(self) -> None:
        self._authorizations: Dict[str, ResourceAuthorization] = {}

    def add(self, authorization: ResourceAuthorization) -> None:
        """Register an authorization, replacing one with the same id."""
        if authorization.id in self._authorizations:
            logger.warning(f"Replacing resource authorization: {authorization.id}")
        self._authorizations[authorization.id] = authorization

    def get(self, authorization_id: str = MANAGED_IDENTITY_ID) -> ResourceAuthorization:
        """Look up an authorization.

        Raises:
            AuthorizationError: If no authorization is registered under the id
        """
        authorization = self._authorizations.get(authorization_id)
        if authorization is None:
            raise AuthorizationError(
                f"No resource authorization registered: {authorization_id}",
                code="AUTHORIZATION_NOT_FOUND",
            )
        return authorization

    def find(self, authorization_id: str) -> Optional[ResourceAuthorization]:
        return self._authorizations.get(authorization_id)

    def list_ids(self) -> List[str]:
        return list(self._authorizations)

    async def get_token(
        self, resource: str, authorization_id: str = MANAGED_IDENTITY_ID
    ) -> AccessToken:
        """Get a token for ``resource`` from the named authorization."""
        return await self.get(authorization_id).get_token(resource)

    async def close(self) -> None:
        for authorization in self._authorizations.values():
            await authorization.close()

    def __contains__(self, authorization_id: str) -> bool:
        return authorization_id in self._authorizations

    def __len__(self) -> int:
        return len(self._authorizations)

"""
Session Registry

Issues, revokes and resolves bearer tokens. A token identifies a caller
only while BOTH hold:
    1. the token is recorded as logged in by the session store
    2. its signature verifies and its subject is a known user

Anything else resolves to an anonymous caller. Resolution never tells the
caller which check failed.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from pizza_service.core.security import TokenSigner
from pizza_service.stores.base import (
    BaseCredentialStore,
    BaseSessionStore,
    Franchise,
    Role,
    User,
)

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


@dataclass(frozen=True)
class Actor:
    """An authenticated caller."""
    user: User

    @property
    def id(self) -> int:
        return self.user.id

    def has_role(self, role: Role) -> bool:
        return self.user.has_role(role)

    def is_franchise_admin(self, franchise: Optional[Franchise]) -> bool:
        return franchise is not None and franchise.has_admin(self.id)


def parse_bearer(authorization: Optional[str]) -> Optional[str]:
    """
    Extract the token from an ``Authorization: Bearer <token>`` header.

    Any other shape (no header, wrong scheme, missing token) yields None.
    """
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != BEARER_SCHEME:
        return None
    return parts[1]


class SessionRegistry:
    """Maps session tokens to the users they were issued to."""

    def __init__(
        self,
        store: BaseSessionStore,
        credentials: BaseCredentialStore,
        signer: TokenSigner,
    ):
        self._store = store
        self._credentials = credentials
        self._signer = signer

    async def issue(self, user: User) -> str:
        """Sign a token for a user and record it as logged in."""
        token = self._signer.sign({
            "sub": str(user.id),
            "name": user.name,
            "email": user.email,
            "roles": [
                {"role": grant.role.value, "objectId": grant.object_id}
                if grant.is_scoped else {"role": grant.role.value}
                for grant in user.roles
            ],
        })
        await self._store.add(token, user.id)
        logger.debug(f"Issued session for user #{user.id}")
        return token

    async def revoke(self, token: str) -> None:
        """Log a token out. Revoking an unknown token is a no-op."""
        await self._store.remove(token)

    async def resolve_actor(self, token: Optional[str]) -> Optional[Actor]:
        """
        Resolve a token to an actor.

        Returns:
            The actor, or None for an anonymous caller
        """
        if not token:
            return None

        user_id = await self._store.lookup(token)
        if user_id is None:
            return None

        claims = self._signer.verify(token)
        if claims is None:
            logger.warning("Logged-in token failed signature verification")
            return None

        if claims.get("sub") != str(user_id):
            logger.warning(f"Token subject does not match session owner #{user_id}")
            return None

        user = await self._credentials.get_user(user_id)
        if user is None:
            return None
        return Actor(user=user)

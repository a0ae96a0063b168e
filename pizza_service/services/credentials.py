"""
Credential Service

Registration, password authentication and profile management on top of a
credential store. Passwords are hashed here; stores only ever see hashes.
"""

import logging
from typing import Optional

from pizza_service.core.exceptions import AuthenticationError, ValidationError
from pizza_service.core.security import PasswordHasher
from pizza_service.stores.base import BaseCredentialStore, Page, Role, RoleGrant, User

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


class CredentialService:
    """User identity operations."""

    def __init__(self, store: BaseCredentialStore, hasher: PasswordHasher):
        self._store = store
        self._hasher = hasher

    def _hash(self, password: str) -> str:
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return self._hasher.hash(password)

    async def register(self, name: Optional[str], email: Optional[str], password: Optional[str]) -> User:
        """
        Register a new diner.

        Raises:
            ValidationError: If any field is empty
            ConflictError: If the email is already registered
        """
        if not name or not email or not password:
            raise ValidationError("name, email, and password are required")
        return await self.create_user(name, email, password, [RoleGrant(Role.DINER)])

    async def create_user(self, name: str, email: str, password: str, roles: list[RoleGrant]) -> User:
        """Create a user with explicit role grants (admin seeding)."""
        user = await self._store.add_user(name, email, self._hash(password), roles)
        logger.info(f"Registered user #{user.id} with roles {[g.role.value for g in user.roles]}")
        return user

    async def authenticate(self, email: Optional[str], password: Optional[str]) -> User:
        """
        Check an email/password pair.

        Raises:
            AuthenticationError: If the email is unknown or the password is wrong
        """
        user = await self._store.find_by_email(email) if email else None
        if user is None or not password or not self._hasher.verify(password, user.password_hash):
            logger.info("Rejected login attempt")
            raise AuthenticationError("invalid credentials")
        return user

    async def update_profile(
        self,
        user_id: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> User:
        """Partial update; empty or omitted fields keep their value."""
        return await self._store.update_user(
            user_id,
            name=name or None,
            email=email or None,
            password_hash=self._hash(password) if password else None,
        )

    async def delete_user(self, user_id: int) -> None:
        """Delete a user; all their sessions are revoked with it."""
        await self._store.delete_user(user_id)
        logger.info(f"Deleted user #{user_id}")

    async def list_users(self, page: int, limit: int, pattern: str = "*") -> Page:
        if page < 0 or limit < 1:
            raise ValidationError("page must be >= 0 and limit >= 1")
        return await self._store.list_users(page * limit, limit, pattern or "*")

"""
Password Hashing and Token Signing

Thin wrappers over bcrypt and python-jose so the rest of the service never
touches the crypto libraries directly.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
from jose import JWTError, jwt

logger = logging.getLogger(__name__)


class PasswordHasher:
    """Salted bcrypt hashing with a configurable cost factor."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Check a password against a stored hash (constant time)."""
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            # Malformed stored hash, or a password bcrypt refuses (> 72 bytes)
            logger.warning("Password verification rejected a malformed input")
            return False


class TokenSigner:
    """
    Signs and verifies session tokens as compact JWTs.

    Every token carries a random ``jti`` so two sessions for the same user
    never share a token string.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl_minutes: Optional[int] = None,
    ):
        self._secret = secret
        self.algorithm = algorithm
        self.ttl_minutes = ttl_minutes

    def sign(self, claims: dict[str, Any]) -> str:
        now = datetime.now(timezone.utc)
        payload = {**claims, "jti": uuid.uuid4().hex, "iat": int(now.timestamp())}
        if self.ttl_minutes:
            payload["exp"] = int((now + timedelta(minutes=self.ttl_minutes)).timestamp())
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Optional[dict[str, Any]]:
        """
        Verify a token's signature and decode its claims.

        Returns:
            The claims if the token is intact, None otherwise
        """
        try:
            return jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except JWTError as e:
            logger.debug(f"Token verification failed: {e}")
            return None

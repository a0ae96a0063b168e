"""
Tests: Password Hashing & Session Tokens
"""

import pytest

from pizza_service.core.security import PasswordHasher, TokenSigner
from pizza_service.services.sessions import SessionRegistry, parse_bearer
from pizza_service.stores import Role, RoleGrant, build_memory_stores


class TestPasswordHasher:
    def test_hash_verifies(self):
        hasher = PasswordHasher(rounds=4)
        hashed = hasher.hash("diner")
        assert hashed != "diner"
        assert hasher.verify("diner", hashed) is True
        assert hasher.verify("wrong", hashed) is False

    def test_hashes_are_salted(self):
        hasher = PasswordHasher(rounds=4)
        assert hasher.hash("diner") != hasher.hash("diner")

    def test_malformed_hash_is_rejected(self):
        assert PasswordHasher(rounds=4).verify("diner", "not-a-bcrypt-hash") is False


class TestTokenSigner:
    def test_round_trip_claims(self):
        signer = TokenSigner("secret")
        claims = signer.verify(signer.sign({"sub": "7"}))
        assert claims["sub"] == "7"
        assert "jti" in claims

    def test_tokens_are_unique(self):
        signer = TokenSigner("secret")
        assert signer.sign({"sub": "7"}) != signer.sign({"sub": "7"})

    def test_wrong_secret_fails(self):
        token = TokenSigner("secret").sign({"sub": "7"})
        assert TokenSigner("other").verify(token) is None

    def test_garbage_fails(self):
        assert TokenSigner("secret").verify("not.a.token") is None

    def test_ttl_sets_expiry(self):
        signer = TokenSigner("secret", ttl_minutes=5)
        claims = signer.verify(signer.sign({"sub": "7"}))
        assert claims["exp"] > claims["iat"]


class TestParseBearer:
    @pytest.mark.parametrize("header, expected", [
        ("Bearer abc", "abc"),
        ("bearer abc", "abc"),
        (None, None),
        ("", None),
        ("Basic abc", None),
        ("Bearer", None),
        ("Bearer a b", None),
    ])
    def test_shapes(self, header, expected):
        assert parse_bearer(header) == expected


# ══════════════════════════════════════════════════════════════
# SESSION REGISTRY
# ══════════════════════════════════════════════════════════════


@pytest.fixture
async def registry_and_user():
    stores = build_memory_stores()
    user = await stores.credentials.add_user("pizza diner", "d@jwt.com", "hash", [RoleGrant(Role.DINER)])
    registry = SessionRegistry(stores.sessions, stores.credentials, TokenSigner("secret"))
    return registry, user, stores


class TestSessionRegistry:
    async def test_issued_token_resolves(self, registry_and_user):
        registry, user, _ = registry_and_user
        token = await registry.issue(user)
        actor = await registry.resolve_actor(token)
        assert actor is not None
        assert actor.id == user.id

    async def test_revoked_token_is_anonymous(self, registry_and_user):
        registry, user, _ = registry_and_user
        token = await registry.issue(user)
        await registry.revoke(token)
        assert await registry.resolve_actor(token) is None

    async def test_revoke_only_affects_that_token(self, registry_and_user):
        registry, user, _ = registry_and_user
        first = await registry.issue(user)
        second = await registry.issue(user)
        await registry.revoke(first)
        assert await registry.resolve_actor(second) is not None

    async def test_validly_signed_but_never_issued_is_anonymous(self, registry_and_user):
        registry, user, _ = registry_and_user
        forged = TokenSigner("secret").sign({"sub": str(user.id)})
        assert await registry.resolve_actor(forged) is None

    async def test_logged_in_token_with_bad_signature_is_anonymous(self, registry_and_user):
        registry, user, stores = registry_and_user
        foreign = TokenSigner("other").sign({"sub": str(user.id)})
        await stores.sessions.add(foreign, user.id)
        assert await registry.resolve_actor(foreign) is None

    async def test_deleted_user_sessions_die(self, registry_and_user):
        registry, user, stores = registry_and_user
        token = await registry.issue(user)
        await stores.credentials.delete_user(user.id)
        assert await registry.resolve_actor(token) is None

    async def test_missing_token_is_anonymous(self, registry_and_user):
        registry, _, _ = registry_and_user
        assert await registry.resolve_actor(None) is None

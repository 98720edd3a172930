from datetime import timedelta

import jwt
import pytest

from backend.errors import (
    ExpiredCredential,
    Fatal,
    InvalidCredential,
    MissingCredential,
    PrincipalNotFound,
)
from backend.models import Role, User, utcnow
from backend.security import CredentialVerifier, TokenService, hash_password, verify_password


def test_password_hash_is_one_way_and_verifies():
    hashed = hash_password("s3cret")
    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("s3cret", "not-a-hash")


def test_issue_and_decode_round_trip():
    tokens = TokenService("secret")
    user = User(email="a@eco.test", username="alice", role=Role.ADMIN, password_hash="x")
    claims = tokens.decode(tokens.issue(user))
    assert claims["sub"] == user.id
    assert claims["role"] == "admin"
    assert claims["username"] == "alice"


def test_missing_secret_is_fatal():
    tokens = TokenService(None)
    assert not tokens.configured
    user = User(email="a@eco.test", username="alice", password_hash="x")
    with pytest.raises(Fatal):
        tokens.issue(user)
    with pytest.raises(Fatal):
        tokens.decode("anything")


def test_expired_and_tampered_tokens():
    tokens = TokenService("secret")
    assert ExpiredCredential.clear_token and InvalidCredential.clear_token
    expired = jwt.encode({"sub": "u", "exp": utcnow() - timedelta(minutes=1)}, "secret", algorithm="HS256")
    with pytest.raises(ExpiredCredential):
        tokens.decode(expired)

    forged = jwt.encode({"sub": "u"}, "other-secret", algorithm="HS256")
    with pytest.raises(InvalidCredential):
        tokens.decode(forged)

    with pytest.raises(InvalidCredential):
        tokens.decode("garbage")


@pytest.mark.anyio
class TestCredentialVerifier:
    async def test_resolves_role_from_store(self, services, store):
        user = await store.create_user("A@Eco.test", "h", "alice")
        token = services.tokens.issue(user)
        await store.update_user(user.id, role=Role.ADMIN)

        principal = await services.verifier.verify(token)
        assert principal.id == user.id
        assert principal.email == "a@eco.test"
        assert principal.role == Role.ADMIN

    async def test_missing_token(self, services):
        with pytest.raises(MissingCredential):
            await services.verifier.verify(None)
        with pytest.raises(MissingCredential):
            await services.verifier.verify("")

    async def test_token_without_subject(self, services):
        token = jwt.encode({"email": "x@eco.test"}, "test-secret", algorithm="HS256")
        with pytest.raises(InvalidCredential):
            await services.verifier.verify(token)

    async def test_deleted_user_asks_client_to_drop_token(self, services, store):
        user = await store.create_user("gone@eco.test", "h", "gone")
        token = services.tokens.issue(user)
        await store.delete_user(user.id)

        with pytest.raises(PrincipalNotFound) as exc:
            await services.verifier.verify(token)
        assert exc.value.clear_token is True

    async def test_unconfigured_secret_fails_closed(self, store):
        verifier = CredentialVerifier(TokenService(""), store)
        with pytest.raises(Fatal):
            await verifier.verify("some-token")

import logging
from datetime import timedelta
from typing import Optional

import jwt
from passlib.context import CryptContext

from backend.errors import (
    ExpiredCredential,
    Fatal,
    InvalidCredential,
    MissingCredential,
    PrincipalNotFound,
)
from backend.models import Principal, User, utcnow

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        # Unrecognised hash format
        return False


class TokenService:
    """Issues and decodes the self-signed bearer tokens."""

    def __init__(self, secret: Optional[str], algorithm: str = "HS256", expires_days: int = 7):
        self._secret = secret
        self.algorithm = algorithm
        self.lifetime = timedelta(days=expires_days)

    @property
    def configured(self) -> bool:
        return bool(self._secret)

    def ensure_configured(self) -> str:
        if not self._secret:
            logger.error("JWT_SECRET is not configured, refusing to handle tokens")
            raise Fatal("JWT_SECRET not configured")
        return self._secret

    def issue(self, user: User) -> str:
        secret = self.ensure_configured()
        now = utcnow()
        claims = {
            "sub": user.id,
            "email": user.email,
            "username": user.username,
            "role": user.role.value,
            "iat": now,
            "exp": now + self.lifetime,
        }
        return jwt.encode(claims, secret, algorithm=self.algorithm)

    def decode(self, token: str) -> dict:
        secret = self.ensure_configured()
        try:
            return jwt.decode(token, secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise ExpiredCredential()
        except jwt.InvalidTokenError:
            raise InvalidCredential()


class CredentialVerifier:
    """Resolves a presented bearer token to a Principal.

    The role always comes from the stored profile, never from the token
    claims, so a demoted or deleted account loses access immediately.
    """

    def __init__(self, tokens: TokenService, store):
        self.tokens = tokens
        self.store = store

    async def verify(self, token: Optional[str]) -> Principal:
        if not token:
            raise MissingCredential()
        claims = self.tokens.decode(token)
        user_id = claims.get("sub")
        if not isinstance(user_id, str) or not user_id:
            raise InvalidCredential()

        user = await self.store.get_user(user_id)
        if user is None:
            logger.info("Token presented for missing user %s", user_id)
            raise PrincipalNotFound()

        return Principal(id=user.id, email=user.email, username=user.username, role=user.role)

import logging
from typing import Optional

from backend.errors import AuthError, ValidationError
from backend.models import AuthResponse, Principal, Role, User, UserPublic
from backend.security import TokenService, hash_password, verify_password

logger = logging.getLogger(__name__)


def public_user(user: User) -> UserPublic:
    return UserPublic(id=user.id, email=user.email, username=user.username, role=user.role)


def require_fields(message: str, *values: Optional[str]):
    if not all(isinstance(v, str) and v.strip() for v in values):
        raise ValidationError(message)


class AccountService:
    def __init__(self, store, tokens: TokenService):
        self.store = store
        self.tokens = tokens

    def _session(self, user: User) -> AuthResponse:
        return AuthResponse(token=self.tokens.issue(user), user=public_user(user))

    async def sign_up(self, email: Optional[str], password: Optional[str], username: Optional[str]) -> AuthResponse:
        require_fields("Email, password, and username are required", email, password, username)
        # Fail before touching the store when tokens cannot be issued
        self.tokens.ensure_configured()

        user = await self.store.create_user(email, hash_password(password), username, Role.USER)
        logger.info("User created: %s", user.id)
        return self._session(user)

    async def sign_in(self, email: Optional[str], password: Optional[str]) -> AuthResponse:
        require_fields("Email and password are required", email, password)

        user = await self.store.get_user_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed sign-in for %s", email)
            raise AuthError("Invalid email or password")

        logger.info("Sign-in successful: %s (%s)", user.id, user.role.value)
        return self._session(user)

    async def me(self, principal: Principal) -> UserPublic:
        return UserPublic(**principal.dict())

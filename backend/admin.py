import logging
from typing import List, Optional

from backend.accounts import require_fields
from backend.errors import NotFound
from backend.models import AdminSummary, Principal, Role, User
from backend.policy import Action, AdminAccount, AdminDirectory, authorize
from backend.security import hash_password

logger = logging.getLogger(__name__)


def _summary(user: User) -> AdminSummary:
    return AdminSummary(id=user.id, email=user.email, username=user.username, role=user.role)


class AdminService:
    """Superadmin-only management of admin accounts."""

    def __init__(self, store):
        self.store = store

    async def list_admins(self, actor: Principal) -> List[AdminSummary]:
        authorize(actor, Action.ADMIN_LIST, AdminDirectory(), "Superadmin only")
        users = await self.store.list_users(roles=[Role.ADMIN, Role.SUPERADMIN])
        return [_summary(u) for u in users]

    async def create_admin(
        self,
        actor: Principal,
        email: Optional[str],
        password: Optional[str],
        username: Optional[str],
    ) -> AdminSummary:
        authorize(actor, Action.ADMIN_CREATE, AdminDirectory(), "Superadmin only")
        require_fields("Email, password, and username are required", email, password, username)

        user = await self.store.create_user(email, hash_password(password), username, Role.ADMIN)
        logger.info("Admin %s created by %s", user.id, actor.id)
        return _summary(user)

    async def delete_admin(self, actor: Principal, target_id: str):
        target = await self.store.get_user(target_id)
        if target is None:
            raise NotFound("User not found")

        if target.id == actor.id:
            message = "Cannot delete self"
        elif target.role == Role.SUPERADMIN:
            message = "Cannot delete superadmin"
        else:
            message = "Superadmin only"
        authorize(actor, Action.ADMIN_DELETE, AdminAccount(id=target.id, role=target.role.value), message)

        await self.store.delete_user(target.id)
        logger.info("Admin %s deleted by %s", target.id, actor.id)

    async def seed_superadmin(self, email: str, password: str, username: str) -> User:
        """Create the superadmin account, or refresh it if the email exists."""
        existing = await self.store.get_user_by_email(email)
        if existing is not None:
            user = await self.store.update_user(
                existing.id,
                password_hash=hash_password(password),
                username=username,
                role=Role.SUPERADMIN,
            )
            logger.info("Superadmin credentials updated: %s", user.id)
            return user

        user = await self.store.create_user(email, hash_password(password), username, Role.SUPERADMIN)
        logger.info("Superadmin created: %s", user.id)
        return user

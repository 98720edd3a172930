import pytest

from backend.errors import AuthzError, Conflict, NotFound, ValidationError
from backend.models import Role
from backend.security import verify_password

pytestmark = pytest.mark.anyio


@pytest.fixture
def admin(services):
    return services.admin


async def test_only_superadmin_lists_admins(admin, make_user):
    root = await make_user("root", Role.SUPERADMIN)
    plain_admin = await make_user("mod", Role.ADMIN)
    user = await make_user("user")

    listed = await admin.list_admins(root)
    assert {a.username for a in listed} == {"root", "mod"}

    for actor in (plain_admin, user):
        with pytest.raises(AuthzError):
            await admin.list_admins(actor)


async def test_create_admin_always_assigns_admin_role(admin, store, make_user):
    root = await make_user("root", Role.SUPERADMIN)
    created = await admin.create_admin(root, "New@Eco.test", "pw", "newbie")

    assert created.role == Role.ADMIN
    stored = await store.get_user(created.id)
    assert stored.email == "new@eco.test"
    assert verify_password("pw", stored.password_hash)


async def test_create_admin_rules(admin, make_user):
    root = await make_user("root", Role.SUPERADMIN)
    plain_admin = await make_user("mod", Role.ADMIN)

    with pytest.raises(AuthzError):
        await admin.create_admin(plain_admin, "x@eco.test", "pw", "x")
    with pytest.raises(ValidationError):
        await admin.create_admin(root, "x@eco.test", "", "x")
    with pytest.raises(Conflict):
        await admin.create_admin(root, "MOD@eco.test", "pw", "dup")


class TestDeleteAdmin:
    async def test_superadmin_deletes_admin(self, admin, store, make_user):
        root = await make_user("root", Role.SUPERADMIN)
        target = await make_user("mod", Role.ADMIN)

        await admin.delete_admin(root, target.id)
        assert await store.get_user(target.id) is None

    async def test_cannot_delete_self(self, admin, store, make_user):
        root = await make_user("root", Role.SUPERADMIN)
        with pytest.raises(AuthzError) as exc:
            await admin.delete_admin(root, root.id)
        assert exc.value.message == "Cannot delete self"
        assert await store.get_user(root.id) is not None

    async def test_cannot_delete_other_superadmin(self, admin, make_user):
        root = await make_user("root", Role.SUPERADMIN)
        other = await make_user("root2", Role.SUPERADMIN)
        with pytest.raises(AuthzError) as exc:
            await admin.delete_admin(root, other.id)
        assert exc.value.message == "Cannot delete superadmin"

    async def test_admin_cannot_delete(self, admin, make_user):
        plain_admin = await make_user("mod", Role.ADMIN)
        other = await make_user("mod2", Role.ADMIN)
        with pytest.raises(AuthzError) as exc:
            await admin.delete_admin(plain_admin, other.id)
        assert exc.value.message == "Superadmin only"

    async def test_missing_target(self, admin, make_user):
        root = await make_user("root", Role.SUPERADMIN)
        with pytest.raises(NotFound):
            await admin.delete_admin(root, "nobody")


async def test_seed_superadmin_is_idempotent(admin, store):
    first = await admin.seed_superadmin("Root@eco.test", "one", "Root")
    second = await admin.seed_superadmin("root@eco.test", "two", "Root")

    assert first.id == second.id
    assert second.role == Role.SUPERADMIN
    assert verify_password("two", second.password_hash)
    assert len(await store.list_users(roles=[Role.SUPERADMIN])) == 1


async def test_seed_promotes_existing_account(admin, store, make_user):
    user = await make_user("someone")
    seeded = await admin.seed_superadmin(user.email, "pw", "Root")
    assert seeded.id == user.id
    assert seeded.role == Role.SUPERADMIN

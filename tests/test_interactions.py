import asyncio

import pytest

from backend.errors import AuthzError, Conflict, NotFound, ValidationError
from backend.models import DEFAULT_USERNAME, Role

pytestmark = pytest.mark.anyio


@pytest.fixture
def interactions(services):
    return services.interactions


async def test_clap_and_unclap_scenario(services, interactions, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    post = await services.posts.create_post(alice, "Title", "Desc", "Body")

    assert await interactions.add_clap(post.id, bob) == 1
    view = await interactions.get_interactions(post.id, bob.id)
    assert (view.claps, view.user_clapped, view.comments) == (1, True, [])

    assert await interactions.remove_clap(post.id, bob) == 0
    view = await interactions.get_interactions(post.id, bob.id)
    assert (view.claps, view.user_clapped, view.comments) == (0, False, [])


async def test_concurrent_claps_only_one_wins(services, interactions, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    post = await services.posts.create_post(alice, "t", "d", "c")

    results = await asyncio.gather(
        *[interactions.add_clap(post.id, bob) for _ in range(10)],
        return_exceptions=True,
    )
    successes = [r for r in results if not isinstance(r, Exception)]
    conflicts = [r for r in results if isinstance(r, Conflict)]
    assert len(successes) == 1
    assert len(conflicts) == 9
    assert await interactions.clap_count(post.id) == 1


async def test_add_remove_add_ends_clapped(services, interactions, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    carol = await make_user("carol")
    post = await services.posts.create_post(alice, "t", "d", "c")
    await interactions.add_clap(post.id, carol)
    before = await interactions.clap_count(post.id)

    await interactions.add_clap(post.id, bob)
    await interactions.remove_clap(post.id, bob)
    count = await interactions.add_clap(post.id, bob)

    view = await interactions.get_interactions(post.id, bob.id)
    assert view.user_clapped is True
    assert view.claps == count == before + 1


async def test_remove_missing_clap_returns_current_count(services, interactions, make_user):
    alice = await make_user("alice")
    post = await services.posts.create_post(alice, "t", "d", "c")
    assert await interactions.remove_clap(post.id, alice) == 0


async def test_view_without_actor_never_reports_clapped(services, interactions, make_user):
    alice = await make_user("alice")
    post = await services.posts.create_post(alice, "t", "d", "c")
    await interactions.add_clap(post.id, alice)

    view = await interactions.get_interactions(post.id)
    assert view.claps == 1
    assert view.user_clapped is False


async def test_deleted_post_has_no_interactions(services, interactions, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    post = await services.posts.create_post(alice, "t", "d", "c")
    await interactions.add_clap(post.id, bob)
    await interactions.add_comment(post.id, bob, "hi")

    await services.posts.delete_post(alice, post.id)
    with pytest.raises(NotFound):
        await interactions.get_interactions(post.id, bob.id)
    with pytest.raises(NotFound):
        await interactions.get_interactions("never-existed")


async def test_comments_newest_first_with_usernames(services, interactions, make_user):
    alice = await make_user("alice")
    carol = await make_user("carol")
    post = await services.posts.create_post(alice, "Title", "Desc", "Body")

    first = await interactions.add_comment(post.id, alice, "Nice!")
    assert first.username == "alice"
    view = await interactions.get_interactions(post.id)
    assert [c.text for c in view.comments] == ["Nice!"]

    await interactions.add_comment(post.id, carol, "Thanks")
    view = await interactions.get_interactions(post.id)
    assert [c.text for c in view.comments] == ["Thanks", "Nice!"]
    assert [c.username for c in view.comments] == ["carol", "alice"]


async def test_comment_from_removed_user_gets_fallback_name(services, interactions, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    post = await services.posts.create_post(alice, "t", "d", "c")
    await interactions.add_comment(post.id, bob, "bye")
    await services.store.delete_user(bob.id)

    comments = await interactions.list_comments(post.id)
    assert comments[0].username == DEFAULT_USERNAME


async def test_empty_comment_is_rejected(services, interactions, make_user):
    alice = await make_user("alice")
    post = await services.posts.create_post(alice, "t", "d", "c")
    with pytest.raises(ValidationError):
        await interactions.add_comment(post.id, alice, "  ")


class TestCommentDeletion:
    async def setup_comment(self, services, make_user):
        author = await make_user("post-author")
        commenter = await make_user("commenter")
        post = await services.posts.create_post(author, "t", "d", "c")
        comment = await services.interactions.add_comment(post.id, commenter, "hello")
        return author, commenter, comment

    async def test_stranger_is_denied(self, services, make_user):
        _, _, comment = await self.setup_comment(services, make_user)
        stranger = await make_user("stranger")
        with pytest.raises(AuthzError):
            await services.interactions.delete_comment(stranger, comment.id)

    async def test_plain_admin_is_denied(self, services, make_user):
        _, _, comment = await self.setup_comment(services, make_user)
        admin = await make_user("admin", Role.ADMIN)
        with pytest.raises(AuthzError):
            await services.interactions.delete_comment(admin, comment.id)

    async def test_comment_author_succeeds(self, services, make_user):
        _, commenter, comment = await self.setup_comment(services, make_user)
        await services.interactions.delete_comment(commenter, comment.id)
        assert await services.store.get_comment(comment.id) is None

    async def test_post_author_succeeds(self, services, make_user):
        author, _, comment = await self.setup_comment(services, make_user)
        await services.interactions.delete_comment(author, comment.id)
        assert await services.store.get_comment(comment.id) is None

    async def test_superadmin_succeeds(self, services, make_user):
        _, _, comment = await self.setup_comment(services, make_user)
        root = await make_user("root", Role.SUPERADMIN)
        await services.interactions.delete_comment(root, comment.id)
        assert await services.store.get_comment(comment.id) is None

    async def test_missing_comment(self, services, make_user):
        root = await make_user("root", Role.SUPERADMIN)
        with pytest.raises(NotFound):
            await services.interactions.delete_comment(root, "missing")

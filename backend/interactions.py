"""Per-post interaction view: clap count, current user's clap, comments.

The three reads behind ``get_interactions`` run concurrently and are not
isolated from each other. A clap landing between the count and the
existence check can make the view momentarily inconsistent (for example
``claps == 0`` with ``userClapped == True``); the next read corrects it.
Mutations never patch counts locally: ``add_clap`` and ``remove_clap``
re-count from the store and return that number.
"""
import asyncio
import logging
from typing import List, Optional

from backend.errors import NotFound
from backend.models import DEFAULT_USERNAME, CommentView, InteractionView, Principal
from backend.policy import Action, CommentResource, authorize

logger = logging.getLogger(__name__)


class InteractionService:
    def __init__(self, store):
        self.store = store

    async def get_interactions(self, post_id: str, actor_id: Optional[str] = None) -> InteractionView:
        if await self.store.get_post(post_id) is None:
            raise NotFound("Post not found")

        claps, clapped, comments = await asyncio.gather(
            self.store.count_claps(post_id),
            self.user_clapped(post_id, actor_id),
            self.list_comments(post_id),
        )
        return InteractionView(post_id=post_id, claps=claps, user_clapped=clapped, comments=comments)

    async def clap_count(self, post_id: str) -> int:
        return await self.store.count_claps(post_id)

    async def user_clapped(self, post_id: str, actor_id: Optional[str]) -> bool:
        if not actor_id:
            return False
        return await self.store.has_clapped(post_id, actor_id)

    async def add_clap(self, post_id: str, actor: Principal) -> int:
        await self.store.add_clap(post_id, actor.id)
        return await self.store.count_claps(post_id)

    async def remove_clap(self, post_id: str, actor: Principal) -> int:
        try:
            await self.store.remove_clap(post_id, actor.id)
        except NotFound:
            # Removing a clap that is not there leaves the same end state
            logger.debug("No clap by %s on %s to remove", actor.id, post_id)
        return await self.store.count_claps(post_id)

    async def add_comment(self, post_id: str, actor: Principal, text: Optional[str]) -> CommentView:
        comment = await self.store.create_comment(post_id, actor.id, text)
        return CommentView(**comment.dict(), username=actor.username)

    async def list_comments(self, post_id: str) -> List[CommentView]:
        comments = await self.store.list_comments(post_id)
        names = await self.store.usernames_for(c.author_id for c in comments)
        return [
            CommentView(**c.dict(), username=names.get(c.author_id, DEFAULT_USERNAME))
            for c in comments
        ]

    async def delete_comment(self, actor: Principal, comment_id: str):
        comment = await self.store.get_comment(comment_id)
        if comment is None:
            raise NotFound("Comment not found")

        post = await self.store.get_post(comment.post_id)
        resource = CommentResource(
            author_id=comment.author_id,
            post_owner_id=post.author_id if post else None,
        )
        authorize(actor, Action.COMMENT_DELETE, resource, "Not allowed to delete this comment")
        await self.store.delete_comment(comment_id)
        logger.info("Comment %s deleted by %s", comment_id, actor.id)

import logging
from typing import Iterable, List, Optional

from backend.errors import NotFound
from backend.models import DEFAULT_USERNAME, Post, PostView, Principal, ProfileSummary
from backend.policy import Action, PostResource, authorize

logger = logging.getLogger(__name__)


class PostService:
    def __init__(self, store, page_size: int = 10):
        self.store = store
        self.page_size = page_size

    async def _with_profiles(self, posts: Iterable[Post]) -> List[PostView]:
        posts = list(posts)
        names = await self.store.usernames_for(p.author_id for p in posts)
        return [
            PostView(
                **p.dict(),
                profiles=ProfileSummary(
                    id=p.author_id if p.author_id in names else None,
                    username=names.get(p.author_id, DEFAULT_USERNAME),
                ),
            )
            for p in posts
        ]

    async def list_posts(self, page: int = 1, limit: Optional[int] = None) -> List[PostView]:
        posts = await self.store.list_posts(page=page, limit=limit or self.page_size)
        return await self._with_profiles(posts)

    async def get_post(self, post_id: str) -> PostView:
        post = await self.store.get_post(post_id)
        if post is None:
            raise NotFound("Post not found")
        return (await self._with_profiles([post]))[0]

    async def create_post(
        self,
        actor: Principal,
        title: Optional[str],
        description: Optional[str],
        content: Optional[str],
        image_url: Optional[str] = None,
    ) -> PostView:
        authorize(actor, Action.POST_CREATE, PostResource(owner_id=actor.id))
        post = await self.store.create_post(actor.id, title, description, content, image_url)
        logger.info("Post %s created by %s", post.id, actor.id)
        return (await self._with_profiles([post]))[0]

    async def _owned(self, actor: Principal, post_id: str, action: Action) -> Post:
        post = await self.store.get_post(post_id)
        if post is None:
            raise NotFound("Post not found")
        authorize(actor, action, PostResource(owner_id=post.author_id), "Unauthorized to modify this post")
        return post

    async def update_post(self, actor: Principal, post_id: str, **fields) -> PostView:
        await self._owned(actor, post_id, Action.POST_UPDATE)
        post = await self.store.update_post(post_id, **fields)
        return (await self._with_profiles([post]))[0]

    async def delete_post(self, actor: Principal, post_id: str):
        await self._owned(actor, post_id, Action.POST_DELETE)
        await self.store.delete_post(post_id)
        logger.info("Post %s deleted by %s", post_id, actor.id)

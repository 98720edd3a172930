import logging
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError

from backend.errors import Conflict, DuplicateInteraction, NotFound, ValidationError
from backend.models import Clap, Comment, Post, Role, User, utcnow

logger = logging.getLogger(__name__)

# Newest first; _id breaks ties between documents created in the same millisecond
NEWEST_FIRST = [("created_at", DESCENDING), ("_id", DESCENDING)]
NO_MONGO_ID = {"_id": 0}


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _to_doc(model) -> dict:
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in model.dict().items()}


def _require_text(message: str, *values: Optional[str]) -> List[str]:
    cleaned = [v.strip() if isinstance(v, str) else "" for v in values]
    if not all(cleaned):
        raise ValidationError(message)
    return cleaned


class ResourceStore:
    """Document store access for users, posts, comments and claps.

    Identifiers live in an ``id`` field as opaque strings; Mongo's own
    ``_id`` never leaves this class.
    """

    def __init__(self, db, clock: Callable = utcnow):
        self.db = db
        self.users = db.users
        self.posts = db.posts
        self.comments = db.comments
        self.claps = db.claps
        self.clock = clock

    async def ensure_indexes(self):
        await self.users.create_index("id", unique=True)
        await self.users.create_index("email", unique=True)
        await self.posts.create_index("id", unique=True)
        await self.posts.create_index([("created_at", DESCENDING)])
        await self.comments.create_index("id", unique=True)
        await self.comments.create_index([("post_id", ASCENDING), ("created_at", DESCENDING)])
        await self.claps.create_index("id", unique=True)
        await self.claps.create_index(
            [("post_id", ASCENDING), ("user_id", ASCENDING)], unique=True
        )

    # Users
    async def create_user(self, email: str, password_hash: str, username: str, role: Role = Role.USER) -> User:
        user = User(
            email=normalize_email(email),
            username=username.strip(),
            role=role,
            password_hash=password_hash,
            created_at=self.clock(),
        )
        try:
            await self.users.insert_one(_to_doc(user))
        except DuplicateKeyError:
            raise Conflict("Email already registered")
        return user

    async def get_user(self, user_id: str) -> Optional[User]:
        doc = await self.users.find_one({"id": user_id}, NO_MONGO_ID)
        return User(**doc) if doc else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        doc = await self.users.find_one({"email": normalize_email(email)}, NO_MONGO_ID)
        return User(**doc) if doc else None

    async def update_user(self, user_id: str, **fields) -> User:
        changes = {k: (v.value if isinstance(v, Enum) else v) for k, v in fields.items()}
        result = await self.users.update_one({"id": user_id}, {"$set": changes})
        if result.matched_count == 0:
            raise NotFound("User not found")
        return await self.get_user(user_id)

    async def list_users(self, roles: Optional[Iterable[Role]] = None) -> List[User]:
        query = {}
        if roles is not None:
            query["role"] = {"$in": [Role(r).value for r in roles]}
        docs = await self.users.find(
            query, NO_MONGO_ID, sort=[("created_at", ASCENDING)]
        ).to_list(length=None)
        return [User(**doc) for doc in docs]

    async def usernames_for(self, user_ids: Iterable[str]) -> Dict[str, str]:
        ids = list(set(user_ids))
        if not ids:
            return {}
        docs = await self.users.find(
            {"id": {"$in": ids}}, {"_id": 0, "id": 1, "username": 1}
        ).to_list(length=None)
        return {doc["id"]: doc["username"] for doc in docs}

    async def delete_user(self, user_id: str):
        result = await self.users.delete_one({"id": user_id})
        if result.deleted_count == 0:
            raise NotFound("User not found")

    # Posts
    async def create_post(
        self,
        author_id: str,
        title: Optional[str],
        description: Optional[str],
        content: Optional[str],
        image_url: Optional[str] = None,
    ) -> Post:
        title, description, content = _require_text(
            "Title, description, and content are required", title, description, content
        )
        post = Post(
            title=title,
            description=description,
            content=content,
            image_url=image_url,
            author_id=author_id,
            created_at=self.clock(),
        )
        await self.posts.insert_one(_to_doc(post))
        return post

    async def get_post(self, post_id: str) -> Optional[Post]:
        doc = await self.posts.find_one({"id": post_id}, NO_MONGO_ID)
        return Post(**doc) if doc else None

    async def list_posts(self, page: int = 1, limit: int = 10) -> List[Post]:
        page = max(page, 1)
        limit = max(limit, 1)
        docs = await self.posts.find(
            {}, NO_MONGO_ID, sort=NEWEST_FIRST, skip=(page - 1) * limit, limit=limit
        ).to_list(length=None)
        return [Post(**doc) for doc in docs]

    async def update_post(self, post_id: str, **fields) -> Post:
        changes = {}
        for key in ("title", "description", "content"):
            value = fields.get(key)
            if value is not None:
                changes[key] = _require_text(f"{key.capitalize()} cannot be empty", value)[0]
        if "image_url" in fields:
            changes["image_url"] = fields["image_url"]

        if changes:
            result = await self.posts.update_one({"id": post_id}, {"$set": changes})
            if result.matched_count == 0:
                raise NotFound("Post not found")
        post = await self.get_post(post_id)
        if post is None:
            raise NotFound("Post not found")
        return post

    async def delete_post(self, post_id: str):
        result = await self.posts.delete_one({"id": post_id})
        if result.deleted_count == 0:
            raise NotFound("Post not found")
        comments = await self.comments.delete_many({"post_id": post_id})
        claps = await self.claps.delete_many({"post_id": post_id})
        logger.info(
            "Deleted post %s with %d comments and %d claps",
            post_id, comments.deleted_count, claps.deleted_count,
        )

    async def _drop_if_orphaned(self, collection, doc_id: str, post_id: str):
        # delete_post may have cascaded between the existence check and the insert
        if await self.get_post(post_id) is None:
            await collection.delete_one({"id": doc_id})
            logger.info("Discarded %s written to deleted post %s", doc_id, post_id)
            raise NotFound("Post not found")

    # Comments
    async def create_comment(self, post_id: str, author_id: str, text: Optional[str]) -> Comment:
        (text,) = _require_text("Comment text is required", text)
        if await self.get_post(post_id) is None:
            raise NotFound("Post not found")
        comment = Comment(post_id=post_id, author_id=author_id, text=text, created_at=self.clock())
        await self.comments.insert_one(_to_doc(comment))
        await self._drop_if_orphaned(self.comments, comment.id, post_id)
        return comment

    async def get_comment(self, comment_id: str) -> Optional[Comment]:
        doc = await self.comments.find_one({"id": comment_id}, NO_MONGO_ID)
        return Comment(**doc) if doc else None

    async def list_comments(self, post_id: str) -> List[Comment]:
        docs = await self.comments.find(
            {"post_id": post_id}, NO_MONGO_ID, sort=NEWEST_FIRST
        ).to_list(length=None)
        return [Comment(**doc) for doc in docs]

    async def delete_comment(self, comment_id: str):
        result = await self.comments.delete_one({"id": comment_id})
        if result.deleted_count == 0:
            raise NotFound("Comment not found")

    # Claps
    async def add_clap(self, post_id: str, user_id: str) -> Clap:
        if await self.get_post(post_id) is None:
            raise NotFound("Post not found")
        clap = Clap(post_id=post_id, user_id=user_id, created_at=self.clock())
        try:
            await self.claps.insert_one(_to_doc(clap))
        except DuplicateKeyError:
            raise DuplicateInteraction()
        await self._drop_if_orphaned(self.claps, clap.id, post_id)
        return clap

    async def remove_clap(self, post_id: str, user_id: str):
        result = await self.claps.delete_one({"post_id": post_id, "user_id": user_id})
        if result.deleted_count == 0:
            raise NotFound("Clap not found")

    async def count_claps(self, post_id: str) -> int:
        return await self.claps.count_documents({"post_id": post_id})

    async def has_clapped(self, post_id: str, user_id: str) -> bool:
        doc = await self.claps.find_one({"post_id": post_id, "user_id": user_id}, {"_id": 1})
        return doc is not None

import logging
import threading
from contextlib import contextmanager
from typing import Dict, List, Optional, Tuple

from client.api import ApiClient, ApiError, NetworkUnavailable
from client.auth_store import AuthStore
from client.mirror import LocalMirror

logger = logging.getLogger(__name__)

PAGE_SIZE = 10


def empty_interactions() -> dict:
    return {"claps": 0, "userClapped": False, "comments": []}


class PostStore:
    """Posts and their interaction views for one client session."""

    def __init__(self, api: ApiClient, auth: AuthStore, mirror: LocalMirror, page_size: int = PAGE_SIZE):
        self.api = api
        self.auth = auth
        self.mirror = mirror
        self.page_size = page_size

        self.posts: List[dict] = []
        self.interactions: Dict[str, dict] = {}
        self.page = 1
        self.has_more = True
        self.loading = False
        self.error: Optional[str] = None
        self.notices: List[str] = []

        self._lock = threading.Lock()
        self._in_flight = set()
        auth.subscribe(self._on_identity_change)

    # Single-flight guard: a second submission with the same key is dropped
    @contextmanager
    def _single_flight(self, key: str):
        with self._lock:
            if key in self._in_flight:
                acquired = False
            else:
                self._in_flight.add(key)
                acquired = True
        try:
            yield acquired
        finally:
            if acquired:
                with self._lock:
                    self._in_flight.discard(key)

    def _notify(self, message: str):
        self.notices.append(message)

    def dismiss_notice(self, index: int = 0):
        if 0 <= index < len(self.notices):
            del self.notices[index]

    def _on_identity_change(self, user: Optional[dict]):
        for post_id in list(self.interactions):
            self.load_interactions(post_id)

    def _set_interactions(self, post_id: str, view: dict):
        view = {
            "claps": view.get("claps", 0),
            "userClapped": view.get("userClapped", False),
            "comments": list(view.get("comments", [])),
        }
        self.interactions[post_id] = view
        self.mirror.put_interaction(post_id, view)

    # Posts
    def load_posts(self):
        self.loading = True
        self.error = None
        cached = self.mirror.posts()
        if cached:
            self.posts = cached
        try:
            posts = self.api.get("/posts")
        except NetworkUnavailable:
            if not cached:
                self.error = "No cached posts available offline"
            return
        except ApiError as e:
            self.error = e.message
            return
        finally:
            self.loading = False

        self.posts = posts
        self.page = 1
        self.has_more = len(posts) >= self.page_size
        self.mirror.replace_posts(posts)

    def load_more_posts(self):
        if not self.has_more or self.loading:
            return
        self.loading = True
        self.error = None
        try:
            posts = self.api.get("/posts", params={"page": self.page + 1})
        except NetworkUnavailable:
            return
        except ApiError as e:
            self.error = e.message
            return
        finally:
            self.loading = False

        self.posts = self.posts + posts
        self.page += 1
        self.has_more = len(posts) >= self.page_size
        self.mirror.put_posts(posts)

    def load_post(self, post_id: str) -> Optional[dict]:
        try:
            post = self.api.get(f"/posts/{post_id}")
        except NetworkUnavailable:
            return next((p for p in self.mirror.posts() if p["id"] == post_id), None)
        except ApiError as e:
            self.error = e.message
            return None
        self.mirror.put_posts([post])
        return post

    def create_post(
        self,
        title: str,
        description: str,
        content: str,
        image: Optional[Tuple[str, bytes, str]] = None,
        image_url: Optional[str] = None,
    ) -> Optional[dict]:
        if not self.auth.require_auth():
            return None
        with self._single_flight("create-post") as acquired:
            if not acquired:
                return None
            form = {"title": title, "description": description, "content": content}
            if image_url:
                form["image_url"] = image_url
            files = {"image": image} if image else None
            try:
                post = self.api.post("/posts", data=form, files=files)
            except ApiError as e:
                self.error = e.message
                return None

        self.error = None
        self.posts = [post] + self.posts
        self.mirror.put_posts([post])
        return post

    def delete_post(self, post_id: str) -> bool:
        if not self.auth.require_auth():
            return False
        try:
            self.api.delete(f"/posts/{post_id}")
        except ApiError as e:
            self._notify(e.message)
            return False
        self.posts = [p for p in self.posts if p["id"] != post_id]
        self.interactions.pop(post_id, None)
        self.mirror.remove_post(post_id)
        return True

    # Interactions
    def get_interactions(self, post_id: str) -> dict:
        return self.interactions.get(post_id) or empty_interactions()

    def load_interactions(self, post_id: str):
        cached = self.mirror.interaction(post_id)
        if cached:
            self.interactions[post_id] = {k: v for k, v in cached.items() if k != "post_id"}
        try:
            view = self.api.get(f"/posts/{post_id}/interactions")
        except NetworkUnavailable:
            if not cached:
                self.error = "Failed to load interactions"
            return
        except ApiError as e:
            if e.status_code == 404:
                self.interactions.pop(post_id, None)
                self.mirror.remove_post(post_id)
            else:
                self.error = e.message
            return
        self._set_interactions(post_id, view)

    def _toggle_clap(self, post_id: str, path: str, clapped: bool) -> bool:
        if not self.auth.require_auth():
            return False
        with self._single_flight(f"clap:{post_id}") as acquired:
            if not acquired:
                return False
            data, conflict = None, False
            try:
                data = self.api.post(path, json={"post_id": post_id})
            except ApiError as e:
                logger.error("Clap update on %s failed: %s", post_id, e.message)
                conflict = e.status_code == 409
                self._notify(e.message if conflict else "Failed to update clap")

        if data is None:
            # Local view was stale; take the server's
            if conflict:
                self.load_interactions(post_id)
            return False

        # Server count is authoritative; never patch it locally
        current = self.get_interactions(post_id)
        self._set_interactions(post_id, dict(current, claps=data["claps"], userClapped=clapped))
        return True

    def add_clap(self, post_id: str) -> bool:
        return self._toggle_clap(post_id, "/claps/add", True)

    def remove_clap(self, post_id: str) -> bool:
        return self._toggle_clap(post_id, "/claps/remove", False)

    def add_comment(self, post_id: str, text: str) -> Optional[dict]:
        if not self.auth.require_auth():
            return None
        if not text or not text.strip():
            self.error = "Comment text is required"
            return None
        with self._single_flight(f"comment:{post_id}") as acquired:
            if not acquired:
                return None
            try:
                comment = self.api.post("/comments", json={"post_id": post_id, "text": text})
            except ApiError as e:
                self.error = e.message
                return None

        self.error = None
        current = self.get_interactions(post_id)
        self._set_interactions(post_id, dict(current, comments=[comment] + current["comments"]))
        return comment

    def delete_comment(self, post_id: str, comment_id: str) -> bool:
        if not self.auth.require_auth():
            return False
        try:
            self.api.delete(f"/comments/{comment_id}")
        except ApiError as e:
            self._notify(e.message)
            return False
        current = self.get_interactions(post_id)
        comments = [c for c in current["comments"] if c["id"] != comment_id]
        self._set_interactions(post_id, dict(current, comments=comments))
        return True

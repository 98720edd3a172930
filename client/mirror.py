"""Local mirror of the last fetched posts and interaction views.

This is a read-through cache with last-fetch-wins semantics: every
successful live fetch overwrites what is stored, and the mirror is only
read to render something while the network is unreachable. It never
merges or resolves conflicts with the server.
"""
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class LocalMirror:
    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else None
        self._posts: List[dict] = []
        self._interactions: Dict[str, dict] = {}
        self._load()

    def _load(self):
        if not self.path or not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text())
        except (OSError, ValueError):
            logger.warning("Discarding unreadable mirror file %s", self.path)
            return
        self._posts = data.get("posts", [])
        self._interactions = data.get("interactions", {})

    def _save(self):
        if not self.path:
            return
        data = {"posts": self._posts, "interactions": self._interactions}
        self.path.write_text(json.dumps(data, default=str))

    def posts(self) -> List[dict]:
        return list(self._posts)

    def replace_posts(self, posts: List[dict]):
        self._posts = list(posts)
        self._save()

    def put_posts(self, posts: List[dict]):
        by_id = {p["id"]: p for p in posts}
        kept = [by_id.pop(p["id"], p) for p in self._posts]
        self._posts = kept + list(by_id.values())
        self._save()

    def remove_post(self, post_id: str):
        self._posts = [p for p in self._posts if p["id"] != post_id]
        self._interactions.pop(post_id, None)
        self._save()

    def interaction(self, post_id: str) -> Optional[dict]:
        return self._interactions.get(post_id)

    def put_interaction(self, post_id: str, view: dict):
        self._interactions[post_id] = dict(view, post_id=post_id)
        self._save()

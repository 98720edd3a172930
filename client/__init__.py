"""Client shell for the EcoWarrior API.

Build one ``Shell`` per user session and hand its stores to the UI; the
stores are plain objects, not module-level singletons.
"""
from pathlib import Path
from typing import Callable, Optional

import httpx

from client.admin_store import AdminStore
from client.api import ApiClient, ApiError, CredentialStore, NetworkUnavailable
from client.auth_store import AuthStore
from client.mirror import LocalMirror
from client.post_store import PostStore

__all__ = [
    "AdminStore",
    "ApiClient",
    "ApiError",
    "AuthStore",
    "CredentialStore",
    "LocalMirror",
    "NetworkUnavailable",
    "PostStore",
    "Shell",
]


class Shell:
    def __init__(
        self,
        http: httpx.Client,
        token_path: Optional[Path] = None,
        mirror_path: Optional[Path] = None,
        on_sign_in_required: Optional[Callable[[], None]] = None,
        base_path: str = "/api",
    ):
        self.http = http
        self.api = ApiClient(http, CredentialStore(token_path), base_path=base_path)
        self.auth = AuthStore(self.api, on_sign_in_required=on_sign_in_required)
        self.posts = PostStore(self.api, self.auth, LocalMirror(mirror_path))
        self.admin = AdminStore(self.api)

    @classmethod
    def connect(cls, base_url: str, **kwargs) -> "Shell":
        return cls(httpx.Client(base_url=base_url, timeout=10), **kwargs)

    def close(self):
        self.http.close()

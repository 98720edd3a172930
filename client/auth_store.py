import logging
from typing import Callable, List, Optional

from client.api import ApiClient, ApiError

logger = logging.getLogger(__name__)


class AuthStore:
    """Signed-in identity for one client session.

    Listeners registered with ``subscribe`` are called with the new user
    (or None) whenever the identity changes.
    """

    def __init__(self, api: ApiClient, on_sign_in_required: Optional[Callable[[], None]] = None):
        self.api = api
        self.on_sign_in_required = on_sign_in_required
        self.user: Optional[dict] = None
        self.loading = False
        self.initialized = False
        self.error: Optional[str] = None
        self._listeners: List[Callable[[Optional[dict]], None]] = []
        api.on_logout = self.handle_forced_logout

    @property
    def token(self) -> Optional[str]:
        return self.api.credentials.token

    @property
    def role(self) -> Optional[str]:
        return self.user["role"] if self.user else None

    def subscribe(self, listener: Callable[[Optional[dict]], None]):
        self._listeners.append(listener)

    def _set_user(self, user: Optional[dict]):
        changed = (self.user or {}).get("id") != (user or {}).get("id")
        self.user = user
        if changed:
            for listener in list(self._listeners):
                listener(user)

    def _authenticate(self, path: str, payload: dict) -> Optional[dict]:
        self.loading = True
        self.error = None
        try:
            data = self.api.post(path, json=payload)
        except ApiError as e:
            self.error = e.message
            logger.error("Authentication via %s failed: %s", path, e.message)
            return None
        finally:
            self.loading = False

        self.api.credentials.set(data["token"])
        self._set_user(data["user"])
        return data["user"]

    def sign_up(self, email: str, password: str, username: str) -> Optional[dict]:
        if not email or not password or not username or not username.strip():
            self.error = "Email, password, and username are required"
            return None
        return self._authenticate(
            "/auth/signup", {"email": email, "password": password, "username": username.strip()}
        )

    def sign_in(self, email: str, password: str) -> Optional[dict]:
        if not email or not password:
            self.error = "Email and password are required"
            return None
        return self._authenticate("/auth/signin", {"email": email, "password": password})

    def sign_out(self):
        self.api.credentials.clear()
        self.error = None
        self._set_user(None)

    def handle_forced_logout(self):
        self._set_user(None)
        self.error = "Your session has ended, please sign in again"
        if self.on_sign_in_required:
            self.on_sign_in_required()

    def require_auth(self) -> bool:
        if not self.token:
            self.error = "Please sign in to perform this action"
            return False
        return True

    def initialize(self):
        """Restore the identity behind a persisted token, if any."""
        if not self.token:
            self.initialized = True
            return

        self.loading = True
        try:
            data = self.api.get("/auth/me")
            self._set_user(data["user"])
        except ApiError as e:
            logger.warning("Could not restore session: %s", e.message)
            if e.status_code == 401:
                self.api.credentials.clear()
                self._set_user(None)
        finally:
            self.loading = False
            self.initialized = True

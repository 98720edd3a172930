import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional

import httpx

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, status_code: int, message: str, clear_token: bool = False):
        self.status_code = status_code
        self.message = message
        self.clear_token = clear_token
        super().__init__(f"{status_code}: {message}")


class NetworkUnavailable(ApiError):
    def __init__(self, message: str = "Network unavailable"):
        super().__init__(0, message)


class CredentialStore:
    """Holds the bearer token, optionally persisted to a small JSON file."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else None
        self._token = None
        if self.path and self.path.exists():
            try:
                self._token = json.loads(self.path.read_text()).get("token")
            except (OSError, ValueError):
                logger.warning("Ignoring unreadable credential file %s", self.path)

    @property
    def token(self) -> Optional[str]:
        return self._token

    def set(self, token: Optional[str]):
        self._token = token
        if self.path:
            if token:
                self.path.write_text(json.dumps({"token": token}))
            elif self.path.exists():
                self.path.unlink()

    def clear(self):
        self.set(None)


class ApiClient:
    """Thin JSON wrapper over an httpx client.

    Attaches the bearer token to every call once one is stored. A 401 whose
    body carries ``clearToken`` purges the stored token and fires
    ``on_logout`` so the UI can send the user back to sign-in.
    """

    def __init__(
        self,
        http: httpx.Client,
        credentials: CredentialStore,
        base_path: str = "/api",
        on_logout: Optional[Callable[[], None]] = None,
    ):
        self.http = http
        self.credentials = credentials
        self.base_path = base_path.rstrip("/")
        self.on_logout = on_logout

    def request(self, method: str, path: str, **kwargs) -> Any:
        headers = dict(kwargs.pop("headers", None) or {})
        if self.credentials.token:
            headers["Authorization"] = f"Bearer {self.credentials.token}"

        try:
            response = self.http.request(method, self.base_path + path, headers=headers, **kwargs)
        except httpx.TransportError as e:
            logger.warning("%s %s unreachable: %s", method, path, e)
            raise NetworkUnavailable(str(e))

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            message = body.get("error") or response.reason_phrase or "Request failed"
            clear_token = response.status_code == 401 and bool(body.get("clearToken"))
            if clear_token:
                logger.info("Server invalidated the stored credential")
                self.credentials.clear()
                if self.on_logout:
                    self.on_logout()
            raise ApiError(response.status_code, message, clear_token)

        return response.json()

    def get(self, path: str, **kwargs) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs) -> Any:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs) -> Any:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs) -> Any:
        return self.request("DELETE", path, **kwargs)

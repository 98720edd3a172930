import logging
from typing import List, Optional

from client.api import ApiClient, ApiError

logger = logging.getLogger(__name__)


class AdminStore:
    def __init__(self, api: ApiClient):
        self.api = api
        self.admins: List[dict] = []
        self.error: Optional[str] = None

    def load_admins(self):
        try:
            self.admins = self.api.get("/admin/admins")
            self.error = None
        except ApiError as e:
            self.error = e.message

    def create_admin(self, email: str, password: str, username: str) -> Optional[dict]:
        try:
            admin = self.api.post(
                "/admin/admins", json={"email": email, "password": password, "username": username}
            )
        except ApiError as e:
            self.error = e.message
            return None
        self.error = None
        self.admins = self.admins + [admin]
        return admin

    def delete_admin(self, admin_id: str) -> bool:
        try:
            self.api.delete(f"/admin/admins/{admin_id}")
        except ApiError as e:
            logger.error("Deleting admin %s failed: %s", admin_id, e.message)
            self.error = e.message
            return False
        self.error = None
        self.admins = [a for a in self.admins if a["id"] != admin_id]
        return True

import logging
from typing import Optional

import requests
from starlette.concurrency import run_in_threadpool

from backend.errors import AppError, Fatal, ValidationError

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 5 * 1024 * 1024
UPLOAD_FOLDER = "ecowarrior"


class ImageUploader:
    """Hands post images to the external image pipeline (Cloudinary).

    Resizing and format conversion are configured on the upload preset;
    this class only validates the file and returns the hosted URL.
    """

    def __init__(self, cloud_name: Optional[str], upload_preset: Optional[str], timeout: float = 30):
        self.cloud_name = cloud_name
        self.upload_preset = upload_preset
        self.timeout = timeout

    @property
    def endpoint(self) -> str:
        return f"https://api.cloudinary.com/v1_1/{self.cloud_name}/image/upload"

    def validate(self, content_type: Optional[str], data: bytes):
        if not content_type or not content_type.startswith("image/"):
            raise ValidationError("Only image uploads are allowed")
        if len(data) > MAX_IMAGE_BYTES:
            raise ValidationError("Image exceeds the 5MB limit")

    async def upload(self, filename: str, content_type: Optional[str], data: bytes) -> str:
        self.validate(content_type, data)
        if not self.cloud_name or not self.upload_preset:
            raise Fatal("Image uploads are not configured")
        return await run_in_threadpool(self._post, filename, content_type, data)

    def _post(self, filename: str, content_type: str, data: bytes) -> str:
        try:
            response = requests.post(
                self.endpoint,
                files={"file": (filename, data, content_type)},
                data={"upload_preset": self.upload_preset, "folder": UPLOAD_FOLDER},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Image upload failed: %s", e)
            raise AppError("Image upload failed")

        if response.status_code != 200:
            logger.error("Image pipeline returned %s", response.status_code)
            raise AppError("Image upload failed")

        return response.json()["secure_url"]

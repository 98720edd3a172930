import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

ROOT_DIR = Path(__file__).parent

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class Settings(BaseModel):
    mongo_url: str = "mongodb://localhost:27017"
    db_name: str = "ecowarrior"
    cors_origins: List[str] = ["*"]
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    jwt_expires_days: int = 7
    superadmin_email: Optional[str] = None
    superadmin_password: Optional[str] = None
    superadmin_username: str = "eco Warrior 🤝"
    cloudinary_cloud_name: Optional[str] = None
    cloudinary_upload_preset: Optional[str] = None
    log_level: str = "INFO"
    page_size: int = 10

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Settings":
        load_dotenv(env_file or ROOT_DIR / '.env')
        return cls(
            mongo_url=os.environ.get('MONGO_URL', cls.model_fields['mongo_url'].default),
            db_name=os.environ.get('DB_NAME', cls.model_fields['db_name'].default),
            cors_origins=os.environ.get('CORS_ORIGINS', '*').split(','),
            jwt_secret=os.environ.get('JWT_SECRET') or None,
            jwt_expires_days=int(os.environ.get('JWT_EXPIRES_DAYS', 7)),
            superadmin_email=os.environ.get('SUPERADMIN_EMAIL') or None,
            superadmin_password=os.environ.get('SUPERADMIN_PASSWORD') or None,
            cloudinary_cloud_name=os.environ.get('CLOUDINARY_CLOUD_NAME') or None,
            cloudinary_upload_preset=os.environ.get('CLOUDINARY_UPLOAD_PRESET') or None,
            log_level=os.environ.get('LOG_LEVEL', 'INFO'),
        )

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from backend.accounts import AccountService
from backend.admin import AdminService
from backend.config import Settings
from backend.errors import ExpiredCredential, InvalidCredential
from backend.interactions import InteractionService
from backend.media import ImageUploader
from backend.models import Principal, utcnow
from backend.posts import PostService
from backend.security import CredentialVerifier, TokenService
from backend.store import ResourceStore

logger = logging.getLogger(__name__)

# Security
security = HTTPBearer(auto_error=False)


@dataclass
class Services:
    settings: Settings
    store: ResourceStore
    tokens: TokenService
    verifier: CredentialVerifier
    accounts: AccountService
    admin: AdminService
    posts: PostService
    interactions: InteractionService
    uploader: ImageUploader

    @classmethod
    def build(cls, settings: Settings, db, clock=utcnow) -> "Services":
        store = ResourceStore(db, clock=clock)
        tokens = TokenService(settings.jwt_secret, settings.jwt_algorithm, settings.jwt_expires_days)
        return cls(
            settings=settings,
            store=store,
            tokens=tokens,
            verifier=CredentialVerifier(tokens, store),
            accounts=AccountService(store, tokens),
            admin=AdminService(store),
            posts=PostService(store, page_size=settings.page_size),
            interactions=InteractionService(store),
            uploader=ImageUploader(settings.cloudinary_cloud_name, settings.cloudinary_upload_preset),
        )


def get_services(request: Request) -> Services:
    return request.app.state.services


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    services: Services = Depends(get_services),
) -> Principal:
    token = credentials.credentials if credentials else None
    return await services.verifier.verify(token)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    services: Services = Depends(get_services),
) -> Optional[Principal]:
    if not credentials:
        return None
    try:
        return await services.verifier.verify(credentials.credentials)
    except (ExpiredCredential, InvalidCredential) as e:
        # Public reads fall back to the anonymous view
        logger.debug("Ignoring unusable token on optional auth: %s", e.message)
        return None

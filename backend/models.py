import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

DEFAULT_USERNAME = "eco warrior 🤝"


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


# Stored documents
class User(BaseModel):
    id: str = Field(default_factory=new_id)
    email: str
    username: str
    role: Role = Role.USER
    password_hash: str
    created_at: datetime = Field(default_factory=utcnow)


class Post(BaseModel):
    id: str = Field(default_factory=new_id)
    title: str
    description: str
    content: str
    image_url: Optional[str] = None
    author_id: str
    created_at: datetime = Field(default_factory=utcnow)


class Comment(BaseModel):
    id: str = Field(default_factory=new_id)
    post_id: str
    author_id: str
    text: str
    created_at: datetime = Field(default_factory=utcnow)


class Clap(BaseModel):
    id: str = Field(default_factory=new_id)
    post_id: str
    user_id: str
    created_at: datetime = Field(default_factory=utcnow)


# Identity
class Principal(BaseModel):
    """An authenticated user as seen by handlers and the policy."""
    id: str
    email: str
    username: str
    role: Role


class UserPublic(BaseModel):
    id: str
    email: str
    username: str
    role: Role


# Request bodies
class SignUpRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    username: Optional[str] = None


class SignInRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class AdminCreate(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    username: Optional[str] = None


class ClapRequest(BaseModel):
    post_id: str


class CommentCreate(BaseModel):
    post_id: str
    text: Optional[str] = None


# Responses
class AuthResponse(BaseModel):
    token: str
    user: UserPublic


class ProfileSummary(BaseModel):
    id: Optional[str] = None
    username: str = DEFAULT_USERNAME


class PostView(Post):
    profiles: ProfileSummary


class CommentView(Comment):
    username: str = DEFAULT_USERNAME


class AdminSummary(BaseModel):
    id: str
    email: str
    username: str
    role: Role


class ClapCount(BaseModel):
    claps: int


class UserClapped(BaseModel):
    user_clapped: bool = Field(serialization_alias="userClapped")


class InteractionView(BaseModel):
    post_id: str
    claps: int
    user_clapped: bool = Field(False, serialization_alias="userClapped")
    comments: List[CommentView] = []


class Message(BaseModel):
    message: str

"""Authorization policy.

Every role decision in the backend goes through ``decide``: a pure lookup
into a table of (action -> rule). A rule sees the actor and a typed
resource and answers ALLOW or DENY; anything the table does not cover,
including a resource of the wrong kind, is denied.

``decide`` never raises. Services call ``authorize`` which turns a DENY
into ``AuthzError``.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from backend.errors import AuthzError
from backend.models import Role

ELEVATED_ROLES = frozenset({Role.ADMIN.value, Role.SUPERADMIN.value})
KNOWN_ROLES = frozenset(r.value for r in Role)


class Action(str, Enum):
    POST_CREATE = "post:create"
    POST_UPDATE = "post:update"
    POST_DELETE = "post:delete"
    COMMENT_DELETE = "comment:delete"
    ADMIN_LIST = "admin:list"
    ADMIN_CREATE = "admin:create"
    ADMIN_DELETE = "admin:delete"


class Decision(Enum):
    ALLOW = "allow"
    DENY = "deny"

    def __bool__(self):
        return self is Decision.ALLOW


# Resources
@dataclass(frozen=True)
class PostResource:
    owner_id: Optional[str] = None


@dataclass(frozen=True)
class CommentResource:
    author_id: str
    # None when the parent post no longer exists
    post_owner_id: Optional[str] = None


@dataclass(frozen=True)
class AdminDirectory:
    """The collection of admin accounts, target of list and create."""


@dataclass(frozen=True)
class AdminAccount:
    id: str
    role: str


def _role_of(subject: Any) -> Optional[str]:
    role = getattr(subject, "role", None)
    if isinstance(role, Role):
        return role.value
    return role if isinstance(role, str) else None


def _id_of(subject: Any) -> Optional[str]:
    value = getattr(subject, "id", None)
    return value if isinstance(value, str) and value else None


def _same(actor_id: Optional[str], other_id: Optional[str]) -> bool:
    return actor_id is not None and actor_id == other_id


def _allow_if(condition: bool) -> Decision:
    return Decision.ALLOW if condition else Decision.DENY


def _post_create(actor, resource: PostResource) -> Decision:
    return _allow_if(_role_of(actor) in KNOWN_ROLES)


def _post_mutate(actor, resource: PostResource) -> Decision:
    return _allow_if(
        _same(_id_of(actor), resource.owner_id)
        or _role_of(actor) in ELEVATED_ROLES
    )


def _comment_delete(actor, resource: CommentResource) -> Decision:
    actor_id = _id_of(actor)
    return _allow_if(
        _same(actor_id, resource.author_id)
        or _same(actor_id, resource.post_owner_id)
        or _role_of(actor) == Role.SUPERADMIN.value
    )


def _superadmin_only(actor, resource: AdminDirectory) -> Decision:
    return _allow_if(_role_of(actor) == Role.SUPERADMIN.value)


def _admin_delete(actor, resource: AdminAccount) -> Decision:
    if _same(_id_of(actor), resource.id):
        return Decision.DENY
    if _role_of(resource) == Role.SUPERADMIN.value:
        return Decision.DENY
    return _allow_if(_role_of(actor) == Role.SUPERADMIN.value)


Rule = Callable[[Any, Any], Decision]

RULES: Dict[Action, Tuple[type, Rule]] = {
    Action.POST_CREATE: (PostResource, _post_create),
    Action.POST_UPDATE: (PostResource, _post_mutate),
    Action.POST_DELETE: (PostResource, _post_mutate),
    Action.COMMENT_DELETE: (CommentResource, _comment_delete),
    Action.ADMIN_LIST: (AdminDirectory, _superadmin_only),
    Action.ADMIN_CREATE: (AdminDirectory, _superadmin_only),
    Action.ADMIN_DELETE: (AdminAccount, _admin_delete),
}


def decide(actor, action, resource) -> Decision:
    if actor is None or not isinstance(action, Action):
        return Decision.DENY
    resource_type, rule = RULES[action]
    if not isinstance(resource, resource_type):
        return Decision.DENY
    return rule(actor, resource)


def authorize(actor, action, resource, message: Optional[str] = None) -> None:
    if decide(actor, action, resource) is not Decision.ALLOW:
        raise AuthzError(message)

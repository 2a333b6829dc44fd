"""Permission checking utilities for Church Admin.

Resolves a user's effective permissions, answers permission and seniority
questions, and provides decorators for enforcing both on FastAPI endpoints.
"""

from functools import wraps
from typing import Any, Callable, Iterable, List, Mapping, Optional, Set, Union

from churchadmin.core.errors import AuthenticationFailed, AuthorizationDenied
from .permissions import Permission, Resource, Action, GLOBAL_WILDCARD
from .roles import ADMIN, LEGACY_ROLE_PERMISSIONS, role_rank


def get_field(record: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a mapping or an object."""
    if record is None:
        return default
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


class PermissionChecker:
    """Checks a permission set, honoring coarse and wildcard grants."""

    def __init__(self, user_permissions: Iterable[str], role: Optional[str] = None):
        """
        Initialize with the user's permission snapshot.

        Args:
            user_permissions: Permission strings resolved for the user
            role: The user's role name; ``admin`` passes every check
        """
        self.permissions = set(user_permissions or [])
        self.role = role

    def has_permission(self, permission: Union[str, Permission]) -> bool:
        """Check if user has a specific permission."""
        if self.role == ADMIN:
            return True

        perm_str = str(permission) if isinstance(permission, Permission) else permission
        if perm_str in self.permissions or GLOBAL_WILDCARD in self.permissions:
            return True

        # A bare resource name or resource:* grants every action on it
        if ":" in perm_str:
            resource = perm_str.split(":", 1)[0]
            if resource in self.permissions or f"{resource}:*" in self.permissions:
                return True

        return False

    def has_any_permission(self, permissions: List[Union[str, Permission]]) -> bool:
        """Check if user has any of the given permissions."""
        return any(self.has_permission(p) for p in permissions)

    def has_all_permissions(self, permissions: List[Union[str, Permission]]) -> bool:
        """Check if user has all of the given permissions."""
        return all(self.has_permission(p) for p in permissions)

    def can_access_resource(self, resource: Resource, action: Action) -> bool:
        """Check if user can perform action on resource."""
        return self.has_permission(Permission(resource, action))


def resolve_permissions(user, roles: Mapping[str, Iterable[str]]) -> Set[str]:
    """
    Compute a user's effective permission set.

    Non-empty ``permission_overrides`` replace role permissions entirely.
    Otherwise the stored role is used, then the built-in table for the six
    system role names. Anything else resolves to an empty set.

    Args:
        user: User record (mapping or object) with ``role`` and
            ``permission_overrides``
        roles: Role name -> stored permission list
    """
    overrides = get_field(user, "permission_overrides")
    if overrides:
        return set(overrides)

    role_name = get_field(user, "role")
    if not role_name:
        return set()
    if role_name in roles:
        return set(roles[role_name] or [])
    if role_name in LEGACY_ROLE_PERMISSIONS:
        return set(LEGACY_ROLE_PERMISSIONS[role_name])
    return set()


def has_permission(user, permission: Union[str, Permission]) -> bool:
    """
    Check if a user has a specific permission.

    Args:
        user: UserContext (or any record with ``role`` and ``permissions``)
        permission: Permission string or Permission object

    Returns:
        True if user has the permission
    """
    if not user:
        return False
    checker = PermissionChecker(get_field(user, "permissions") or [], get_field(user, "role"))
    return checker.has_permission(permission)


def has_minimum_role(user, role_name: str) -> bool:
    """True if the user's role ranks at or above ``role_name``."""
    if not user:
        return False
    return role_rank(get_field(user, "role")) >= role_rank(role_name)


def _find_current_user(args, kwargs):
    current_user = kwargs.get("current_user")
    if current_user is None:
        for arg in args:
            if hasattr(arg, "permissions") and hasattr(arg, "role"):
                return arg
    return current_user


def require_permission(*permissions: Union[str, Permission], require_all: bool = False):
    """
    Decorator factory for FastAPI endpoints requiring specific permissions.

    Args:
        permissions: One or more permission strings or Permission objects
        require_all: If True, user must have ALL permissions. Default: any one.

    Usage:
        @router.get("/members")
        @require_permission("members:read")
        async def list_members(current_user: UserContext = Depends(get_current_user)):
            ...
    """
    perm_strs = [str(p) if isinstance(p, Permission) else p for p in permissions]

    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            current_user = _find_current_user(args, kwargs)
            if not current_user:
                raise AuthenticationFailed("Authentication required")

            checker = PermissionChecker(current_user.permissions, current_user.role)
            if require_all:
                has_access = checker.has_all_permissions(perm_strs)
            else:
                has_access = checker.has_any_permission(perm_strs)

            if not has_access:
                raise AuthorizationDenied(required=", ".join(perm_strs))

            return await func(*args, **kwargs)

        return wrapper
    return decorator


def require_role(role_name: str):
    """
    Decorator factory for endpoints gated on seniority rather than a key.

    Usage:
        @router.post("/register")
        @require_role("admin")
        async def register(current_user: UserContext = Depends(get_current_user)):
            ...
    """
    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            current_user = _find_current_user(args, kwargs)
            if not current_user:
                raise AuthenticationFailed("Authentication required")

            if not has_minimum_role(current_user, role_name):
                raise AuthorizationDenied(required=f"role:{role_name}")

            return await func(*args, **kwargs)

        return wrapper
    return decorator

"""RBAC (Role-Based Access Control) module for Church Admin.

This module defines the permission catalog, built-in roles, and access control utilities.
"""

from .permissions import Permission, Resource, Action, PERMISSION_DEFINITIONS
from .checker import (
    PermissionChecker,
    has_permission,
    has_minimum_role,
    resolve_permissions,
    require_permission,
    require_role,
)
from .context import UserContext
from .guards import SENSITIVE_FIELDS, filter_sensitive_fields, can_access_member, require_member_access

__all__ = [
    "Permission",
    "Resource",
    "Action",
    "PERMISSION_DEFINITIONS",
    "PermissionChecker",
    "has_permission",
    "has_minimum_role",
    "resolve_permissions",
    "require_permission",
    "require_role",
    "UserContext",
    "SENSITIVE_FIELDS",
    "filter_sensitive_fields",
    "can_access_member",
    "require_member_access",
]

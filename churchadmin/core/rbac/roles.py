"""Built-in role definitions for Church Admin.

Six system roles in a fixed seniority order:
1. readonly  - View public-facing records
2. volunteer - Adds event check-in
3. staff     - Day-to-day member, giving and event administration
4. leader    - Cell group leadership, course and group management
5. pastor    - Pastoral care: sensitive member fields, finance
6. admin     - Everything

Each key below maps to the least senior role allowed to use it; a role is
granted every key whose minimum role ranks at or below its own.
"""

from typing import Dict, List

from .permissions import Resource, Action, Permission, PERMISSION_DEFINITIONS, GLOBAL_WILDCARD


ADMIN = "admin"
PASTOR = "pastor"
LEADER = "leader"
STAFF = "staff"
VOLUNTEER = "volunteer"
READONLY = "readonly"

# Seniority rank; names not listed rank 0
ROLE_LEVELS: Dict[str, int] = {
    READONLY: 1,
    VOLUNTEER: 2,
    STAFF: 3,
    LEADER: 4,
    PASTOR: 5,
    ADMIN: 6,
}


def role_rank(role_name) -> int:
    """Numeric rank of a role name; unknown or missing names rank 0."""
    if not role_name:
        return 0
    return ROLE_LEVELS.get(role_name, 0)


def _key(resource: Resource, action: Action) -> str:
    return str(Permission(resource, action))


def _crud(resource: Resource, read: str, create: str, update: str, delete: str) -> Dict[str, str]:
    return {
        _key(resource, Action.READ): read,
        _key(resource, Action.CREATE): create,
        _key(resource, Action.UPDATE): update,
        _key(resource, Action.DELETE): delete,
    }


# Minimum role per permission key
MINIMUM_ROLE: Dict[str, str] = {
    **_crud(Resource.MEMBERS, READONLY, STAFF, STAFF, PASTOR),
    _key(Resource.MEMBERS, Action.SENSITIVE): PASTOR,

    **_crud(Resource.OFFERINGS, STAFF, STAFF, PASTOR, ADMIN),
    **_crud(Resource.FINANCE, PASTOR, PASTOR, PASTOR, ADMIN),

    **_crud(Resource.EVENTS, READONLY, STAFF, STAFF, LEADER),
    _key(Resource.EVENTS, Action.CHECKIN): VOLUNTEER,

    **_crud(Resource.COURSES, READONLY, LEADER, LEADER, PASTOR),
    **_crud(Resource.CELLGROUPS, READONLY, LEADER, LEADER, PASTOR),
    **_crud(Resource.VOLUNTEERS, STAFF, STAFF, STAFF, LEADER),
    **_crud(Resource.MEDIA, READONLY, STAFF, STAFF, LEADER),
    **_crud(Resource.SURVEYS, STAFF, STAFF, STAFF, LEADER),

    _key(Resource.SETTINGS, Action.READ): PASTOR,
    _key(Resource.SETTINGS, Action.UPDATE): ADMIN,
    _key(Resource.ROLES, Action.MANAGE): ADMIN,
    _key(Resource.USERS, Action.INVITE): ADMIN,
}


def _permissions_for(role_name: str) -> List[str]:
    """Catalog-ordered keys available to ``role_name``."""
    rank = ROLE_LEVELS[role_name]
    return [
        key for key in PERMISSION_DEFINITIONS
        if ROLE_LEVELS[MINIMUM_ROLE[key]] <= rank
    ]


# Fallback table used when a built-in role has no stored Role row
LEGACY_ROLE_PERMISSIONS: Dict[str, List[str]] = {
    name: _permissions_for(name) for name in ROLE_LEVELS
}


DEFAULT_ROLES: Dict[str, dict] = {
    ADMIN: {
        "description": "Full system access",
        "permissions": [GLOBAL_WILDCARD],
    },
    PASTOR: {
        "description": "Pastoral care, finance and sensitive member records",
        "permissions": LEGACY_ROLE_PERMISSIONS[PASTOR],
    },
    LEADER: {
        "description": "Cell group and course leadership",
        "permissions": LEGACY_ROLE_PERMISSIONS[LEADER],
    },
    STAFF: {
        "description": "Church office administration",
        "permissions": LEGACY_ROLE_PERMISSIONS[STAFF],
    },
    VOLUNTEER: {
        "description": "Event check-in and read access",
        "permissions": LEGACY_ROLE_PERMISSIONS[VOLUNTEER],
    },
    READONLY: {
        "description": "Read-only access",
        "permissions": LEGACY_ROLE_PERMISSIONS[READONLY],
    },
}


def get_default_role_permissions(role_name: str) -> List[str]:
    """Get permissions list for a built-in role."""
    role = DEFAULT_ROLES.get(role_name)
    if not role:
        raise ValueError(f"Unknown default role: {role_name}")
    return list(role["permissions"])


def get_all_default_roles() -> Dict[str, dict]:
    """Get all built-in role definitions."""
    return DEFAULT_ROLES.copy()

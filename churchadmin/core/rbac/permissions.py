"""Permission catalog for Church Admin RBAC.

Defines all resources, actions, and the valid combinations between them.

Permission string format: "resource:action"
Examples:
  - members:read
  - members:sensitive
  - events:checkin
  - roles:manage

A bare resource name ("members") is a coarse permission covering every
action on that resource. Groups exist for presentation only.
"""

from enum import Enum
from typing import NamedTuple, FrozenSet, Iterable, List


class Resource(str, Enum):
    """Resources that can be protected by permissions."""

    MEMBERS = "members"
    OFFERINGS = "offerings"
    FINANCE = "finance"
    EVENTS = "events"
    COURSES = "courses"
    CELLGROUPS = "cellgroups"
    VOLUNTEERS = "volunteers"
    MEDIA = "media"
    SURVEYS = "surveys"
    SETTINGS = "settings"
    ROLES = "roles"
    USERS = "users"


class Action(str, Enum):
    """Actions that can be performed on resources."""

    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    SENSITIVE = "sensitive"       # View health notes and similar
    CHECKIN = "checkin"           # Event check-in
    MANAGE = "manage"             # Role and permission management
    INVITE = "invite"             # Create back-office accounts


class Permission(NamedTuple):
    """A permission is a combination of resource and action."""
    resource: Resource
    action: Action

    def __str__(self) -> str:
        return f"{self.resource.value}:{self.action.value}"

    @classmethod
    def from_string(cls, perm_str: str) -> "Permission":
        """Parse a permission string like 'members:read'."""
        parts = perm_str.split(":")
        if len(parts) != 2:
            raise ValueError(f"Invalid permission format: {perm_str}")
        return cls(Resource(parts[0]), Action(parts[1]))


CRUD_ACTIONS = frozenset([Action.READ, Action.CREATE, Action.UPDATE, Action.DELETE])

# Maps each resource to its valid actions
PERMISSION_MATRIX: dict[Resource, FrozenSet[Action]] = {
    Resource.MEMBERS: CRUD_ACTIONS | {Action.SENSITIVE},
    Resource.OFFERINGS: CRUD_ACTIONS,
    Resource.FINANCE: CRUD_ACTIONS,
    Resource.EVENTS: CRUD_ACTIONS | {Action.CHECKIN},
    Resource.COURSES: CRUD_ACTIONS,
    Resource.CELLGROUPS: CRUD_ACTIONS,
    Resource.VOLUNTEERS: CRUD_ACTIONS,
    Resource.MEDIA: CRUD_ACTIONS,
    Resource.SURVEYS: CRUD_ACTIONS,
    Resource.SETTINGS: frozenset([Action.READ, Action.UPDATE]),
    Resource.ROLES: frozenset([Action.MANAGE]),
    Resource.USERS: frozenset([Action.INVITE]),
}

# Presentation groups for the access-control screen
PERMISSION_GROUPS: list[tuple[str, list[Resource]]] = [
    ("Members", [Resource.MEMBERS]),
    ("Giving & Finance", [Resource.OFFERINGS, Resource.FINANCE]),
    ("Events & Courses", [Resource.EVENTS, Resource.COURSES]),
    ("Groups & Volunteers", [Resource.CELLGROUPS, Resource.VOLUNTEERS]),
    ("Media & Surveys", [Resource.MEDIA, Resource.SURVEYS]),
    ("System", [Resource.SETTINGS, Resource.ROLES, Resource.USERS]),
]

# Stable action order inside a group
_ACTION_ORDER = [
    Action.READ, Action.CREATE, Action.UPDATE, Action.DELETE,
    Action.SENSITIVE, Action.CHECKIN, Action.MANAGE, Action.INVITE,
]

GLOBAL_WILDCARD = "*:*"


def _generate_permission_definitions() -> dict[str, Permission]:
    """Generate all valid permission combinations from the matrix."""
    permissions = {}
    for resource, actions in PERMISSION_MATRIX.items():
        for action in _ACTION_ORDER:
            if action in actions:
                perm = Permission(resource, action)
                permissions[str(perm)] = perm
    return permissions


# All valid permissions as a dictionary: "resource:action" -> Permission
PERMISSION_DEFINITIONS = _generate_permission_definitions()

RESOURCE_NAMES = frozenset(r.value for r in Resource)


def is_valid_permission(perm_str: str) -> bool:
    """Check if a permission string is a catalog key."""
    return perm_str in PERMISSION_DEFINITIONS


def is_grantable(perm_str: str) -> bool:
    """Check if a string may be stored on a role or a user override.

    Accepts catalog keys, bare resource names (coarse permissions),
    ``resource:*`` wildcards and the global ``*:*`` wildcard.
    """
    if perm_str in PERMISSION_DEFINITIONS or perm_str in RESOURCE_NAMES:
        return True
    if perm_str == GLOBAL_WILDCARD:
        return True
    if perm_str.endswith(":*"):
        return perm_str[:-2] in RESOURCE_NAMES
    return False


def invalid_permissions(permissions: Iterable[str]) -> List[str]:
    """Return the entries of ``permissions`` that the catalog rejects."""
    return [p for p in permissions if not is_grantable(p)]


def get_permissions_for_resource(resource: Resource) -> list[str]:
    """Get all valid permission strings for a resource."""
    return [
        key for key, perm in PERMISSION_DEFINITIONS.items()
        if perm.resource == resource
    ]


def get_all_permissions() -> list[str]:
    """Get all valid permission strings."""
    return list(PERMISSION_DEFINITIONS.keys())


def get_permission_catalog() -> list[dict]:
    """Catalog grouped for display: [{"group": ..., "items": [{"key", "resource", "action"}]}]."""
    catalog = []
    for group, resources in PERMISSION_GROUPS:
        items = []
        for resource in resources:
            for key in get_permissions_for_resource(resource):
                perm = PERMISSION_DEFINITIONS[key]
                items.append({
                    "key": key,
                    "resource": perm.resource.value,
                    "action": perm.action.value,
                })
        catalog.append({"group": group, "items": items})
    return catalog

"""Record-level access: sensitive-field stripping and member access."""

from typing import Any, Dict, Mapping

from churchadmin.core.errors import AuthorizationDenied

from .checker import get_field, has_minimum_role
from .roles import LEADER, PASTOR

SENSITIVE_FIELDS = frozenset(["health_notes", "password_hash", "verification_token"])


def filter_sensitive_fields(record: Mapping[str, Any], user) -> Dict[str, Any]:
    """Return ``record`` with sensitive keys removed unless ``user`` is pastor or above.

    The input is never mutated; a shallow copy is always returned.
    """
    if has_minimum_role(user, PASTOR):
        return dict(record)
    return {key: value for key, value in record.items() if key not in SENSITIVE_FIELDS}


def can_access_member(user, member) -> bool:
    """Single-record read/update access to a member."""
    if not user or member is None:
        return False
    if has_minimum_role(user, PASTOR):
        return True

    member_id = get_field(member, "id")
    if member_id and get_field(user, "member_id") == member_id:
        return True

    if get_field(user, "role") == LEADER:
        group = get_field(user, "cell_group_id")
        if group and group == get_field(member, "cell_group_id"):
            return True

    return False


def require_member_access(user, member) -> None:
    """Raise ``AuthorizationDenied`` unless ``can_access_member`` allows it."""
    if not can_access_member(user, member):
        raise AuthorizationDenied(
            "You may only access your own record or members of your cell group",
            required="role:pastor",
        )

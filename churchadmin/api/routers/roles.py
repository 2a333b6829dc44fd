"""Role management API endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from churchadmin.api.deps import get_db, get_current_user
from churchadmin.api.schemas.roles import RoleCreate, RoleUpdate
from churchadmin.core.errors import NotFound, ValidationFailed
from churchadmin.core.rbac import UserContext, require_permission
from churchadmin.core.rbac.permissions import get_permission_catalog, invalid_permissions
from churchadmin.core.validation import sanitize
from churchadmin.db.models import Role, User
from churchadmin.db.session import commit_or_conflict

router = APIRouter(prefix="/roles", tags=["roles"])


def _check_permissions(permissions: list[str]) -> list[str]:
    invalid = invalid_permissions(permissions)
    if invalid:
        raise ValidationFailed({"permissions": f"Unknown permissions: {', '.join(invalid)}"})
    # Keep first occurrence order, drop duplicates
    return list(dict.fromkeys(permissions))


def _check_unique_name(db: Session, name: str, exclude_id: str = None) -> None:
    query = db.query(Role).filter(Role.name == name)
    if exclude_id:
        query = query.filter(Role.id != exclude_id)
    if query.first():
        raise ValidationFailed({"name": "A role with this name already exists"})


@router.get("")
@require_permission("roles:manage")
async def list_roles(
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    roles = db.query(Role).order_by(Role.name).all()
    return {
        "roles": [r.to_dict() for r in roles],
        "permission_catalog": get_permission_catalog(),
    }


@router.get("/permissions")
@require_permission("roles:manage")
async def list_all_permissions(
    current_user: UserContext = Depends(get_current_user),
):
    """Permission catalog grouped for display."""
    return {"permission_catalog": get_permission_catalog()}


@router.post("", status_code=status.HTTP_201_CREATED)
@require_permission("roles:manage")
async def create_role(
    role_data: RoleCreate,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    """Create a new custom role."""
    name = sanitize(role_data.name)
    if not name:
        raise ValidationFailed({"name": "Role name is required"})
    _check_unique_name(db, name)

    role = Role(
        name=name,
        description=sanitize(role_data.description),
        permissions=_check_permissions(role_data.permissions),
        is_system_role=False,
    )
    db.add(role)
    commit_or_conflict(db)
    db.refresh(role)
    return {"message": "Role created", "role": role.to_dict()}


@router.put("/{role_id}")
@require_permission("roles:manage")
async def update_role(
    role_id: str,
    role_data: RoleUpdate,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    """Update a role. System roles keep their name but their permissions are editable."""
    role = db.get(Role, role_id)
    if role is None:
        raise NotFound("Role")

    if role_data.name is not None:
        name = sanitize(role_data.name)
        if not name:
            raise ValidationFailed({"name": "Role name is required"})
        if name != role.name:
            if role.is_system_role:
                raise ValidationFailed({"name": "System roles cannot be renamed"})
            _check_unique_name(db, name, exclude_id=role.id)
            # Accounts reference roles by name
            db.query(User).filter(User.role == role.name).update(
                {User.role: name}, synchronize_session=False
            )
            role.name = name

    if role_data.description is not None:
        role.description = sanitize(role_data.description)

    if role_data.permissions is not None:
        role.permissions = _check_permissions(role_data.permissions)

    commit_or_conflict(db)
    db.refresh(role)
    return {"message": "Role updated", "role": role.to_dict()}


@router.delete("/{role_id}")
@require_permission("roles:manage")
async def delete_role(
    role_id: str,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    role = db.get(Role, role_id)
    if role is None:
        raise NotFound("Role")
    if role.is_system_role:
        raise ValidationFailed({"role": "System roles cannot be deleted"})
    if db.query(User).filter(User.role == role.name).first():
        raise ValidationFailed({"role": "Role is still assigned to accounts"})

    db.delete(role)
    commit_or_conflict(db)
    return {"message": "Role deleted"}

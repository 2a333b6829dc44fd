"""Cell group API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from churchadmin.api.deps import get_db, get_current_user
from churchadmin.api.schemas.cellgroups import CellGroupCreate, CellGroupUpdate
from churchadmin.core.errors import NotFound, ValidationFailed
from churchadmin.core.rbac import UserContext, require_permission
from churchadmin.core.validation import sanitize_dict
from churchadmin.db.models import CellGroup, Member
from churchadmin.db.session import commit_or_conflict

router = APIRouter(prefix="/cellgroups", tags=["cellgroups"])

CELL_GROUP_STATUSES = ("active", "inactive", "deleted")


def _get_group(db: Session, group_id: str) -> CellGroup:
    group = db.get(CellGroup, group_id)
    if group is None:
        raise NotFound("Cell group")
    return group


def _validate(data: dict, partial: bool = False) -> None:
    errors = {}
    if (not partial or "name" in data) and not (data.get("name") or "").strip():
        errors["name"] = "Cell group name is required"
    if data.get("status") is not None and data["status"] not in CELL_GROUP_STATUSES:
        errors["status"] = f"Status must be one of: {', '.join(CELL_GROUP_STATUSES)}"
    if errors:
        raise ValidationFailed(errors)


@router.get("")
@require_permission("cellgroups:read")
async def list_cell_groups(
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None, description="Match name or location"),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    query = db.query(CellGroup)
    if status_filter:
        query = query.filter(CellGroup.status == status_filter)
    else:
        query = query.filter(CellGroup.status != "deleted")
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            CellGroup.name.ilike(pattern),
            CellGroup.location.ilike(pattern),
        ))

    groups = [g.to_dict() for g in query.order_by(CellGroup.name).all()]
    return {"cell_groups": groups, "total": len(groups)}


@router.get("/{group_id}")
@require_permission("cellgroups:read")
async def get_cell_group(
    group_id: str,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    """A cell group with the summary of its current members."""
    group = _get_group(db, group_id)
    members = (
        db.query(Member)
        .filter(Member.cell_group_id == group.id, Member.status != "deleted")
        .order_by(Member.name)
        .all()
    )
    return {
        "cell_group": group.to_dict(),
        "members": [{"id": m.id, "name": m.name} for m in members],
    }


@router.post("", status_code=status.HTTP_201_CREATED)
@require_permission("cellgroups:create")
async def create_cell_group(
    group_in: CellGroupCreate,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    data = sanitize_dict(group_in.model_dump())
    _validate(data)

    group = CellGroup(**data)
    db.add(group)
    commit_or_conflict(db)
    db.refresh(group)
    return {"message": "Cell group created", "cell_group": group.to_dict()}


@router.put("/{group_id}")
@require_permission("cellgroups:update")
async def update_cell_group(
    group_id: str,
    group_in: CellGroupUpdate,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    group = _get_group(db, group_id)
    data = sanitize_dict(group_in.model_dump(exclude_unset=True, exclude_none=True))
    _validate(data, partial=True)

    for key, value in data.items():
        setattr(group, key, value)
    commit_or_conflict(db)
    db.refresh(group)
    return {"message": "Cell group updated", "cell_group": group.to_dict()}


@router.delete("/{group_id}")
@require_permission("cellgroups:delete")
async def delete_cell_group(
    group_id: str,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    group = _get_group(db, group_id)
    group.status = "deleted"
    commit_or_conflict(db)
    return {"message": "Cell group deleted"}

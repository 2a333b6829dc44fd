"""Member management API endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from churchadmin.api.deps import get_db, get_current_user
from churchadmin.api.schemas.members import MemberCreate, MemberUpdate
from churchadmin.core.errors import ConflictError, NotFound, ValidationFailed
from churchadmin.core.rbac import (
    UserContext,
    filter_sensitive_fields,
    require_member_access,
    require_permission,
)
from churchadmin.core.validation import sanitize_dict, validate_member
from churchadmin.db.models import Member
from churchadmin.db.session import commit_or_conflict

router = APIRouter(prefix="/members", tags=["members"])

MEMBER_STATUSES = ("active", "inactive", "deleted")


def _get_member(db: Session, member_id: str) -> Member:
    member = db.get(Member, member_id)
    if member is None:
        raise NotFound("Member")
    return member


@router.get("")
@require_permission("members:read")
async def list_members(
    status_filter: Optional[str] = Query(None, alias="status"),
    faith_status: Optional[str] = Query(None),
    cell_group_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Match name, email or phone"),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    """List members. Deleted members are hidden unless a status filter asks for them."""
    query = db.query(Member)

    if status_filter:
        query = query.filter(Member.status == status_filter)
    else:
        query = query.filter(Member.status != "deleted")

    if faith_status:
        query = query.filter(Member.faith_status == faith_status)
    if cell_group_id:
        query = query.filter(Member.cell_group_id == cell_group_id)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Member.name.ilike(pattern),
            Member.email.ilike(pattern),
            Member.phone.like(pattern),
        ))

    members = [
        filter_sensitive_fields(m.to_dict(), current_user)
        for m in query.order_by(Member.name).all()
    ]
    return {"members": members, "total": len(members)}


@router.get("/{member_id}")
@require_permission("members:read")
async def get_member(
    member_id: str,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    member = _get_member(db, member_id)
    require_member_access(current_user, member)
    return {"member": filter_sensitive_fields(member.to_dict(), current_user)}


@router.post("", status_code=status.HTTP_201_CREATED)
@require_permission("members:create")
async def create_member(
    member_in: MemberCreate,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    data = member_in.model_dump(exclude_unset=True)
    validate_member(data)
    data = sanitize_dict(data)

    member = Member(
        **{key: value for key, value in data.items() if key not in ("join_date", "tags")},
        join_date=data.get("join_date") or date.today(),
        tags=data.get("tags") or "",
        status="active",
    )
    db.add(member)
    commit_or_conflict(db)
    db.refresh(member)

    return {
        "message": "Member created",
        "member": filter_sensitive_fields(member.to_dict(), current_user),
    }


@router.put("/{member_id}")
@require_permission("members:update")
async def update_member(
    member_id: str,
    member_in: MemberUpdate,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    member = _get_member(db, member_id)
    require_member_access(current_user, member)

    data = member_in.model_dump(exclude_unset=True)
    expected_version = data.pop("version", None)
    if expected_version is not None and expected_version != member.version:
        raise ConflictError()

    validate_member(data, partial=True)
    if data.get("status") and data["status"] not in MEMBER_STATUSES:
        raise ValidationFailed(
            {"status": f"Status must be one of: {', '.join(MEMBER_STATUSES)}"}
        )

    for key, value in sanitize_dict(data).items():
        if key == "status" and value is None:
            continue
        if key == "tags" and value is None:
            value = ""
        setattr(member, key, value)

    commit_or_conflict(db)
    db.refresh(member)

    return {
        "message": "Member updated",
        "member": filter_sensitive_fields(member.to_dict(), current_user),
    }


@router.delete("/{member_id}")
@require_permission("members:delete")
async def delete_member(
    member_id: str,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    """Soft delete: the row stays with status ``deleted``."""
    member = _get_member(db, member_id)
    member.status = "deleted"
    commit_or_conflict(db)
    return {"message": "Member deleted"}

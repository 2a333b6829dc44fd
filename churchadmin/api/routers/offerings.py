"""Offering (giving) records API endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import extract
from sqlalchemy.orm import Session

from churchadmin.api.deps import get_db, get_current_user
from churchadmin.api.schemas.offerings import OfferingCreate, OfferingUpdate
from churchadmin.core.errors import NotFound, ValidationFailed
from churchadmin.core.rbac import UserContext, require_permission
from churchadmin.core.validation import OFFERING_TYPES, sanitize_dict, validate_offering
from churchadmin.db.models import Member, Offering
from churchadmin.db.session import commit_or_conflict

router = APIRouter(prefix="/offerings", tags=["offerings"])


def _get_offering(db: Session, offering_id: str) -> Offering:
    offering = db.get(Offering, offering_id)
    if offering is None or offering.status == "deleted":
        raise NotFound("Offering")
    return offering


def _require_member(db: Session, member_id: str) -> None:
    member = db.get(Member, member_id)
    if member is None or member.status == "deleted":
        raise ValidationFailed({"member_id": "Member does not exist"})


@router.get("")
@require_permission("offerings:read")
async def list_offerings(
    member_id: Optional[str] = Query(None),
    offering_type: Optional[str] = Query(None, alias="type"),
    method: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    """Offerings matching every given filter, newest first, with the amount total."""
    query = db.query(Offering).filter(Offering.status != "deleted")
    if member_id:
        query = query.filter(Offering.member_id == member_id)
    if offering_type:
        query = query.filter(Offering.type == offering_type)
    if method:
        query = query.filter(Offering.method == method)
    if start_date:
        query = query.filter(Offering.date >= start_date)
    if end_date:
        query = query.filter(Offering.date <= end_date)

    offerings = query.order_by(Offering.date.desc(), Offering.created_at.desc()).all()
    return {
        "offerings": [o.to_dict() for o in offerings],
        "total": sum(o.amount for o in offerings),
        "count": len(offerings),
    }


@router.get("/member/{member_id}")
@require_permission("offerings:read")
async def member_offerings(
    member_id: str,
    year: Optional[int] = Query(None, ge=1900, le=9999),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    """One member's giving, optionally limited to a calendar year, with totals by type."""
    query = db.query(Offering).filter(
        Offering.member_id == member_id, Offering.status != "deleted"
    )
    if year is not None:
        query = query.filter(extract("year", Offering.date) == year)
    offerings = query.order_by(Offering.date.desc()).all()

    totals = {offering_type: 0.0 for offering_type in OFFERING_TYPES}
    totals["total"] = 0.0
    for offering in offerings:
        totals[offering.type] = totals.get(offering.type, 0.0) + offering.amount
        totals["total"] += offering.amount

    return {
        "offerings": [o.to_dict() for o in offerings],
        "totals": totals,
        "count": len(offerings),
    }


@router.get("/{offering_id}")
@require_permission("offerings:read")
async def get_offering(
    offering_id: str,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    return {"offering": _get_offering(db, offering_id).to_dict()}


@router.post("", status_code=status.HTTP_201_CREATED)
@require_permission("offerings:create")
async def create_offering(
    offering_in: OfferingCreate,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    data = sanitize_dict(offering_in.model_dump())
    validate_offering(data)
    _require_member(db, data["member_id"])

    offering = Offering(
        member_id=data["member_id"],
        amount=data["amount"],
        type=data["type"],
        method=data["method"],
        date=data.get("date") or date.today(),
        notes=data.get("notes") or "",
        status="active",
    )
    db.add(offering)
    commit_or_conflict(db)
    db.refresh(offering)
    return {"message": "Offering recorded", "offering": offering.to_dict()}


@router.put("/{offering_id}")
@require_permission("offerings:update")
async def update_offering(
    offering_id: str,
    offering_in: OfferingUpdate,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    offering = _get_offering(db, offering_id)
    data = sanitize_dict(offering_in.model_dump(exclude_unset=True))
    validate_offering(data, partial=True)
    if "member_id" in data and data["member_id"] != offering.member_id:
        _require_member(db, data["member_id"])
    if "date" in data and data["date"] is None:
        raise ValidationFailed({"date": "Date is required"})

    for key, value in data.items():
        if key == "notes" and value is None:
            value = ""
        setattr(offering, key, value)
    commit_or_conflict(db)
    db.refresh(offering)
    return {"message": "Offering updated", "offering": offering.to_dict()}


@router.delete("/{offering_id}")
@require_permission("offerings:delete")
async def delete_offering(
    offering_id: str,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    offering = _get_offering(db, offering_id)
    offering.status = "deleted"
    commit_or_conflict(db)
    return {"message": "Offering deleted"}

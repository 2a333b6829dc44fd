"""Event API endpoints: listing, management, registration and check-in."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from churchadmin.api.deps import get_db, get_current_user, get_optional_user
from churchadmin.api.schemas.events import CheckInRequest, EventCreate, EventUpdate, PublicRegistration
from churchadmin.core import events as event_rules
from churchadmin.core.accounts import church_name
from churchadmin.core.errors import NotFound, ValidationFailed
from churchadmin.core.rbac import UserContext, require_permission
from churchadmin.core.validation import sanitize_dict, validate_event
from churchadmin.db.base import utcnow
from churchadmin.db.models import Event, EventRegistration, Member
from churchadmin.db.session import commit_or_conflict
from churchadmin.services.notifications import EmailNotifier, get_notifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])

_DATE_FIELDS = ("start_date", "end_date", "registration_deadline")


def _get_event(db: Session, event_id: str, current_user: Optional[UserContext] = None) -> Event:
    event = db.get(Event, event_id)
    if event is None:
        raise NotFound("Event")
    # Anonymous visitors only see events that are open to the public
    if current_user is None and event.status != "published":
        raise NotFound("Event")
    return event


def _event_data(data: dict) -> dict:
    for key in _DATE_FIELDS:
        if key in data:
            data[key] = event_rules.naive_utc(data[key])
    return data


async def _confirm(
    db: Session,
    notifier: EmailNotifier,
    event: Event,
    member: Member,
    registration: EventRegistration,
) -> None:
    if not member.email:
        return
    sent = await notifier.send_event_confirmation(
        to_email=member.email,
        member_name=member.name,
        event_title=event.title,
        start_date=event.start_date.isoformat(sep=" ", timespec="minutes"),
        location=event.location,
        registration_id=registration.id,
        waitlisted=registration.status == event_rules.WAITLIST,
        church_name=church_name(db),
    )
    if not sent:
        logger.warning(f"Confirmation for registration {registration.id} was not delivered")


def _registered_response(registration: EventRegistration) -> dict:
    waitlisted = registration.status == event_rules.WAITLIST
    return {
        "message": "Added to the waitlist" if waitlisted else "Registration complete",
        "registration": registration.to_dict(),
    }


@router.get("")
async def list_events(
    status_filter: Optional[str] = Query(None, alias="status"),
    upcoming: bool = Query(False),
    past: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: Optional[UserContext] = Depends(get_optional_user),
):
    """
    List events by start date.

    Published events that have ended are closed first, so without a status
    filter anonymous visitors see only published events that are still to come
    or under way.
    """
    if event_rules.close_ended_events(db):
        commit_or_conflict(db)

    now = utcnow()
    query = db.query(Event)
    if status_filter:
        query = query.filter(Event.status == status_filter)
    elif current_user is None:
        query = query.filter(Event.status == "published")
    if upcoming:
        query = query.filter(Event.start_date >= now)
    if past:
        query = query.filter(Event.end_date.isnot(None), Event.end_date < now)

    events = query.order_by(Event.start_date).all()
    return {"events": [e.to_dict() for e in events], "total": len(events)}


@router.get("/{event_id}")
async def get_event(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: Optional[UserContext] = Depends(get_optional_user),
):
    event = _get_event(db, event_id, current_user)
    registered = event_rules.registered_count(db, event.id)
    return {
        "event": event.to_dict(),
        "registrations": registered,
        "available": event_rules.seats_available(event, registered),
    }


@router.get("/{event_id}/registrations")
@require_permission("events:checkin")
async def list_registrations(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    """Every registration for an event with the registrant's contact details."""
    event = _get_event(db, event_id, current_user)
    registrations = db.query(EventRegistration).filter(
        EventRegistration.event_id == event.id
    ).order_by(EventRegistration.registered_at).all()

    member_ids = {r.member_id for r in registrations}
    members = {
        m.id: m for m in db.query(Member).filter(Member.id.in_(member_ids)).all()
    } if member_ids else {}

    result = []
    for registration in registrations:
        member = members.get(registration.member_id)
        result.append({
            **registration.to_dict(),
            "member": {
                "id": member.id,
                "name": member.name,
                "phone": member.phone or "",
                "email": member.email or "",
            } if member else None,
        })
    return {"registrations": result, "total": len(result)}


@router.post("", status_code=status.HTTP_201_CREATED)
@require_permission("events:create")
async def create_event(
    event_in: EventCreate,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    data = _event_data(sanitize_dict(event_in.model_dump()))
    if data.get("end_date") is None:
        data["end_date"] = data.get("start_date")
    if data.get("registration_deadline") is None:
        data["registration_deadline"] = data.get("start_date")
    validate_event(data)

    event = Event(**data, created_by=current_user.user_id)
    db.add(event)
    commit_or_conflict(db)
    db.refresh(event)
    logger.info(f"Event {event.id} created by {current_user.user_id}")
    return {"message": "Event created", "event": event.to_dict()}


@router.put("/{event_id}")
@require_permission("events:update")
async def update_event(
    event_id: str,
    event_in: EventUpdate,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    """Update an event; id, QR code and creator never change."""
    event = _get_event(db, event_id, current_user)
    data = _event_data(sanitize_dict(event_in.model_dump(exclude_unset=True)))
    for key in ("title", "start_date", "location", "capacity", "fee", "status"):
        if key in data and data[key] is None:
            raise ValidationFailed({key: f"{key} cannot be cleared"})

    merged = {key: getattr(event, key) for key in EventUpdate.model_fields}
    merged.update(data)
    validate_event(merged)

    for key, value in data.items():
        if key == "description" and value is None:
            value = ""
        setattr(event, key, value)
    commit_or_conflict(db)
    db.refresh(event)
    return {"message": "Event updated", "event": event.to_dict()}


@router.delete("/{event_id}")
@require_permission("events:delete")
async def delete_event(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    """Events are closed, not removed, so their registrations stay readable."""
    event = _get_event(db, event_id, current_user)
    event.status = "closed"
    commit_or_conflict(db)
    return {"message": "Event closed"}


@router.post("/{event_id}/register", status_code=status.HTTP_201_CREATED)
async def register(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
    notifier: EmailNotifier = Depends(get_notifier),
):
    """Register the signed-in user's own member record."""
    event = _get_event(db, event_id, current_user)
    member = db.get(Member, current_user.member_id) if current_user.member_id else None
    if member is None:
        raise ValidationFailed({"member_id": "Your account is not linked to a member record"})

    registration = event_rules.register_member(db, event, member.id)
    commit_or_conflict(db)
    db.refresh(registration)

    await _confirm(db, notifier, event, member, registration)
    return _registered_response(registration)


@router.post("/{event_id}/register-public", status_code=status.HTTP_201_CREATED)
async def register_public(
    event_id: str,
    registration_in: PublicRegistration,
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
):
    """Register a visitor by name and phone, adding them as a newcomer if unknown."""
    event = _get_event(db, event_id)
    event_rules.ensure_open_for_registration(event)

    data = sanitize_dict(registration_in.model_dump())
    member = event_rules.find_or_create_member(db, data["name"], data["phone"], data.get("email"))
    registration = event_rules.register_member(db, event, member.id)
    commit_or_conflict(db)
    db.refresh(registration)

    await _confirm(db, notifier, event, member, registration)
    return _registered_response(registration)


@router.post("/{event_id}/checkin")
@require_permission("events:checkin")
async def check_in(
    event_id: str,
    checkin_in: CheckInRequest,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    event = _get_event(db, event_id, current_user)
    registration = event_rules.check_in(
        db, event, registration_id=checkin_in.registration_id, qr_data=checkin_in.qr_data
    )
    commit_or_conflict(db)
    db.refresh(registration)

    member = db.get(Member, registration.member_id)
    return {
        "message": "Checked in",
        "registration": registration.to_dict(),
        "member": {"name": member.name, "phone": member.phone or ""} if member else None,
    }

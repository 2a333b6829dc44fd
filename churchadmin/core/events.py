"""Event registration and check-in.

A registration takes a seat while the event has one; after that it joins
the waitlist. Registering bumps the event's version, so two requests racing
for the last seat cannot both commit.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from churchadmin.core.errors import NotFound, ValidationFailed
from churchadmin.core.validation import is_email, is_phone
from churchadmin.db.base import utcnow
from churchadmin.db.models import Event, EventRegistration, Member

logger = logging.getLogger(__name__)

REGISTERED = "registered"
WAITLIST = "waitlist"
CANCELLED = "cancelled"

PAYMENT_PENDING = "pending"
PAYMENT_PAID = "paid"


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Store timestamps as naive UTC, like every other DateTime column."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def close_ended_events(db: Session, now: Optional[datetime] = None) -> int:
    """Close published events whose end date has passed. Returns how many changed."""
    now = now or utcnow()
    ended = db.query(Event).filter(
        Event.status == "published",
        Event.end_date.isnot(None),
        Event.end_date < now,
    ).all()
    for event in ended:
        event.status = "closed"
    if ended:
        logger.info(f"Closed {len(ended)} ended events")
    return len(ended)


def registered_count(db: Session, event_id: str) -> int:
    return db.query(EventRegistration).filter(
        EventRegistration.event_id == event_id,
        EventRegistration.status == REGISTERED,
    ).count()


def seats_available(event: Event, registered: int) -> Optional[int]:
    """Open seats, or None when the event has no capacity limit."""
    if not event.capacity:
        return None
    return max(0, event.capacity - registered)


def ensure_open_for_registration(event: Event, now: Optional[datetime] = None) -> None:
    now = now or utcnow()
    if event.status != "published":
        raise ValidationFailed({"event": "Registration is not open for this event"})
    if event.registration_deadline is not None and event.registration_deadline < now:
        raise ValidationFailed({"event": "Registration has closed"})


def find_or_create_member(db: Session, name: str, phone: str, email: Optional[str] = None) -> Member:
    """
    Match a walk-up registrant to an existing member, or add them as a newcomer.

    A member matches on the same name plus the same phone number (ignoring
    separators) or the same email.
    """
    errors = {}
    if not name:
        errors["name"] = "Name is required"
    if not phone:
        errors["phone"] = "Phone is required"
    elif not is_phone(phone):
        errors["phone"] = "Invalid phone number"
    if email and not is_email(email):
        errors["email"] = "Invalid email format"
    if errors:
        raise ValidationFailed(errors)

    digits = _digits(phone)
    candidates = db.query(Member).filter(Member.name == name, Member.status != "deleted").all()
    for member in candidates:
        if member.phone and _digits(member.phone) == digits:
            return member
        if email and member.email == email:
            return member

    member = Member(
        name=name,
        phone=phone,
        email=email or None,
        join_date=utcnow().date(),
        status="active",
        tags="",
    )
    db.add(member)
    db.flush()
    logger.info(f"Added newcomer {member.id} from event registration")
    return member


def _digits(phone: str) -> str:
    return "".join(ch for ch in phone if ch.isdigit())


def register_member(db: Session, event: Event, member_id: str) -> EventRegistration:
    """Register ``member_id`` for ``event``, waitlisting once every seat is taken.

    The caller commits.
    """
    ensure_open_for_registration(event)

    existing = db.query(EventRegistration).filter(
        EventRegistration.event_id == event.id,
        EventRegistration.member_id == member_id,
        EventRegistration.status != CANCELLED,
    ).first()
    if existing is not None:
        raise ValidationFailed({"member_id": "Already registered for this event"})

    open_seats = seats_available(event, registered_count(db, event.id))
    status = WAITLIST if open_seats == 0 else REGISTERED

    registration = EventRegistration(
        event_id=event.id,
        member_id=member_id,
        status=status,
        payment_status=PAYMENT_PENDING if (event.fee or 0) > 0 else PAYMENT_PAID,
        registered_at=utcnow(),
    )
    db.add(registration)
    event.updated_at = utcnow()
    return registration


def registration_id_from_qr(qr_data: str) -> str:
    """The registration id carried in a scanned QR payload (``{"registration_id": ...}``)."""
    try:
        payload = json.loads(qr_data)
    except ValueError:
        raise ValidationFailed({"qr_data": "Unreadable QR code"})
    if not isinstance(payload, dict) or not payload.get("registration_id"):
        raise ValidationFailed({"qr_data": "Unreadable QR code"})
    return str(payload["registration_id"])


def check_in(
    db: Session,
    event: Event,
    registration_id: Optional[str] = None,
    qr_data: Optional[str] = None,
) -> EventRegistration:
    """Mark a registration as arrived. The caller commits."""
    if not registration_id and qr_data:
        registration_id = registration_id_from_qr(qr_data)
    if not registration_id:
        raise ValidationFailed({"registration_id": "Registration ID or QR data is required"})

    registration = db.get(EventRegistration, registration_id)
    if registration is None:
        raise NotFound("Registration")
    if registration.event_id != event.id:
        raise ValidationFailed({"registration_id": "Registration belongs to another event"})
    if registration.status == CANCELLED:
        raise ValidationFailed({"registration_id": "Registration was cancelled"})
    if registration.checked_in_at is not None:
        raise ValidationFailed({"registration_id": "Already checked in"})

    registration.checked_in_at = utcnow()
    return registration

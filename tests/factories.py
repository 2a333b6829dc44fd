"""Factory functions for creating test database records.

Each factory creates a model instance, adds it to the session, and commits
so that generated fields (id, version, created_at) are populated.
All fields have sensible defaults but can be overridden via keyword arguments.

Usage::

    from tests.factories import create_member, create_user

    def test_something(db_session):
        member = create_member(db_session, name="Grace")
        user = create_user(db_session, member=member, role="staff")
        assert user.member_id == member.id
"""

from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from churchadmin.core.rbac.context import UserContext
from churchadmin.core.rbac.roles import LEGACY_ROLE_PERMISSIONS
from churchadmin.core.security import get_password_hash
from churchadmin.db.base import utcnow
from churchadmin.db.models import (
    CellGroup,
    Event,
    EventRegistration,
    FinanceTransaction,
    Member,
    Offering,
    Role,
    Tag,
    TagRule,
    User,
)


_counter = 0

TEST_PASSWORD = "testpass123"
_TEST_PASSWORD_HASH = None


def _next_id() -> int:
    """Return a monotonically increasing integer for unique default values."""
    global _counter
    _counter += 1
    return _counter


def _password_hash() -> str:
    # Hashing is deliberately slow; one hash serves every factory user
    global _TEST_PASSWORD_HASH
    if _TEST_PASSWORD_HASH is None:
        _TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)
    return _TEST_PASSWORD_HASH


def _save(session: Session, obj):
    session.add(obj)
    session.commit()
    session.refresh(obj)
    return obj


# ---------------------------------------------------------------------------
# Member
# ---------------------------------------------------------------------------


def create_member(
    session: Session,
    *,
    name: Optional[str] = None,
    email: Optional[str] = None,
    phone: str = "0912345678",
    faith_status: Optional[str] = "newcomer",
    cell_group_id: Optional[str] = None,
    join_date: Optional[date] = None,
    tags: str = "",
    health_notes: Optional[str] = None,
    status: str = "active",
) -> Member:
    n = _next_id()
    member = Member(
        name=name or f"Member {n}",
        email=email or f"member{n}@example.org",
        phone=phone,
        faith_status=faith_status,
        cell_group_id=cell_group_id,
        join_date=join_date or date(2020, 1, 1),
        tags=tags,
        health_notes=health_notes,
        status=status,
    )
    return _save(session, member)


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------


def create_user(
    session: Session,
    *,
    member: Optional[Member] = None,
    email: Optional[str] = None,
    role: str = "readonly",
    permission_overrides: Optional[list] = None,
    status: str = "active",
    password: Optional[str] = None,
    must_change_password: bool = False,
    email_verified: bool = True,
    verification_token: Optional[str] = None,
) -> User:
    n = _next_id()
    if member is None:
        member = create_member(session)
    user = User(
        email=email or f"user{n}@example.org",
        password_hash=get_password_hash(password) if password else _password_hash(),
        role=role,
        permission_overrides=permission_overrides or [],
        member_id=member.id,
        status=status,
        must_change_password=must_change_password,
        email_verified=email_verified,
        verification_token=verification_token,
    )
    return _save(session, user)


# ---------------------------------------------------------------------------
# Role
# ---------------------------------------------------------------------------


def create_role(
    session: Session,
    *,
    name: Optional[str] = None,
    permissions: Optional[list] = None,
    description: str = "",
) -> Role:
    n = _next_id()
    role = Role(
        name=name or f"custom-role-{n}",
        description=description,
        permissions=permissions if permissions is not None else ["members:read"],
        is_system_role=False,
    )
    return _save(session, role)


# ---------------------------------------------------------------------------
# Tags and rules
# ---------------------------------------------------------------------------


def create_tag(
    session: Session,
    *,
    name: Optional[str] = None,
    category: str = "general",
    status: str = "active",
) -> Tag:
    n = _next_id()
    tag = Tag(name=name or f"Tag {n}", category=category, status=status)
    return _save(session, tag)


def create_rule(
    session: Session,
    *,
    tag: Tag,
    condition_type: str = "field",
    condition_field: str = "faith_status",
    condition_operator: str = "equals",
    condition_value: str = "baptized",
    priority: int = 0,
    status: str = "active",
    name: Optional[str] = None,
) -> TagRule:
    n = _next_id()
    rule = TagRule(
        name=name or f"Rule {n}",
        tag_id=tag.id,
        condition_type=condition_type,
        condition_field=condition_field,
        condition_operator=condition_operator,
        condition_value=condition_value,
        priority=priority,
        status=status,
    )
    return _save(session, rule)


# ---------------------------------------------------------------------------
# Cell groups and offerings
# ---------------------------------------------------------------------------


def create_cell_group(
    session: Session,
    *,
    name: Optional[str] = None,
    location: str = "Fellowship hall",
    status: str = "active",
) -> CellGroup:
    n = _next_id()
    group = CellGroup(name=name or f"Cell Group {n}", location=location, status=status)
    return _save(session, group)


def create_offering(
    session: Session,
    *,
    member: Member,
    amount: float = 1000.0,
    type: str = "tithe",
    method: str = "cash",
    on: Optional[date] = None,
    status: str = "active",
) -> Offering:
    offering = Offering(
        member_id=member.id,
        amount=amount,
        type=type,
        method=method,
        date=on or date(2026, 3, 1),
        status=status,
    )
    return _save(session, offering)


# ---------------------------------------------------------------------------
# Events and finance
# ---------------------------------------------------------------------------


def create_event(
    session: Session,
    *,
    title: Optional[str] = None,
    status: str = "published",
    capacity: int = 0,
    fee: float = 0.0,
    starts_in: timedelta = timedelta(days=7),
    registration_deadline: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> Event:
    n = _next_id()
    start = utcnow().replace(microsecond=0) + starts_in
    event = Event(
        title=title or f"Event {n}",
        start_date=start,
        end_date=end_date or start + timedelta(hours=2),
        location="Main sanctuary",
        capacity=capacity,
        fee=fee,
        registration_deadline=registration_deadline or start,
        status=status,
    )
    return _save(session, event)


def create_registration(
    session: Session,
    *,
    event: Event,
    member: Optional[Member] = None,
    status: str = "registered",
    checked_in_at: Optional[datetime] = None,
) -> EventRegistration:
    if member is None:
        member = create_member(session)
    registration = EventRegistration(
        event_id=event.id,
        member_id=member.id,
        status=status,
        payment_status="paid",
        checked_in_at=checked_in_at,
    )
    return _save(session, registration)


def create_transaction(
    session: Session,
    *,
    type: str = "income",
    amount: float = 100.0,
    category: str = "general",
    on: Optional[date] = None,
    status: str = "active",
) -> FinanceTransaction:
    transaction = FinanceTransaction(
        type=type,
        amount=amount,
        category=category,
        date=on or date(2026, 3, 1),
        status=status,
    )
    return _save(session, transaction)


# ---------------------------------------------------------------------------
# Token contexts (no database)
# ---------------------------------------------------------------------------


def make_context(role: str, **kwargs) -> UserContext:
    """A user context carrying the built-in permission set for ``role``."""
    kwargs.setdefault("permissions", list(LEGACY_ROLE_PERMISSIONS.get(role, [])))
    kwargs.setdefault("user_id", "user-1")
    kwargs.setdefault("email", f"{role}@example.org")
    return UserContext(role=role, **kwargs)

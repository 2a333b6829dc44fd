"""Account operations: sign-in, password change, token refresh, verification and invites."""

import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from churchadmin.core.config import get_settings
from churchadmin.core.errors import (
    AccountDisabled,
    InvalidCredentials,
    NotFound,
    ValidationFailed,
)
from churchadmin.core.rbac.checker import resolve_permissions
from churchadmin.core.rbac.context import UserContext
from churchadmin.core.rbac.permissions import invalid_permissions
from churchadmin.core.rbac.roles import LEGACY_ROLE_PERMISSIONS, READONLY
from churchadmin.core.security import (
    create_access_token,
    generate_temporary_password,
    dummy_verify_password,
    generate_token_urlsafe,
    get_password_hash,
    verify_password,
)
from churchadmin.core.validation import is_email, validate_password
from churchadmin.db.base import utcnow
from churchadmin.db.models import Member, Role, Setting, User
from churchadmin.db.session import commit_or_conflict
from churchadmin.services.notifications import EmailNotifier

logger = logging.getLogger(__name__)

USER_STATUSES = ("active", "pending", "disabled")


def load_role_table(db: Session) -> Dict[str, List[str]]:
    """Stored roles as name -> permission list."""
    return {role.name: list(role.permissions or []) for role in db.query(Role).all()}


def find_role(db: Session, name_or_id: str) -> Optional[Role]:
    return db.query(Role).filter(
        (Role.name == name_or_id) | (Role.id == name_or_id)
    ).first()


def build_context(db: Session, user: User, roles: Optional[Dict[str, List[str]]] = None) -> UserContext:
    """Resolve permissions and cell group for ``user`` into a token context."""
    if roles is None:
        roles = load_role_table(db)

    cell_group_id = None
    if user.member_id:
        member = db.get(Member, user.member_id)
        if member is not None and member.cell_group_id:
            cell_group_id = member.cell_group_id

    return UserContext(
        user_id=user.id,
        email=user.email,
        role=user.role,
        permissions=sorted(resolve_permissions(user, roles)),
        member_id=user.member_id,
        cell_group_id=cell_group_id,
        must_change_password=bool(user.must_change_password),
    )


def authenticate(db: Session, email: str, password: str) -> Tuple[str, User, UserContext]:
    """
    Check credentials and issue an access token.

    Raises:
        InvalidCredentials: unknown email or wrong password, indistinguishably
        AccountDisabled: credentials are right but the account is not active
    """
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        dummy_verify_password()
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt")
        raise InvalidCredentials()

    if user.status != "active":
        logger.info(f"Login refused for inactive account {user.id}")
        raise AccountDisabled()

    context = build_context(db, user)

    user.last_login = utcnow()
    commit_or_conflict(db)

    return create_access_token(context), user, context


def refresh_token(context: UserContext) -> str:
    """Re-issue a token from an already verified context.

    The permission snapshot is carried over unchanged; role edits made since
    the original sign-in take effect at the next login.
    """
    return create_access_token(context)


def change_password(db: Session, context: UserContext, current_password: str, new_password: str) -> User:
    user = db.get(User, context.user_id)
    if user is None:
        raise NotFound("User")

    if not verify_password(current_password, user.password_hash):
        raise InvalidCredentials("Current password is incorrect")

    validate_password(new_password, get_settings().min_password_length)

    user.password_hash = get_password_hash(new_password)
    user.must_change_password = False
    commit_or_conflict(db)
    logger.info(f"Password changed for user {user.id}")
    return user


def verify_email(db: Session, token: str) -> User:
    if not token:
        raise ValidationFailed({"token": "Verification token is required"})

    user = db.query(User).filter(User.verification_token == token).first()
    if user is None:
        raise ValidationFailed({"token": "Verification link is invalid or has expired"})

    user.email_verified = True
    user.verification_token = None
    user.verification_sent_at = utcnow()
    commit_or_conflict(db)
    return user


def resolve_role_name(db: Session, name_or_id: str) -> str:
    """Canonical name of a stored role, or a built-in name with no stored row."""
    role = find_role(db, name_or_id)
    if role is not None:
        return role.name
    if name_or_id in LEGACY_ROLE_PERMISSIONS:
        return name_or_id
    raise NotFound("Role")


def register_user(
    db: Session,
    email: str,
    password: str,
    member_id: str,
    role: str = READONLY,
) -> User:
    """Create an active, verified account for an existing member."""
    errors = {}
    if not email or not is_email(email):
        errors["email"] = "Invalid email format"
    if not password or len(password) < get_settings().min_password_length:
        errors["password"] = (
            f"Password must be at least {get_settings().min_password_length} characters"
        )
    if not member_id:
        errors["member_id"] = "Member ID is required"
    if errors:
        raise ValidationFailed(errors)

    if db.query(User).filter(User.email == email).first():
        raise ValidationFailed({"email": "Email is already registered"})
    if db.get(Member, member_id) is None:
        raise NotFound("Member")
    role = resolve_role_name(db, role)

    user = User(
        email=email,
        password_hash=get_password_hash(password),
        member_id=member_id,
        role=role,
        permission_overrides=[],
        status="active",
        must_change_password=False,
        email_verified=True,
    )
    db.add(user)
    commit_or_conflict(db)
    db.refresh(user)
    logger.info(f"Registered user {user.id} with role {role}")
    return user


def church_name(db: Session) -> str:
    setting = db.get(Setting, "church_name")
    if setting is not None and setting.value:
        return setting.value
    return get_settings().church_name


async def invite_user(
    db: Session,
    notifier: EmailNotifier,
    member_id: str,
    email: str,
    role: str,
) -> User:
    """
    Create a back-office account for a member and email them a temporary password.

    The account must change its password at first sign-in and starts
    unverified. A failed invite email is logged and does not undo the account.
    """
    if not member_id or not email or not role:
        raise ValidationFailed({
            key: f"{key} is required"
            for key, value in (("member_id", member_id), ("email", email), ("role", role))
            if not value
        })
    if not is_email(email):
        raise ValidationFailed({"email": "Invalid email format"})

    member = db.get(Member, member_id)
    if member is None:
        raise NotFound("Member")
    if db.query(User).filter(User.email == email).first():
        raise ValidationFailed({"email": "An account with this email already exists"})
    if db.query(User).filter(User.member_id == member_id).first():
        raise ValidationFailed({"member_id": "This member already has an account"})

    role = resolve_role_name(db, role)

    temp_password = generate_temporary_password()
    verification_token = generate_token_urlsafe()
    user = User(
        email=email,
        password_hash=get_password_hash(temp_password),
        member_id=member_id,
        role=role,
        permission_overrides=[],
        status="active",
        must_change_password=True,
        email_verified=False,
        verification_token=verification_token,
        verification_sent_at=utcnow(),
    )
    db.add(user)
    commit_or_conflict(db)
    db.refresh(user)

    sent = await notifier.send_user_invite(
        to_email=email,
        member_name=member.name,
        temp_password=temp_password,
        verification_token=verification_token,
        church_name=church_name(db),
    )
    if not sent:
        logger.warning(f"Invite email for user {user.id} was not delivered")
    return user


async def resend_verification(db: Session, notifier: EmailNotifier, user_id: str) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User")
    if user.email_verified:
        raise ValidationFailed({"email": "This account is already verified"})

    user.verification_token = generate_token_urlsafe()
    user.verification_sent_at = utcnow()
    commit_or_conflict(db)

    sent = await notifier.send_verification_email(
        to_email=user.email,
        verification_token=user.verification_token,
        church_name=church_name(db),
    )
    if not sent:
        logger.warning(f"Verification email for user {user.id} was not delivered")
    return user


def update_user(
    db: Session,
    user_id: str,
    role: Optional[str] = None,
    permission_overrides: Optional[List[str]] = None,
    status: Optional[str] = None,
) -> User:
    """Admin edit of an account's role, overrides or status."""
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User")

    if role:
        user.role = resolve_role_name(db, role)

    if permission_overrides is not None:
        invalid = invalid_permissions(permission_overrides)
        if invalid:
            raise ValidationFailed(
                {"permission_overrides": f"Unknown permissions: {', '.join(invalid)}"}
            )
        user.permission_overrides = list(permission_overrides)

    if status:
        if status not in USER_STATUSES:
            raise ValidationFailed(
                {"status": f"Status must be one of: {', '.join(USER_STATUSES)}"}
            )
        user.status = status

    commit_or_conflict(db)
    return user

"""Back-office account administration."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from churchadmin.api.deps import get_db, get_current_user
from churchadmin.api.schemas.users import UserInvite, UserUpdate
from churchadmin.core import accounts
from churchadmin.core.rbac import UserContext, require_permission
from churchadmin.db.models import Member, Role, User
from churchadmin.services.notifications import EmailNotifier, get_notifier

router = APIRouter(prefix="/users", tags=["users"])


def _user_summary(user: User, member: Member = None, role_ids: dict = None) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "role_id": (role_ids or {}).get(user.role, ""),
        "status": user.status,
        "must_change_password": user.must_change_password,
        "email_verified": user.email_verified,
        "permission_overrides": list(user.permission_overrides or []),
        "last_login": user.last_login,
        "member": {
            "id": member.id,
            "name": member.name,
            "email": member.email,
            "phone": member.phone,
        } if member else None,
    }


@router.get("")
@require_permission("roles:manage")
async def list_users(
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    users = db.query(User).order_by(User.email).all()
    member_ids = [u.member_id for u in users if u.member_id]
    members = {
        m.id: m for m in db.query(Member).filter(Member.id.in_(member_ids)).all()
    } if member_ids else {}
    roles = db.query(Role).order_by(Role.name).all()
    role_ids = {r.name: r.id for r in roles}

    return {
        "users": [_user_summary(u, members.get(u.member_id), role_ids) for u in users],
        "roles": [
            {"id": r.id, "name": r.name, "is_system_role": r.is_system_role}
            for r in roles
        ],
    }


@router.post("", status_code=status.HTTP_201_CREATED)
@require_permission("users:invite")
async def invite_user(
    invite: UserInvite,
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
    current_user: UserContext = Depends(get_current_user),
):
    """Create an account for a member and email them a temporary password."""
    user = await accounts.invite_user(
        db, notifier, member_id=invite.member_id, email=invite.email, role=invite.role
    )
    return {
        "message": "Account created and invitation sent",
        "user": {"id": user.id, "email": user.email, "role": user.role},
    }


@router.put("/{user_id}")
@require_permission("roles:manage")
async def update_user(
    user_id: str,
    changes: UserUpdate,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    user = accounts.update_user(
        db,
        user_id,
        role=changes.role,
        permission_overrides=changes.permission_overrides,
        status=changes.status,
    )
    member = db.get(Member, user.member_id) if user.member_id else None
    return {"message": "Account updated", "user": _user_summary(user, member)}


@router.post("/{user_id}/resend-verification")
@require_permission("users:invite")
async def resend_verification(
    user_id: str,
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
    current_user: UserContext = Depends(get_current_user),
):
    await accounts.resend_verification(db, notifier, user_id)
    return {"message": "Verification email sent"}

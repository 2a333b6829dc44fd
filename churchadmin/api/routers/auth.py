from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from churchadmin.api.deps import get_db, get_current_user
from churchadmin.api.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    MeResponse,
    MemberSummary,
    RegisterRequest,
    Token,
    UserInfo,
)
from churchadmin.core import accounts
from churchadmin.core.errors import NotFound, ValidationFailed
from churchadmin.core.rbac import UserContext, require_role
from churchadmin.core.validation import is_email
from churchadmin.db.models import Member, User

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email and password for a 30-minute access token."""
    if not credentials.email or not credentials.password:
        raise ValidationFailed({"email": "Email and password are required"})
    if not is_email(credentials.email):
        raise ValidationFailed({"email": "Invalid email format"})

    token, user, context = accounts.authenticate(db, credentials.email, credentials.password)
    return LoginResponse(
        access_token=token,
        user=UserInfo(
            id=user.id,
            email=user.email,
            role=user.role,
            member_id=user.member_id,
            permissions=context.permissions,
            must_change_password=user.must_change_password,
            email_verified=user.email_verified,
        ),
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
@require_role("admin")
async def register(
    user_in: RegisterRequest,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    """Create an active account for an existing member."""
    user = accounts.register_user(
        db,
        email=user_in.email,
        password=user_in.password,
        member_id=user_in.member_id,
        role=user_in.role,
    )
    return {
        "message": "User registered",
        "user": {"id": user.id, "email": user.email, "role": user.role},
    }


@router.get("/me", response_model=MeResponse)
def get_me(
    current_user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Current account, with the permission snapshot from the token."""
    user = db.get(User, current_user.user_id)
    if user is None:
        raise NotFound("User")

    member = db.get(Member, user.member_id) if user.member_id else None
    return MeResponse(
        id=user.id,
        email=user.email,
        role=user.role,
        member_id=user.member_id,
        permissions=current_user.permissions,
        must_change_password=user.must_change_password,
        email_verified=user.email_verified,
        status=user.status,
        cell_group_id=current_user.cell_group_id,
        last_login=user.last_login,
        member=MemberSummary(
            id=member.id, name=member.name, email=member.email, phone=member.phone
        ) if member else None,
    )


@router.post("/change-password")
def change_password(
    body: ChangePasswordRequest,
    current_user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    accounts.change_password(db, current_user, body.current_password, body.new_password)
    return {"message": "Password updated"}


@router.post("/refresh", response_model=Token)
def refresh(current_user: UserContext = Depends(get_current_user)):
    """New token with the same permission snapshot; no password check."""
    return Token(access_token=accounts.refresh_token(current_user))


@router.get("/verify/{token}")
def verify_email(token: str, db: Session = Depends(get_db)):
    accounts.verify_email(db, token)
    return {"message": "Email verified"}

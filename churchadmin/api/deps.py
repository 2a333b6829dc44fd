from typing import Generator, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from churchadmin.core.errors import AuthenticationFailed
from churchadmin.core.rbac.context import UserContext
from churchadmin.core.security import decode_token
from churchadmin.db.session import SessionLocal

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_db() -> Generator:
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(token: Optional[str] = Depends(oauth2_scheme)) -> UserContext:
    """Verify the bearer token and return its user context.

    Permissions come from the token snapshot; nothing is re-read from the
    database per request.
    """
    if not token:
        raise AuthenticationFailed("Authentication required")
    return decode_token(token)


def get_optional_user(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[UserContext]:
    """The caller's context on public routes, or None when no token is sent.

    A token that is sent but invalid is still rejected.
    """
    if not token:
        return None
    return decode_token(token)

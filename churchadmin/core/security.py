from datetime import datetime, timedelta, timezone
from typing import Optional
import logging
import secrets

from jose import JWTError, jwt
from passlib.context import CryptContext

from churchadmin.core.config import get_settings
from churchadmin.core.errors import AuthenticationFailed
from churchadmin.core.rbac.context import UserContext

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a password against its hash."""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Unrecognized hash format
        return False


def dummy_verify_password() -> None:
    """Spend the time of one hash check, for sign-ins with no matching account."""
    pwd_context.dummy_verify()


def get_password_hash(password: str) -> str:
    """Generate password hash."""
    return pwd_context.hash(password)


def generate_token_urlsafe(nbytes: int = 32) -> str:
    """Random URL-safe token for email verification links."""
    return secrets.token_urlsafe(nbytes)


def generate_temporary_password(length: int = 12) -> str:
    """Random password handed out with an invite."""
    alphabet = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnpqrstuvwxyz23456789"
    return "".join(secrets.choice(alphabet) for _ in range(length))


def create_access_token(
    context: UserContext,
    expires_delta: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> str:
    """Create a signed JWT carrying the user's identity and permission snapshot."""
    settings = get_settings()
    issued = now or datetime.now(timezone.utc)
    if expires_delta:
        expire = issued + expires_delta
    else:
        expire = issued + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode = context.to_claims()
    to_encode.update({
        "iat": issued,
        "exp": expire,
        "type": "access",
    })
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_token(token: str) -> UserContext:
    """Decode and validate a JWT.

    Raises:
        AuthenticationFailed: for any bad, forged or expired token
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as e:
        # ExpiredSignatureError is a JWTError too
        logger.debug("Token rejected: %s", e)
        raise AuthenticationFailed()

    if payload.get("type") != "access" or not payload.get("sub"):
        raise AuthenticationFailed()

    return UserContext.from_claims(payload)

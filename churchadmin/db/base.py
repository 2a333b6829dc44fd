import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def generate_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp for DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

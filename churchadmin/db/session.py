from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from churchadmin.core.config import get_settings
from churchadmin.core.errors import ConflictError

settings = get_settings()

engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
    connect_args={"check_same_thread": False} if settings.database_url.startswith("sqlite") else {},
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def commit_or_conflict(db: Session) -> None:
    """Commit, turning a lost optimistic-concurrency race into ConflictError."""
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        raise ConflictError()

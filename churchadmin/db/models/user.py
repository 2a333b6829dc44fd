from sqlalchemy import Column, String, DateTime, Boolean, Integer, JSON

from churchadmin.db.base import Base, generate_id, utcnow


class User(Base):
    """Back-office account. Never hard-deleted; disabled through ``status``."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(100), nullable=False, default="readonly")
    permission_overrides = Column(JSON, nullable=False, default=list)
    member_id = Column(String(36), unique=True, nullable=True, index=True)
    status = Column(String(20), nullable=False, default="active")
    must_change_password = Column(Boolean, nullable=False, default=False)
    email_verified = Column(Boolean, nullable=False, default=False)
    verification_token = Column(String(255), nullable=True, index=True)
    verification_sent_at = Column(DateTime, nullable=True)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "password_hash": self.password_hash,
            "role": self.role,
            "permission_overrides": list(self.permission_overrides or []),
            "member_id": self.member_id,
            "status": self.status,
            "must_change_password": self.must_change_password,
            "email_verified": self.email_verified,
            "verification_token": self.verification_token,
            "last_login": self.last_login,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "version": self.version,
        }

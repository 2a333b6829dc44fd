from sqlalchemy import Column, String, DateTime, Date, Integer, Text
from sqlalchemy.orm import validates

from churchadmin.core.validation import normalize_faith_status
from churchadmin.db.base import Base, generate_id, utcnow


class Member(Base):
    """A person known to the church. Soft-deleted through ``status``."""

    __tablename__ = "members"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    gender = Column(String(20), nullable=True)
    birthday = Column(Date, nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    address = Column(String(1000), nullable=True)
    join_date = Column(Date, nullable=True)
    baptism_date = Column(Date, nullable=True)
    faith_status = Column(String(20), nullable=False, default="newcomer")
    family_id = Column(String(36), nullable=True)
    cell_group_id = Column(String(36), nullable=True, index=True)
    status = Column(String(20), nullable=False, default="active", index=True)
    tags = Column(Text, nullable=False, default="")
    health_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __init__(self, **kwargs):
        kwargs.setdefault("faith_status", None)
        super().__init__(**kwargs)

    @validates("faith_status")
    def _normalize_faith_status(self, key, value):
        return normalize_faith_status(value)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "gender": self.gender or "",
            "birthday": self.birthday,
            "phone": self.phone or "",
            "email": self.email or "",
            "address": self.address or "",
            "join_date": self.join_date,
            "baptism_date": self.baptism_date,
            "faith_status": self.faith_status,
            "family_id": self.family_id or "",
            "cell_group_id": self.cell_group_id or "",
            "status": self.status,
            "tags": self.tags or "",
            "health_notes": self.health_notes or "",
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "version": self.version,
        }

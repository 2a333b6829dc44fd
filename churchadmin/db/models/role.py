from sqlalchemy import Column, String, DateTime, JSON, Boolean, Integer, Text

from churchadmin.db.base import Base, generate_id, utcnow


class Role(Base):
    __tablename__ = "roles"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    permissions = Column(JSON, nullable=False, default=list)
    is_system_role = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description or "",
            "permissions": list(self.permissions or []),
            "is_system_role": self.is_system_role,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "version": self.version,
        }

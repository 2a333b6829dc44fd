from sqlalchemy import Column, String, DateTime, Integer, Text, ForeignKey

from churchadmin.db.base import Base, generate_id, utcnow


class Tag(Base):
    __tablename__ = "tags"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(100), nullable=False)
    category = Column(String(50), nullable=False, default="general")
    color = Column(String(20), nullable=False, default="#3b82f6")
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "color": self.color,
            "description": self.description or "",
            "status": self.status,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class TagRule(Base):
    """Auto-tag rule. Evaluated by ``churchadmin.core.tagging``."""

    __tablename__ = "tag_rules"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    tag_id = Column(String(36), ForeignKey("tags.id"), nullable=False, index=True)
    condition_type = Column(String(20), nullable=False)
    condition_field = Column(String(100), nullable=False, default="")
    condition_operator = Column(String(20), nullable=False, default="equals")
    condition_value = Column(String(255), nullable=False, default="")
    priority = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "tag_id": self.tag_id,
            "condition_type": self.condition_type,
            "condition_field": self.condition_field,
            "condition_operator": self.condition_operator,
            "condition_value": self.condition_value,
            "priority": self.priority,
            "status": self.status,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

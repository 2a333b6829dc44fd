from sqlalchemy import Column, String, DateTime, Integer

from churchadmin.db.base import Base, generate_id, utcnow


class CellGroup(Base):
    __tablename__ = "cell_groups"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    leader_id = Column(String(36), nullable=True)
    co_leaders = Column(String(1000), nullable=False, default="")
    meeting_time = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "leader_id": self.leader_id or "",
            "co_leaders": self.co_leaders or "",
            "meeting_time": self.meeting_time or "",
            "location": self.location or "",
            "status": self.status,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

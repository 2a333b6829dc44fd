from sqlalchemy import Column, String, DateTime, Date, Float, Integer, Text

from churchadmin.db.base import Base, generate_id, utcnow


class Offering(Base):
    __tablename__ = "offerings"

    id = Column(String(36), primary_key=True, default=generate_id)
    member_id = Column(String(36), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    type = Column(String(20), nullable=False)
    method = Column(String(20), nullable=False)
    date = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "member_id": self.member_id,
            "amount": self.amount,
            "type": self.type,
            "method": self.method,
            "date": self.date,
            "notes": self.notes or "",
            "status": self.status,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

from sqlalchemy import Column, String, DateTime, Float, Integer, Text

from churchadmin.db.base import Base, generate_id, utcnow


class Event(Base):
    """A church event. ``capacity`` 0 means no seat limit."""

    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=generate_id)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)
    location = Column(String(255), nullable=False)
    capacity = Column(Integer, nullable=False, default=0)
    fee = Column(Float, nullable=False, default=0.0)
    registration_deadline = Column(DateTime, nullable=True)
    qr_code = Column(String(36), nullable=False, default=generate_id)
    status = Column(String(20), nullable=False, default="draft", index=True)
    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description or "",
            "start_date": self.start_date,
            "end_date": self.end_date,
            "location": self.location,
            "capacity": self.capacity or 0,
            "fee": self.fee or 0.0,
            "registration_deadline": self.registration_deadline,
            "qr_code": self.qr_code,
            "status": self.status,
            "created_by": self.created_by or "",
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class EventRegistration(Base):
    __tablename__ = "event_registrations"

    id = Column(String(36), primary_key=True, default=generate_id)
    event_id = Column(String(36), nullable=False, index=True)
    member_id = Column(String(36), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="registered")
    payment_status = Column(String(20), nullable=False, default="paid")
    checked_in_at = Column(DateTime, nullable=True)
    registered_at = Column(DateTime, default=utcnow)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "event_id": self.event_id,
            "member_id": self.member_id,
            "status": self.status,
            "payment_status": self.payment_status,
            "checked_in_at": self.checked_in_at,
            "registered_at": self.registered_at,
        }

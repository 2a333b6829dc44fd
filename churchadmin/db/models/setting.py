from sqlalchemy import Column, String, DateTime, Text

from churchadmin.db.base import Base, utcnow


class Setting(Base):
    """Site setting stored as a key/value pair."""

    __tablename__ = "settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False, default="")
    updated_by = Column(String(255), nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

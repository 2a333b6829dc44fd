from sqlalchemy import Column, String, DateTime, Date, Float, Integer, Text

from churchadmin.db.base import Base, generate_id, utcnow


class FinanceTransaction(Base):
    """Church income or expense, separate from member offerings."""

    __tablename__ = "finance_transactions"

    id = Column(String(36), primary_key=True, default=generate_id)
    type = Column(String(20), nullable=False, index=True)
    category = Column(String(100), nullable=False, default="")
    amount = Column(Float, nullable=False)
    date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
    receipt_url = Column(String(1000), nullable=True)
    approved_by = Column(String(255), nullable=True)
    created_by = Column(String(36), nullable=True)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "category": self.category or "",
            "amount": self.amount,
            "date": self.date,
            "description": self.description or "",
            "receipt_url": self.receipt_url or "",
            "approved_by": self.approved_by or "",
            "created_by": self.created_by or "",
            "status": self.status,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

import datetime as dt
from typing import Optional

from pydantic import BaseModel


class TransactionCreate(BaseModel):
    type: Optional[str] = None
    category: str = ""
    amount: Optional[float] = None
    date: Optional[dt.date] = None
    description: str = ""
    receipt_url: str = ""
    approved_by: str = ""


class TransactionUpdate(BaseModel):
    type: Optional[str] = None
    category: Optional[str] = None
    amount: Optional[float] = None
    date: Optional[dt.date] = None
    description: Optional[str] = None
    receipt_url: Optional[str] = None
    approved_by: Optional[str] = None

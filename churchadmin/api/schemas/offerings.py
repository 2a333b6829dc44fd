import datetime as dt
from typing import Optional

from pydantic import BaseModel


class OfferingCreate(BaseModel):
    member_id: Optional[str] = None
    amount: Optional[float] = None
    type: Optional[str] = None
    method: Optional[str] = None
    date: Optional[dt.date] = None
    notes: str = ""


class OfferingUpdate(BaseModel):
    member_id: Optional[str] = None
    amount: Optional[float] = None
    type: Optional[str] = None
    method: Optional[str] = None
    date: Optional[dt.date] = None
    notes: Optional[str] = None

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class EventCreate(BaseModel):
    title: Optional[str] = None
    description: str = ""
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    location: Optional[str] = None
    capacity: int = 0
    fee: float = 0.0
    registration_deadline: Optional[datetime] = None
    status: str = "draft"


class EventUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    location: Optional[str] = None
    capacity: Optional[int] = None
    fee: Optional[float] = None
    registration_deadline: Optional[datetime] = None
    status: Optional[str] = None


class PublicRegistration(BaseModel):
    name: str = ""
    phone: str = ""
    email: Optional[str] = None


class CheckInRequest(BaseModel):
    registration_id: Optional[str] = None
    qr_data: Optional[str] = Field(None, description='Scanned JSON payload, {"registration_id": ...}')

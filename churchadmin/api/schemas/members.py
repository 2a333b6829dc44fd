from datetime import date
from typing import Optional

from pydantic import BaseModel


class MemberBase(BaseModel):
    name: Optional[str] = None
    gender: Optional[str] = None
    birthday: Optional[date] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    join_date: Optional[date] = None
    baptism_date: Optional[date] = None
    faith_status: Optional[str] = None
    family_id: Optional[str] = None
    cell_group_id: Optional[str] = None
    tags: Optional[str] = None
    health_notes: Optional[str] = None


class MemberCreate(MemberBase):
    pass


class MemberUpdate(MemberBase):
    status: Optional[str] = None
    # Version the client last read; a mismatch is rejected with 409
    version: Optional[int] = None

from typing import Optional

from pydantic import BaseModel


class CellGroupCreate(BaseModel):
    name: Optional[str] = None
    leader_id: Optional[str] = None
    co_leaders: str = ""
    meeting_time: Optional[str] = None
    location: Optional[str] = None
    status: str = "active"


class CellGroupUpdate(BaseModel):
    name: Optional[str] = None
    leader_id: Optional[str] = None
    co_leaders: Optional[str] = None
    meeting_time: Optional[str] = None
    location: Optional[str] = None
    status: Optional[str] = None

from typing import List, Optional

from pydantic import BaseModel


class UserInvite(BaseModel):
    member_id: str
    email: str
    role: str


class UserUpdate(BaseModel):
    role: Optional[str] = None
    permission_overrides: Optional[List[str]] = None
    status: Optional[str] = None

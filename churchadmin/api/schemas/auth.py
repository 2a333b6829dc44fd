from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class LoginRequest(BaseModel):
    email: str
    password: str


class RegisterRequest(BaseModel):
    email: str
    password: str
    member_id: str
    role: str = "readonly"


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserInfo(BaseModel):
    id: str
    email: str
    role: str
    member_id: Optional[str] = None
    permissions: List[str] = []
    must_change_password: bool = False
    email_verified: bool = False


class LoginResponse(Token):
    user: UserInfo


class MemberSummary(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class MeResponse(UserInfo):
    status: str
    cell_group_id: Optional[str] = None
    last_login: Optional[datetime] = None
    member: Optional[MemberSummary] = None

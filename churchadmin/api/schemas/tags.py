from typing import Optional

from pydantic import BaseModel


class TagCreate(BaseModel):
    name: Optional[str] = None
    category: str = "general"
    color: str = "#3b82f6"
    description: str = ""


class TagUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    color: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None


class TagRuleCreate(BaseModel):
    name: Optional[str] = None
    tag_id: str
    condition_type: str
    condition_field: str = ""
    condition_operator: str = "equals"
    condition_value: str = ""
    priority: int = 0
    status: str = "active"


class TagRuleUpdate(BaseModel):
    name: Optional[str] = None
    tag_id: Optional[str] = None
    condition_type: Optional[str] = None
    condition_field: Optional[str] = None
    condition_operator: Optional[str] = None
    condition_value: Optional[str] = None
    priority: Optional[int] = None
    status: Optional[str] = None

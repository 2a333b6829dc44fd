"""Database models for Church Admin."""

from churchadmin.db.models.user import User
from churchadmin.db.models.role import Role
from churchadmin.db.models.member import Member
from churchadmin.db.models.tag import Tag, TagRule
from churchadmin.db.models.cell_group import CellGroup
from churchadmin.db.models.offering import Offering
from churchadmin.db.models.event import Event, EventRegistration
from churchadmin.db.models.finance import FinanceTransaction
from churchadmin.db.models.setting import Setting

__all__ = [
    "User",
    "Role",
    "Member",
    "Tag",
    "TagRule",
    "CellGroup",
    "Offering",
    "Event",
    "EventRegistration",
    "FinanceTransaction",
    "Setting",
]

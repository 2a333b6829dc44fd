"""The authenticated caller as seen by guards, filters and routers."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class UserContext:
    """Identity plus the permission snapshot taken when the token was issued."""

    user_id: str
    email: str
    role: str
    permissions: List[str] = field(default_factory=list)
    member_id: Optional[str] = None
    cell_group_id: Optional[str] = None
    must_change_password: bool = False

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "UserContext":
        return cls(
            user_id=claims["sub"],
            email=claims.get("email") or "",
            role=claims.get("role") or "",
            permissions=list(claims.get("permissions") or []),
            member_id=claims.get("member_id"),
            cell_group_id=claims.get("cell_group_id"),
            must_change_password=bool(claims.get("must_change_password", False)),
        )

    def to_claims(self) -> Dict[str, Any]:
        return {
            "sub": self.user_id,
            "member_id": self.member_id,
            "email": self.email,
            "role": self.role,
            "permissions": list(self.permissions),
            "must_change_password": self.must_change_password,
            "cell_group_id": self.cell_group_id,
        }

"""Tag, auto-tag rule and rule application endpoints.

Rule routes are declared before ``/{tag_id}`` so ``/tags/rules`` is not
captured as a tag id.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from churchadmin.api.deps import get_db, get_current_user
from churchadmin.api.schemas.tags import TagCreate, TagRuleCreate, TagRuleUpdate, TagUpdate
from churchadmin.core.errors import NotFound, ValidationFailed
from churchadmin.core.rbac import UserContext, require_member_access, require_permission
from churchadmin.core.tagging import ConditionOperator, ConditionType, RuleStatus, apply_auto_tags
from churchadmin.core.validation import sanitize_dict
from churchadmin.db.models import Member, Tag, TagRule
from churchadmin.db.session import commit_or_conflict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tags", tags=["tags"])

TAG_STATUSES = ("active", "deleted")
CONDITION_TYPES = [t.value for t in ConditionType]
CONDITION_OPERATORS = [o.value for o in ConditionOperator]
RULE_STATUSES = [s.value for s in RuleStatus]


def _get_tag(db: Session, tag_id: str) -> Tag:
    tag = db.get(Tag, tag_id)
    if tag is None:
        raise NotFound("Tag")
    return tag


def _get_rule(db: Session, rule_id: str) -> TagRule:
    rule = db.get(TagRule, rule_id)
    if rule is None:
        raise NotFound("Tag rule")
    return rule


def _validate_rule_fields(data: dict) -> None:
    errors = {}
    if "name" in data and not (data["name"] or "").strip():
        errors["name"] = "Rule name is required"
    if data.get("condition_type") is not None and data["condition_type"] not in CONDITION_TYPES:
        errors["condition_type"] = f"Condition type must be one of: {', '.join(CONDITION_TYPES)}"
    if data.get("condition_operator") is not None and data["condition_operator"] not in CONDITION_OPERATORS:
        errors["condition_operator"] = (
            f"Operator must be one of: {', '.join(CONDITION_OPERATORS)}"
        )
    if data.get("status") is not None and data["status"] not in RULE_STATUSES:
        errors["status"] = f"Status must be one of: {', '.join(RULE_STATUSES)}"
    if errors:
        raise ValidationFailed(errors)


def _require_live_tag(db: Session, tag_id: str) -> Tag:
    tag = db.get(Tag, tag_id)
    if tag is None or tag.status == "deleted":
        raise NotFound("Tag")
    return tag


# --- rules ---

@router.get("/rules")
@require_permission("members:read")
async def list_rules(
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    """Rules in evaluation order (ascending priority)."""
    query = db.query(TagRule)
    if status_filter:
        query = query.filter(TagRule.status == status_filter)
    else:
        query = query.filter(TagRule.status != "deleted")

    rules = [r.to_dict() for r in query.order_by(TagRule.priority, TagRule.created_at).all()]
    return {"rules": rules, "total": len(rules)}


@router.post("/rules", status_code=status.HTTP_201_CREATED)
@require_permission("members:update")
async def create_rule(
    rule_in: TagRuleCreate,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    data = sanitize_dict(rule_in.model_dump())
    data["name"] = data.get("name") or ""
    _validate_rule_fields(data)
    _require_live_tag(db, data["tag_id"])

    rule = TagRule(**data)
    db.add(rule)
    commit_or_conflict(db)
    db.refresh(rule)
    return {"message": "Tag rule created", "rule": rule.to_dict()}


@router.put("/rules/{rule_id}")
@require_permission("members:update")
async def update_rule(
    rule_id: str,
    rule_in: TagRuleUpdate,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    rule = _get_rule(db, rule_id)
    data = sanitize_dict(rule_in.model_dump(exclude_unset=True, exclude_none=True))
    _validate_rule_fields(data)
    if "tag_id" in data:
        _require_live_tag(db, data["tag_id"])

    for key, value in data.items():
        setattr(rule, key, value)
    commit_or_conflict(db)
    db.refresh(rule)
    return {"message": "Tag rule updated", "rule": rule.to_dict()}


@router.delete("/rules/{rule_id}")
@require_permission("members:delete")
async def delete_rule(
    rule_id: str,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    rule = _get_rule(db, rule_id)
    rule.status = "deleted"
    commit_or_conflict(db)
    return {"message": "Tag rule deleted"}


# --- apply ---

@router.post("/apply/{member_id}")
@require_permission("members:update")
async def apply_tags(
    member_id: str,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    """Run every active rule against one member and store the resulting tags."""
    member = db.get(Member, member_id)
    if member is None:
        raise NotFound("Member")
    require_member_access(current_user, member)

    result = apply_auto_tags(member, db.query(TagRule).all(), db.query(Tag).all())
    for warning in result.warnings:
        logger.warning(f"Auto-tag member {member_id}: {warning}")

    member.tags = result.joined
    commit_or_conflict(db)

    return {"message": "Auto-tagging complete", **result.to_dict()}


# --- tags ---

@router.get("")
@require_permission("members:read")
async def list_tags(
    category: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    query = db.query(Tag)
    if category:
        query = query.filter(Tag.category == category)
    if status_filter:
        query = query.filter(Tag.status == status_filter)
    else:
        query = query.filter(Tag.status != "deleted")

    tags = [t.to_dict() for t in query.order_by(Tag.name).all()]
    return {"tags": tags, "total": len(tags)}


@router.post("", status_code=status.HTTP_201_CREATED)
@require_permission("members:update")
async def create_tag(
    tag_in: TagCreate,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    data = sanitize_dict(tag_in.model_dump())
    if not data.get("name"):
        raise ValidationFailed({"name": "Tag name is required"})

    tag = Tag(
        name=data["name"],
        category=data.get("category") or "general",
        color=data.get("color") or "#3b82f6",
        description=data.get("description") or "",
        status="active",
    )
    db.add(tag)
    commit_or_conflict(db)
    db.refresh(tag)
    return {"message": "Tag created", "tag": tag.to_dict()}


@router.get("/{tag_id}")
@require_permission("members:read")
async def get_tag(
    tag_id: str,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    return {"tag": _get_tag(db, tag_id).to_dict()}


@router.put("/{tag_id}")
@require_permission("members:update")
async def update_tag(
    tag_id: str,
    tag_in: TagUpdate,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    tag = _get_tag(db, tag_id)
    data = sanitize_dict(tag_in.model_dump(exclude_unset=True, exclude_none=True))
    if "name" in data and not data["name"]:
        raise ValidationFailed({"name": "Tag name is required"})
    if "status" in data and data["status"] not in TAG_STATUSES:
        raise ValidationFailed({"status": f"Status must be one of: {', '.join(TAG_STATUSES)}"})

    for key, value in data.items():
        setattr(tag, key, value)
    commit_or_conflict(db)
    db.refresh(tag)
    return {"message": "Tag updated", "tag": tag.to_dict()}


@router.delete("/{tag_id}")
@require_permission("members:delete")
async def delete_tag(
    tag_id: str,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    tag = _get_tag(db, tag_id)
    tag.status = "deleted"
    commit_or_conflict(db)
    return {"message": "Tag deleted"}

"""Auto-tag evaluation engine for Church Admin.

Computes the tag set a member should carry after applying every active
auto-tag rule. The engine is pure: it reads the member, rules and tags it
is given and returns a result. Persisting the tags and logging warnings is
the caller's job.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from churchadmin.core.rbac.checker import get_field
from .rules import AutoTagRule, evaluate_rule, to_number


DELETED = "deleted"


def parse_tag_ids(value: Optional[str]) -> List[str]:
    """Split a comma-joined tag list, dropping empty segments, keeping order."""
    if not value:
        return []
    seen = []
    for part in str(value).split(","):
        part = part.strip()
        if part and part not in seen:
            seen.append(part)
    return seen


def join_tag_ids(tag_ids: Iterable[str]) -> str:
    return ",".join(tag_ids)


@dataclass
class TagEvaluation:
    """Result of applying auto-tag rules to one member."""
    tag_ids: List[str] = field(default_factory=list)
    matched_rules: List[str] = field(default_factory=list)
    skipped_rules: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def tag_set(self) -> frozenset:
        return frozenset(self.tag_ids)

    @property
    def joined(self) -> str:
        """Tag ids in the comma-joined form stored on the member."""
        return join_tag_ids(self.tag_ids)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "applied_tags": list(self.tag_ids),
            "matched_rules": list(self.matched_rules),
            "skipped_rules": list(self.skipped_rules),
            "warnings": list(self.warnings),
        }


def _priority(rule: AutoTagRule) -> float:
    value = to_number(rule.priority)
    # NaN sorts unpredictably; non-numeric priority behaves as 0
    return 0.0 if value != value else value


def apply_auto_tags(
    member,
    rules: Iterable[Any],
    tags: Iterable[Any],
    now: Optional[datetime] = None,
) -> TagEvaluation:
    """
    Apply auto-tag rules to a member.

    Args:
        member: Member attributes (mapping or model instance); its ``tags``
            field seeds the result
        rules: TagRule rows, mappings or AutoTagRule instances
        tags: Tag rows or mappings; deleted tags count as missing
        now: Reference time for date rules, defaults to the current UTC time

    Returns:
        TagEvaluation whose ``tag_ids`` is a superset of the member's
        current tags, in first-added order
    """
    if now is None:
        now = datetime.now(timezone.utc)

    existing_tags = {
        str(get_field(tag, "id"))
        for tag in tags
        if get_field(tag, "status") != DELETED
    }

    result = TagEvaluation(tag_ids=parse_tag_ids(get_field(member, "tags")))

    parsed = [r if isinstance(r, AutoTagRule) else AutoTagRule.from_record(r) for r in rules]
    # sorted() is stable, so equal priorities keep their input order
    active = sorted((r for r in parsed if r.is_active), key=_priority)

    for rule in active:
        if rule.tag_id not in existing_tags:
            result.skipped_rules.append(rule.id)
            result.warnings.append(f"Rule {rule.id}: tag {rule.tag_id} does not exist")
            continue

        matched, warning = evaluate_rule(rule, member, now)
        if warning:
            result.warnings.append(warning)
        if not matched:
            continue

        result.matched_rules.append(rule.id)
        if rule.tag_id not in result.tag_ids:
            result.tag_ids.append(rule.tag_id)

    return result

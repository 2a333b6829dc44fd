"""Auto-tag rule definitions for Church Admin.

A rule is a single predicate over one member attribute. When it holds,
the rule's tag is added to the member. Rules never remove tags.
"""

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from churchadmin.core.rbac.checker import get_field


class ConditionType(str, Enum):
    """What kind of attribute a rule inspects."""

    FIELD = "field"   # Compare the raw attribute value
    DATE = "date"     # Compare whole days elapsed since the attribute's date


class ConditionOperator(str, Enum):
    """Operators for rule comparisons."""

    EQUALS = "equals"
    CONTAINS = "contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"


class RuleStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DELETED = "deleted"


@dataclass
class AutoTagRule:
    """
    A single auto-tag rule.

    Type and operator are kept as the stored strings so an unknown value
    simply fails to match instead of failing to load.
    """
    id: str
    tag_id: str
    condition_type: str
    condition_field: str = ""
    condition_operator: str = ConditionOperator.EQUALS.value
    condition_value: str = ""
    priority: int = 0
    status: str = RuleStatus.ACTIVE.value
    name: str = ""

    @property
    def is_active(self) -> bool:
        return self.status == RuleStatus.ACTIVE.value

    @classmethod
    def from_record(cls, record) -> "AutoTagRule":
        """Create a rule from a TagRule row or a plain mapping."""
        return cls(
            id=str(get_field(record, "id", "")),
            tag_id=str(get_field(record, "tag_id", "") or ""),
            condition_type=get_field(record, "condition_type", "") or "",
            condition_field=get_field(record, "condition_field", "") or "",
            condition_operator=get_field(record, "condition_operator", "") or "",
            condition_value=_as_text(get_field(record, "condition_value", "")),
            priority=get_field(record, "priority", 0) or 0,
            status=get_field(record, "status", RuleStatus.ACTIVE.value) or "",
            name=get_field(record, "name", "") or "",
        )


_DECIMAL = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_PREFIXED = re.compile(r"^0([xXoObB])([0-9a-fA-F]+)$")
_RADIX = {"x": 16, "o": 8, "b": 2}


def to_number(value: Any) -> float:
    """
    Numeric conversion with JavaScript ``Number()`` semantics.

    Blank text is 0; text that is not a complete number is NaN.
    """
    if value is None:
        return math.nan
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).strip()
    if not text:
        return 0.0
    if _DECIMAL.match(text):
        return float(text)
    if text in ("Infinity", "+Infinity"):
        return math.inf
    if text == "-Infinity":
        return -math.inf

    prefixed = _PREFIXED.match(text)
    if prefixed:
        try:
            return float(int(prefixed.group(2), _RADIX[prefixed.group(1).lower()]))
        except ValueError:
            return math.nan
    return math.nan


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse a member date attribute into an aware UTC datetime.

    Accepts date/datetime objects and ISO-8601 text. Naive values are
    taken as UTC. Returns None when the value is empty or unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def days_since(value: Any, now: datetime) -> Optional[int]:
    """Whole days from ``value`` to ``now``, floored; negative for future dates."""
    parsed = parse_date(value)
    if parsed is None:
        return None
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return math.floor((now - parsed).total_seconds() / 86400)


def _compare(left: float, operator: str, right: float) -> bool:
    # NaN on either side makes every comparison false
    if operator == ConditionOperator.GREATER_THAN.value:
        return left > right
    if operator == ConditionOperator.LESS_THAN.value:
        return left < right
    if operator == ConditionOperator.EQUALS.value:
        return left == right
    return False


def evaluate_rule(
    rule: AutoTagRule, member: Mapping[str, Any], now: datetime
) -> Tuple[bool, Optional[str]]:
    """
    Evaluate a single rule against a member.

    Args:
        rule: The rule to evaluate
        member: Member attributes (mapping or model instance)
        now: Reference time for date conditions

    Returns:
        Tuple of (matched, warning). A warning explains a degraded
        evaluation (bad date, non-numeric comparison, unknown operator).
    """
    raw = get_field(member, rule.condition_field) if rule.condition_field else None

    if rule.condition_type == ConditionType.FIELD.value:
        field_value = _as_text(raw)
        operator = rule.condition_operator

        if operator == ConditionOperator.EQUALS.value:
            return field_value == rule.condition_value, None
        if operator == ConditionOperator.CONTAINS.value:
            return rule.condition_value.lower() in field_value.lower(), None
        if operator in (ConditionOperator.GREATER_THAN.value, ConditionOperator.LESS_THAN.value):
            left, right = to_number(field_value), to_number(rule.condition_value)
            if math.isnan(left) or math.isnan(right):
                return False, (
                    f"Rule {rule.id}: non-numeric comparison "
                    f"{field_value!r} {operator} {rule.condition_value!r}"
                )
            return _compare(left, operator, right), None
        return False, f"Rule {rule.id}: unknown operator {operator!r}"

    if rule.condition_type == ConditionType.DATE.value:
        if raw is None or raw == "":
            return False, None
        elapsed = days_since(raw, now)
        if elapsed is None:
            return False, f"Rule {rule.id}: unparseable date {raw!r} in {rule.condition_field}"
        threshold = to_number(rule.condition_value)
        if math.isnan(threshold):
            return False, f"Rule {rule.id}: non-numeric day count {rule.condition_value!r}"
        if rule.condition_operator not in (
            ConditionOperator.EQUALS.value,
            ConditionOperator.GREATER_THAN.value,
            ConditionOperator.LESS_THAN.value,
        ):
            return False, f"Rule {rule.id}: unknown operator {rule.condition_operator!r}"
        return _compare(float(elapsed), rule.condition_operator, threshold), None

    return False, f"Rule {rule.id}: unknown condition type {rule.condition_type!r}"

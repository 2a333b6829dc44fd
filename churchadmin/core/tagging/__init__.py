"""Member auto-tagging for Church Admin.

Evaluates stored tag rules against member records.
"""

from .engine import TagEvaluation, apply_auto_tags, parse_tag_ids, join_tag_ids
from .rules import AutoTagRule, ConditionType, ConditionOperator, RuleStatus, evaluate_rule

__all__ = [
    "TagEvaluation",
    "apply_auto_tags",
    "parse_tag_ids",
    "join_tag_ids",
    "AutoTagRule",
    "ConditionType",
    "ConditionOperator",
    "RuleStatus",
    "evaluate_rule",
]

"""Tests for the auto-tag rule engine."""

import math
from datetime import date, datetime, timedelta, timezone

import pytest

from churchadmin.core.tagging import apply_auto_tags
from churchadmin.core.tagging.engine import join_tag_ids, parse_tag_ids
from churchadmin.core.tagging.rules import (
    AutoTagRule,
    days_since,
    evaluate_rule,
    parse_date,
    to_number,
)


NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)

TAGS = [
    {"id": "T1", "status": "active"},
    {"id": "T2", "status": "active"},
    {"id": "T3", "status": "active"},
    {"id": "GONE", "status": "deleted"},
]


def rule(rule_id="R1", tag_id="T1", **kwargs):
    data = {
        "id": rule_id,
        "tag_id": tag_id,
        "condition_type": "field",
        "condition_field": "faith_status",
        "condition_operator": "equals",
        "condition_value": "baptized",
        "priority": 0,
        "status": "active",
    }
    data.update(kwargs)
    return data


class TestToNumber:

    @pytest.mark.parametrize("value,expected", [
        ("42", 42.0),
        (" 3.5 ", 3.5),
        ("", 0.0),
        ("   ", 0.0),
        ("1e3", 1000.0),
        (".5", 0.5),
        ("0x1F", 31.0),
        ("0b101", 5.0),
        ("-Infinity", -math.inf),
        (7, 7.0),
        (True, 1.0),
    ])
    def test_numeric(self, value, expected):
        assert to_number(value) == expected

    @pytest.mark.parametrize("value", ["abc", "12abc", "1,000", None, "0x", "--1"])
    def test_nan(self, value):
        assert math.isnan(to_number(value))


class TestDates:

    def test_parse_plain_date(self):
        assert parse_date("2026-01-02") == datetime(2026, 1, 2, tzinfo=timezone.utc)

    def test_parse_zulu(self):
        assert parse_date("2026-01-02T03:04:05Z") == datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_parse_date_object(self):
        assert parse_date(date(2025, 5, 5)).tzinfo is timezone.utc

    @pytest.mark.parametrize("value", ["", None, "not a date", "2026-13-45"])
    def test_unparseable(self, value):
        assert parse_date(value) is None

    def test_days_since_floors(self):
        assert days_since("2026-05-31T13:00:00Z", NOW) == 0
        assert days_since("2026-05-31T11:00:00Z", NOW) == 1

    def test_future_is_negative(self):
        assert days_since("2026-06-11", NOW) == -10


class TestEvaluateRule:

    def _eval(self, member, **kwargs):
        return evaluate_rule(AutoTagRule.from_record(rule(**kwargs)), member, NOW)

    def test_equals_is_exact(self):
        assert self._eval({"faith_status": "baptized"})[0]
        assert not self._eval({"faith_status": "Baptized"})[0]

    def test_contains_ignores_case(self):
        matched, _ = self._eval(
            {"address": "12 Grace Road, Taipei"},
            condition_field="address", condition_operator="contains", condition_value="TAIPEI",
        )
        assert matched

    def test_missing_field_is_empty_string(self):
        assert self._eval({}, condition_value="")[0]

    def test_numeric_comparison(self):
        member = {"age": "30"}
        assert self._eval(member, condition_field="age", condition_operator="greater_than", condition_value="18")[0]
        assert not self._eval(member, condition_field="age", condition_operator="less_than", condition_value="18")[0]

    def test_non_numeric_comparison_is_false_with_warning(self):
        matched, warning = self._eval(
            {"age": "thirty"},
            condition_field="age", condition_operator="greater_than", condition_value="18",
        )
        assert not matched
        assert "non-numeric" in warning

    def test_date_condition(self):
        member = {"join_date": (NOW - timedelta(days=400)).date().isoformat()}
        assert self._eval(
            member, condition_type="date", condition_field="join_date",
            condition_operator="greater_than", condition_value="365",
        )[0]

    def test_date_equals_exact_day(self):
        member = {"join_date": (NOW - timedelta(days=30)).isoformat()}
        assert self._eval(
            member, condition_type="date", condition_field="join_date",
            condition_operator="equals", condition_value="30",
        )[0]

    def test_empty_date_is_false_without_warning(self):
        matched, warning = self._eval(
            {"join_date": ""}, condition_type="date", condition_field="join_date",
            condition_operator="greater_than", condition_value="1",
        )
        assert not matched
        assert warning is None

    def test_bad_date_is_false_with_warning(self):
        matched, warning = self._eval(
            {"join_date": "yesterday"}, condition_type="date", condition_field="join_date",
            condition_operator="greater_than", condition_value="1",
        )
        assert not matched
        assert "unparseable" in warning

    def test_date_contains_is_unsupported(self):
        matched, _ = self._eval(
            {"join_date": "2020-01-01"}, condition_type="date", condition_field="join_date",
            condition_operator="contains", condition_value="2020",
        )
        assert not matched

    def test_unknown_condition_type(self):
        matched, warning = self._eval({"faith_status": "baptized"}, condition_type="regex")
        assert not matched
        assert "unknown condition type" in warning

    def test_unknown_operator(self):
        matched, _ = self._eval({"faith_status": "baptized"}, condition_operator="starts_with")
        assert not matched


class TestTagIds:

    def test_parse_drops_empty_segments(self):
        assert parse_tag_ids("a,,b, ,c,") == ["a", "b", "c"]

    def test_parse_dedupes_in_order(self):
        assert parse_tag_ids("b,a,b") == ["b", "a"]

    def test_parse_empty(self):
        assert parse_tag_ids("") == []
        assert parse_tag_ids(None) == []

    def test_join(self):
        assert join_tag_ids(["a", "b"]) == "a,b"


class TestApplyAutoTags:

    def test_field_rule_adds_tag(self):
        member = {"faith_status": "baptized", "tags": ""}
        result = apply_auto_tags(member, [rule()], TAGS, now=NOW)
        assert "T1" in result.tag_set
        assert result.matched_rules == ["R1"]

    def test_date_rule_adds_tag(self):
        member = {"join_date": (NOW - timedelta(days=400)).date(), "tags": ""}
        date_rule = rule(
            tag_id="T2", condition_type="date", condition_field="join_date",
            condition_operator="greater_than", condition_value="365",
        )
        assert "T2" in apply_auto_tags(member, [date_rule], TAGS, now=NOW).tag_set

    @pytest.mark.parametrize("tag_id", ["missing", "GONE"])
    def test_rule_for_missing_tag_is_skipped(self, tag_id):
        member = {"faith_status": "baptized", "tags": ""}
        result = apply_auto_tags(member, [rule(tag_id=tag_id)], TAGS, now=NOW)
        assert tag_id not in result.tag_set
        assert result.skipped_rules == ["R1"]
        assert result.warnings

    def test_output_is_superset_of_input(self):
        member = {"faith_status": "seeker", "tags": "X,Y"}
        result = apply_auto_tags(member, [rule()], TAGS, now=NOW)
        assert result.tag_set >= {"X", "Y"}
        assert result.tag_ids == ["X", "Y"]

    def test_existing_tag_not_duplicated(self):
        member = {"faith_status": "baptized", "tags": "T1"}
        result = apply_auto_tags(member, [rule(), rule("R2")], TAGS, now=NOW)
        assert result.tag_ids == ["T1"]
        assert result.joined == "T1"

    def test_inactive_rules_ignored(self):
        member = {"faith_status": "baptized", "tags": ""}
        rules = [rule(status="inactive"), rule("R2", status="deleted")]
        assert apply_auto_tags(member, rules, TAGS, now=NOW).tag_ids == []

    def test_deterministic(self):
        member = {"faith_status": "baptized", "join_date": "2020-01-01", "tags": "X"}
        rules = [
            rule("R1", "T1"),
            rule("R2", "T2", condition_type="date", condition_field="join_date",
                 condition_operator="greater_than", condition_value="365"),
        ]
        first = apply_auto_tags(member, rules, TAGS, now=NOW)
        second = apply_auto_tags(member, rules, TAGS, now=NOW)
        assert first.to_dict() == second.to_dict()

    def test_priority_orders_evaluation_stably(self):
        member = {"faith_status": "baptized", "tags": ""}
        rules = [
            rule("late", "T3", priority=5),
            rule("first-tie", "T1", priority=1),
            rule("second-tie", "T2", priority=1),
        ]
        result = apply_auto_tags(member, rules, TAGS, now=NOW)
        assert result.matched_rules == ["first-tie", "second-tie", "late"]
        assert result.tag_ids == ["T1", "T2", "T3"]

    def test_non_numeric_priority_sorts_as_zero(self):
        member = {"faith_status": "baptized", "tags": ""}
        rules = [rule("one", "T1", priority=1), rule("odd", "T2", priority="high")]
        result = apply_auto_tags(member, rules, TAGS, now=NOW)
        assert result.matched_rules == ["odd", "one"]

    def test_bad_rule_data_never_raises(self):
        member = {"faith_status": "baptized", "join_date": "garbage", "tags": ""}
        rules = [
            rule("R1", condition_type="date", condition_field="join_date",
                 condition_operator="greater_than", condition_value="abc"),
            rule("R2", condition_type=None, condition_operator=None),
            rule("R3", "T2"),
        ]
        result = apply_auto_tags(member, rules, TAGS, now=NOW)
        assert result.tag_ids == ["T2"]
        assert len(result.warnings) == 2

    def test_model_instances(self, db_session):
        from tests.factories import create_member, create_rule, create_tag

        tag = create_tag(db_session)
        member = create_member(db_session, faith_status="baptized", tags="")
        rule_row = create_rule(db_session, tag=tag)
        result = apply_auto_tags(member, [rule_row], [tag], now=NOW)
        assert result.tag_ids == [tag.id]

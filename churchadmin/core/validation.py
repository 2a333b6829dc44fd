"""Input validation for mutating operations.

Each ``validate_*`` function collects every problem into a field -> message
map and raises ``ValidationFailed`` once, so clients can show all errors
together.
"""

import math
import re
from typing import Any, Dict, Mapping

from churchadmin.core.errors import ValidationFailed

MAX_TEXT_LENGTH = 1000

FAITH_STATUSES = ("newcomer", "seeker", "baptized", "transferred")
DEFAULT_FAITH_STATUS = "newcomer"
GENDERS = ("male", "female", "other")
OFFERING_TYPES = ("tithe", "thanksgiving", "building", "special")
OFFERING_METHODS = ("cash", "bank", "linepay", "card")
EVENT_STATUSES = ("draft", "published", "closed")
TRANSACTION_TYPES = ("income", "expense")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^(\+886|0)?[0-9]{9,10}$")
_PHONE_SEPARATORS = re.compile(r"[\s-]")
_ANGLE_BRACKETS = re.compile(r"[<>]")


def is_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value))


def is_phone(value: str) -> bool:
    """Taiwan phone number: optional +886 or 0 prefix, then 9-10 digits."""
    return bool(PHONE_RE.match(_PHONE_SEPARATORS.sub("", value)))


def sanitize(value: Any) -> Any:
    """Trim text, drop angle brackets and cap the length. Non-text passes through."""
    if not isinstance(value, str):
        return value
    return _ANGLE_BRACKETS.sub("", value.strip())[:MAX_TEXT_LENGTH]


def sanitize_dict(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: sanitize(value) for key, value in data.items()}


def normalize_faith_status(value: Any) -> str:
    """Any empty or unknown faith status becomes ``newcomer``."""
    if isinstance(value, str) and value.strip() in FAITH_STATUSES:
        return value.strip()
    return DEFAULT_FAITH_STATUS


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_member(data: Mapping[str, Any], partial: bool = False) -> None:
    """Validate member input.

    With ``partial`` set, only the fields present in ``data`` are checked.
    """
    errors: Dict[str, str] = {}

    if not partial or "name" in data:
        if _blank(data.get("name")):
            errors["name"] = "Name is required"

    email = data.get("email")
    if email and not is_email(email):
        errors["email"] = "Invalid email format"

    phone = data.get("phone")
    if phone and not is_phone(phone):
        errors["phone"] = "Invalid phone number"

    gender = data.get("gender")
    if gender and gender not in GENDERS:
        errors["gender"] = f"Gender must be one of: {', '.join(GENDERS)}"

    faith_status = data.get("faith_status")
    if faith_status and faith_status not in FAITH_STATUSES:
        errors["faith_status"] = f"Faith status must be one of: {', '.join(FAITH_STATUSES)}"

    if errors:
        raise ValidationFailed(errors)


def _positive_amount(value: Any) -> bool:
    return value is not None and math.isfinite(value) and value > 0


def validate_offering(data: Mapping[str, Any], partial: bool = False) -> None:
    errors: Dict[str, str] = {}

    if not partial or "member_id" in data:
        if _blank(data.get("member_id")):
            errors["member_id"] = "Member ID is required"

    if not partial or "amount" in data:
        amount = data.get("amount")
        if not _positive_amount(amount):
            errors["amount"] = "Amount must be a finite number greater than 0"

    for key, allowed, label in (
        ("type", OFFERING_TYPES, "Offering type"),
        ("method", OFFERING_METHODS, "Payment method"),
    ):
        if not partial or key in data:
            value = data.get(key)
            if _blank(value):
                errors[key] = f"{label} is required"
            elif value not in allowed:
                errors[key] = f"{label} must be one of: {', '.join(allowed)}"

    if errors:
        raise ValidationFailed(errors)


def validate_event(data: Mapping[str, Any]) -> None:
    """Validate a whole event record; updates pass the merged record."""
    errors: Dict[str, str] = {}

    if _blank(data.get("title")):
        errors["title"] = "Title is required"
    if data.get("start_date") is None:
        errors["start_date"] = "Start date is required"
    if _blank(data.get("location")):
        errors["location"] = "Location is required"

    start, end = data.get("start_date"), data.get("end_date")
    if start is not None and end is not None and end < start:
        errors["end_date"] = "End date cannot be before the start date"

    capacity = data.get("capacity")
    if capacity is not None and capacity < 0:
        errors["capacity"] = "Capacity cannot be negative"

    fee = data.get("fee")
    if fee is not None and (not math.isfinite(fee) or fee < 0):
        errors["fee"] = "Fee must be a finite number of 0 or more"

    status = data.get("status")
    if status is not None and status not in EVENT_STATUSES:
        errors["status"] = f"Status must be one of: {', '.join(EVENT_STATUSES)}"

    if errors:
        raise ValidationFailed(errors)


def validate_transaction(data: Mapping[str, Any], partial: bool = False) -> None:
    errors: Dict[str, str] = {}

    if not partial or "type" in data:
        if data.get("type") not in TRANSACTION_TYPES:
            errors["type"] = f"Type must be one of: {', '.join(TRANSACTION_TYPES)}"

    if not partial or "amount" in data:
        if not _positive_amount(data.get("amount")):
            errors["amount"] = "Amount must be a finite number greater than 0"

    if errors:
        raise ValidationFailed(errors)


def validate_password(password: str, min_length: int) -> None:
    if not password or len(password) < min_length:
        raise ValidationFailed(
            {"new_password": f"Password must be at least {min_length} characters"}
        )

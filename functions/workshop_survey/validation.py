"""
Field validation for survey drafts.

Every rule runs independently so callers can show all messages at once.
Keys of the returned mapping are the form's (camelCase) field names.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Optional

from workshop_survey.records import SurveyRecord

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _required(message: str) -> Callable[[Any], Optional[str]]:
    def check(value: Any) -> Optional[str]:
        if value is None or not str(value).strip():
            return message
        return None

    return check


def _non_empty(message: str) -> Callable[[Any], Optional[str]]:
    def check(value: Any) -> Optional[str]:
        if not [item for item in value or () if str(item).strip()]:
            return message
        return None

    return check


def _check_email(value: Any) -> Optional[str]:
    if value is None or not str(value).strip():
        return "Email is required"
    if not EMAIL_PATTERN.match(str(value).strip()):
        return "Please enter a valid email"
    return None


# field name -> (record attribute, rule)
RULES: dict[str, tuple[str, Callable[[Any], Optional[str]]]] = {
    "name": ("name", _required("Name is required")),
    "email": ("email", _check_email),
    "phone": ("phone", _required("Phone is required")),
    "studentId": ("student_id", _required("Student ID is required")),
    "batch": ("batch", _required("Batch is required")),
    "department": ("department", _required("Department is required")),
    "experienceLevel": (
        "experience_level",
        _required("Experience level is required"),
    ),
    "workshopTopics": (
        "workshop_topics",
        _non_empty("Please select at least one workshop topic"),
    ),
    "expectations": ("expectations", _required("Please share your expectations")),
    "programmingLanguages": (
        "programming_languages",
        _non_empty(
            'Please select at least one option (or "No programming experience")'
        ),
    ),
    "availability": (
        "availability",
        _required("Please select your preferred workshop date"),
    ),
}

WIZARD_STEPS: dict[int, tuple[str, ...]] = {
    1: (
        "name",
        "email",
        "phone",
        "studentId",
        "batch",
        "department",
        "experienceLevel",
    ),
    2: ("workshopTopics", "expectations"),
    3: ("programmingLanguages", "availability"),
    4: tuple(RULES),
}


def _run(record: SurveyRecord, fields: tuple[str, ...]) -> dict[str, str]:
    errors: dict[str, str] = {}
    for field_name in fields:
        attr, rule = RULES[field_name]
        message = rule(getattr(record, attr))
        if message:
            errors[field_name] = message
    return errors


def validate(record: SurveyRecord) -> dict[str, str]:
    """Return field -> message for every failing field; empty means valid."""
    return _run(record, tuple(RULES))


def validate_step(step: int, draft: dict[str, Any]) -> dict[str, str]:
    """Validate only the fields that belong to one wizard step."""
    if step not in WIZARD_STEPS:
        raise ValueError(f"Unknown survey step: {step}")
    return _run(SurveyRecord.from_dict(draft), WIZARD_STEPS[step])

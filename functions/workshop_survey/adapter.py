"""
Schema adapter between SurveyRecord and each backend's wire record.

Every backend kind owns one mapping table from SurveyRecord attribute to
wire field name, plus the names of its id and creation-timestamp fields.
Reading is tolerant: a wire record written under any of the known naming
conventions is accepted, since the local store holds entries from more
than one generation of the form.
"""

from __future__ import annotations

import enum
import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from workshop_survey.records import StoredSubmission, SurveyRecord

LIST_FIELDS = ("workshop_topics", "programming_languages")

_SNAKE_FIELDS = {
    "name": "name",
    "email": "email",
    "phone": "phone",
    "student_id": "student_id",
    "batch": "batch",
    "department": "department",
    "experience_level": "experience_level",
    "workshop_topics": "workshop_topics",
    "programming_languages": "programming_languages",
    "availability": "availability",
    "expectations": "expectations",
    "additional_comments": "additional_comments",
}

_CAMEL_FIELDS = {
    "name": "name",
    "email": "email",
    "phone": "phone",
    "student_id": "studentId",
    "batch": "batch",
    "department": "department",
    "experience_level": "experienceLevel",
    "workshop_topics": "workshopTopics",
    "programming_languages": "programmingLanguages",
    "availability": "availability",
    "expectations": "expectations",
    "additional_comments": "additionalComments",
}


class BackendKind(enum.Enum):
    APPWRITE = "appwrite"
    SUPABASE = "supabase"
    LOCAL = "local"


@dataclass(frozen=True)
class WireSchema:
    fields: dict[str, str]
    id_field: str
    timestamp_field: str


WIRE_SCHEMAS = {
    BackendKind.APPWRITE: WireSchema(
        fields=_SNAKE_FIELDS, id_field="$id", timestamp_field="submitted_at"
    ),
    BackendKind.SUPABASE: WireSchema(
        fields=_SNAKE_FIELDS, id_field="id", timestamp_field="created_at"
    ),
    # Local entries were written camelCase with a snake_case timestamp.
    BackendKind.LOCAL: WireSchema(
        fields=_CAMEL_FIELDS, id_field="id", timestamp_field="submitted_at"
    ),
}

_ID_FALLBACKS = ("id", "$id")
_TIMESTAMP_FALLBACKS = ("submitted_at", "created_at", "createdAt", "$createdAt")

# A bare hyphen separates segments; " - " inside a time range does not.
_AVAILABILITY_DELIMITER = re.compile(r"(?<!\s)-(?!\s)")


def to_wire_record(record: SurveyRecord, kind: BackendKind) -> dict:
    """Rename record fields to the backend's convention. Does not mutate."""
    schema = WIRE_SCHEMAS[kind]
    wire: dict[str, Any] = {}
    for attr, wire_name in schema.fields.items():
        value = getattr(record, attr)
        if attr in LIST_FIELDS:
            value = list(value or [])
        elif value is None:
            value = ""
        wire[wire_name] = value
    return wire


def from_wire_record(wire: dict, kind: BackendKind) -> StoredSubmission:
    """Inverse of to_wire_record, tolerant of any known naming convention."""
    schema = WIRE_SCHEMAS[kind]
    values: dict[str, Any] = {}
    for attr, wire_name in schema.fields.items():
        candidates = (wire_name, _SNAKE_FIELDS[attr], _CAMEL_FIELDS[attr])
        raw = _first_present(wire, candidates)
        if attr in LIST_FIELDS:
            values[attr] = _as_list(raw)
        else:
            values[attr] = "" if raw is None else str(raw)

    submission_id = _first_present(wire, (schema.id_field,) + _ID_FALLBACKS)
    timestamp = _first_present(
        wire, (schema.timestamp_field,) + _TIMESTAMP_FALLBACKS
    )
    return StoredSubmission(
        id="" if submission_id is None else str(submission_id),
        record=SurveyRecord(**values),
        created_at=parse_timestamp(timestamp),
    )


def format_availability_label(raw: str) -> str:
    """
    Present a composite "<date>-<weekday>-<time range>" label as
    "<date> (<weekday>)". Values with fewer than two segments (plain
    labels, "<date> (<time range>)") are returned verbatim.
    """
    if not raw:
        return raw
    segments = [part.strip() for part in _AVAILABILITY_DELIMITER.split(raw)]
    if len(segments) < 2:
        return raw
    return f"{segments[0]} ({segments[1]})"


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(value, tz=timezone.utc)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _first_present(wire: dict, keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in wire and wire[key] is not None:
            return wire[key]
    return None


def _as_list(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return [str(item) for item in raw]
    text = str(raw).strip()
    if not text:
        return []
    if text.startswith("["):
        try:
            decoded = json.loads(text)
        except ValueError:
            decoded = None
        if isinstance(decoded, list):
            return [str(item) for item in decoded]
    return [text]

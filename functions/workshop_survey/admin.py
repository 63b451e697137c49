"""
Admin dashboard operations over the loaded submission list.
"""

from __future__ import annotations

import csv
import hmac
import io
import logging
import time
from datetime import date, datetime, timezone
from typing import Callable, Iterable, Optional

from workshop_survey.records import StoredSubmission
from workshop_survey.store import StoreSession

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "Name",
    "Email",
    "Phone",
    "Student ID",
    "Batch",
    "Department",
    "Experience Level",
    "Workshop Topics",
    "Programming Languages",
    "Availability",
    "Expectations",
    "Additional Comments",
    "Submitted At",
]


def filter_submissions(
    submissions: Iterable[StoredSubmission], term: str | None
) -> list[StoredSubmission]:
    """Case-insensitive substring match over name, email, student id, department."""
    items = list(submissions)
    needle = (term or "").strip().lower()
    if not needle:
        return items
    return [
        item
        for item in items
        if any(
            needle in (value or "").lower()
            for value in (
                item.record.name,
                item.record.email,
                item.record.student_id,
                item.record.department,
            )
        )
    ]


def submission_stats(
    submissions: list[StoredSubmission],
    filtered: list[StoredSubmission],
    today: Optional[date] = None,
) -> dict:
    today = today or datetime.now(timezone.utc).date()
    submitted_today = sum(
        1
        for item in submissions
        if item.created_at
        and item.created_at.astimezone(timezone.utc).date() == today
    )
    return {
        "total": len(submissions),
        "today": submitted_today,
        "filtered": len(filtered),
    }


def export_csv(submissions: Iterable[StoredSubmission]) -> str:
    buf = io.StringIO()
    w = csv.writer(buf)
    w.writerow(CSV_HEADERS)
    for item in submissions:
        r = item.record
        w.writerow([
            r.name,
            r.email,
            r.phone,
            r.student_id,
            r.batch,
            r.department,
            r.experience_level,
            "; ".join(r.workshop_topics),
            "; ".join(r.programming_languages),
            r.availability,
            r.expectations,
            r.additional_comments or "",
            item.created_at.isoformat() if item.created_at else "",
        ])
    return buf.getvalue()


def export_filename(today: Optional[date] = None) -> str:
    today = today or datetime.now(timezone.utc).date()
    return f"ncc-robotics-submissions-{today.isoformat()}.csv"


def check_credentials(
    email: str, password: str, expected_email: str, expected_password: str
) -> bool:
    email_ok = hmac.compare_digest(email.strip().encode(), expected_email.encode())
    password_ok = hmac.compare_digest(password.encode(), expected_password.encode())
    return email_ok and password_ok


class SessionRegistry:
    """
    Live admin sessions, each with its own StoreSession. Sessions older than
    ttl_seconds are dropped on lookup and pruned whenever a new one opens.
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.sessions: dict[str, StoreSession] = {}

    def _expired(self, session: StoreSession, now: float) -> bool:
        if self.ttl_seconds is None:
            return False
        return now - session.created_at >= self.ttl_seconds

    def prune(self) -> int:
        now = self.clock()
        expired = [
            sid for sid, session in self.sessions.items() if self._expired(session, now)
        ]
        for sid in expired:
            del self.sessions[sid]
        if expired:
            logger.info("Pruned %d expired admin sessions", len(expired))
        return len(expired)

    def open(self) -> StoreSession:
        self.prune()
        session = StoreSession(created_at=self.clock())
        self.sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> Optional[StoreSession]:
        session = self.sessions.get(session_id)
        if session is None:
            return None
        if self._expired(session, self.clock()):
            del self.sessions[session_id]
            logger.info("Admin session %s expired", session_id)
            return None
        return session

    def close(self, session_id: str) -> None:
        self.sessions.pop(session_id, None)

    def reset(self) -> None:
        self.sessions.clear()

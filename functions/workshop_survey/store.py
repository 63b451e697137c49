"""
Fallback-chain submission store.

create always tries the remote backend first and falls back to local
storage. list does the same and records in the caller's StoreSession which
backend answered; update and delete then target only that backend, since a
record read from local storage cannot be edited remotely without a
reconciliation step.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from workshop_survey.adapter import (
    BackendKind,
    from_wire_record,
    to_wire_record,
)
from workshop_survey.errors import (
    AggregateStoreError,
    LocalStoreError,
    NetworkError,
    NotFoundError,
    SubmissionStoreError,
    ValidationError,
)
from workshop_survey.local_storage import LocalSubmissionStore
from workshop_survey.records import StoredSubmission, SurveyRecord
from workshop_survey.remote import SubmissionBackend
from workshop_survey.validation import validate

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_PAGE_SIZE = 100


class ActiveBackend(enum.Enum):
    REMOTE = "remote"
    LOCAL = "local"
    NONE = "none"


class CreateOutcomeKind(enum.Enum):
    REMOTE_OK = "remote"
    LOCAL_FALLBACK_USED = "local_fallback"


@dataclass
class StoreSession:
    """Per-admin-session context: the active backend and the loaded list."""

    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    active_backend: ActiveBackend = ActiveBackend.NONE
    loaded: list[StoredSubmission] = field(default_factory=list)
    created_at: float = field(default_factory=time.time)


@dataclass
class CreateOutcome:
    submission: StoredSubmission
    kind: CreateOutcomeKind
    reason: Optional[str] = None

    @property
    def used_fallback(self) -> bool:
        return self.kind is CreateOutcomeKind.LOCAL_FALLBACK_USED


@dataclass
class ListResult:
    submissions: list[StoredSubmission]
    source: ActiveBackend
    error: Optional[AggregateStoreError] = None


class SubmissionStore:
    def __init__(
        self,
        remote: SubmissionBackend,
        local: LocalSubmissionStore,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.remote = remote
        self.local = local
        self.timeout_seconds = timeout_seconds
        self.page_size = page_size

    async def _call_remote(self, operation: str, func: Callable, *args) -> Any:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(func, *args), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as exc:
            raise NetworkError(
                f"Remote {operation} timed out after {self.timeout_seconds}s"
            ) from exc
        except SubmissionStoreError:
            raise
        except Exception as exc:
            raise NetworkError(f"Remote {operation} failed: {exc}") from exc

    async def create(self, record: SurveyRecord) -> CreateOutcome:
        errors = validate(record)
        if errors:
            raise ValidationError(errors)

        kind = self.remote.kind
        try:
            row = await self._call_remote(
                "create", self.remote.insert, to_wire_record(record, kind)
            )
            if not isinstance(row, dict):
                raise NetworkError("Remote create returned no record")
            submission = from_wire_record(row, kind)
            if not submission.id:
                raise NetworkError("Remote create returned no id")
            return CreateOutcome(submission, CreateOutcomeKind.REMOTE_OK)
        except SubmissionStoreError as exc:
            reason = str(exc)
            logger.warning("Remote create failed, using local storage: %s", reason)

        entry = to_wire_record(record, BackendKind.LOCAL)
        entry["id"] = uuid.uuid4().hex
        entry["submitted_at"] = datetime.now(timezone.utc).isoformat()
        self.local.append(entry)
        logger.info("Stored submission %s in local storage", entry["id"])
        return CreateOutcome(
            from_wire_record(entry, BackendKind.LOCAL),
            CreateOutcomeKind.LOCAL_FALLBACK_USED,
            reason=reason,
        )

    async def list(self, session: StoreSession) -> ListResult:
        kind = self.remote.kind
        try:
            rows = await self._call_remote(
                "list", self.remote.list_recent, self.page_size
            )
            if not isinstance(rows, list):
                raise NetworkError("Remote list returned no rows")
            submissions = [from_wire_record(row, kind) for row in rows]
            session.active_backend = ActiveBackend.REMOTE
            session.loaded = list(submissions)
            return ListResult(submissions, ActiveBackend.REMOTE)
        except SubmissionStoreError as exc:
            remote_error = exc
            logger.warning("Remote list failed, reading local storage: %s", exc)

        try:
            entries = self.local.read_all()
        except LocalStoreError as exc:
            error = AggregateStoreError(remote_error, exc)
            logger.error("%s", error)
            session.active_backend = ActiveBackend.NONE
            session.loaded = []
            return ListResult([], ActiveBackend.NONE, error=error)

        if not entries:
            logger.info("No submissions in local storage")
            session.active_backend = ActiveBackend.NONE
            session.loaded = []
            return ListResult([], ActiveBackend.NONE)

        submissions = sorted(
            (from_wire_record(entry, BackendKind.LOCAL) for entry in entries),
            key=_created_sort_key,
            reverse=True,
        )
        session.active_backend = ActiveBackend.LOCAL
        session.loaded = list(submissions)
        logger.info("Loaded %d submissions from local storage", len(submissions))
        return ListResult(submissions, ActiveBackend.LOCAL)

    async def update(
        self, session: StoreSession, submission_id: str, record: SurveyRecord
    ) -> StoredSubmission:
        """Replace every survey field of one submission in the active store."""
        errors = validate(record)
        if errors:
            raise ValidationError(errors)

        if session.active_backend is ActiveBackend.REMOTE:
            kind = self.remote.kind
            row = await self._call_remote(
                "update",
                self.remote.replace,
                submission_id,
                to_wire_record(record, kind),
            )
            updated = from_wire_record(row, kind)
            if not updated.id:
                updated.id = submission_id
        elif session.active_backend is ActiveBackend.LOCAL:
            existing = self.local.find(submission_id)
            if existing is None:
                raise NotFoundError(
                    f"Submission {submission_id} not found in local storage"
                )
            current = from_wire_record(existing, BackendKind.LOCAL)
            entry = to_wire_record(record, BackendKind.LOCAL)
            entry["id"] = submission_id
            entry["submitted_at"] = (
                current.created_at.isoformat() if current.created_at else None
            )
            self.local.replace_entry(submission_id, entry)
            updated = from_wire_record(entry, BackendKind.LOCAL)
        else:
            raise NotFoundError("No submissions are loaded for this session")

        session.loaded = [
            updated if item.id == submission_id else item for item in session.loaded
        ]
        return updated

    async def delete(self, session: StoreSession, submission_id: str) -> None:
        if session.active_backend is ActiveBackend.REMOTE:
            await self._call_remote("delete", self.remote.remove, submission_id)
        elif session.active_backend is ActiveBackend.LOCAL:
            self.local.remove_entry(submission_id)
        else:
            raise NotFoundError("No submissions are loaded for this session")
        session.loaded = [item for item in session.loaded if item.id != submission_id]

    async def check_remote(self) -> dict:
        """Configuration summary plus a one-call connection probe."""
        status = dict(self.remote.describe())
        try:
            await self._call_remote("ping", self.remote.ping)
        except SubmissionStoreError as exc:
            status["reachable"] = False
            status["error"] = str(exc)
        else:
            status["reachable"] = True
        return status


def _created_sort_key(submission: StoredSubmission) -> datetime:
    return submission.created_at or datetime.min.replace(tzinfo=timezone.utc)

"""
Remote backend clients for survey submissions.

Two hosted shapes are supported (Appwrite documents and a Supabase table,
both spoken to over their REST APIs), plus an in-memory client for local
runs and an unconfigured client that makes every call fail with
ConfigurationError so callers fall back to local storage.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol

import httpx

from workshop_survey.adapter import BackendKind
from workshop_survey.errors import (
    ConfigurationError,
    NetworkError,
    NotFoundError,
    describe_supabase_error,
)

logger = logging.getLogger(__name__)


class SubmissionBackend(Protocol):
    """Operations the store needs from a remote backend, on wire records."""

    kind: BackendKind

    def insert(self, wire: dict) -> dict:
        ...

    def list_recent(self, limit: int) -> list[dict]:
        ...

    def replace(self, submission_id: str, wire: dict) -> dict:
        ...

    def remove(self, submission_id: str) -> None:
        ...

    def ping(self) -> None:
        ...

    def describe(self) -> dict:
        ...


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class InMemorySubmissionBackend:
    """Supabase-shaped test double kept in process memory."""

    kind: BackendKind = BackendKind.SUPABASE
    rows: dict = None

    def __post_init__(self):
        if self.rows is None:
            self.rows = {}

    def insert(self, wire: dict) -> dict:
        row = dict(wire)
        row["id"] = uuid.uuid4().hex
        row["created_at"] = _now_iso()
        self.rows[row["id"]] = row
        return dict(row)

    def list_recent(self, limit: int) -> list[dict]:
        ordered = sorted(
            self.rows.values(), key=lambda row: row["created_at"], reverse=True
        )
        return [dict(row) for row in ordered[:limit]]

    def replace(self, submission_id: str, wire: dict) -> dict:
        existing = self.rows.get(submission_id)
        if existing is None:
            raise NotFoundError(f"Submission {submission_id} not found")
        row = dict(wire)
        row["id"] = submission_id
        row["created_at"] = existing["created_at"]
        self.rows[submission_id] = row
        return dict(row)

    def remove(self, submission_id: str) -> None:
        if self.rows.pop(submission_id, None) is None:
            raise NotFoundError(f"Submission {submission_id} not found")

    def ping(self) -> None:
        return None

    def describe(self) -> dict:
        return {"backend": "memory", "configured": True}

    def reset(self) -> None:
        self.rows.clear()


@dataclass
class UnconfiguredSubmissionBackend:
    """Stands in when required identifiers are missing from the environment."""

    kind: BackendKind
    reason: str

    def _fail(self):
        raise ConfigurationError(self.reason)

    def insert(self, wire: dict) -> dict:
        self._fail()

    def list_recent(self, limit: int) -> list[dict]:
        self._fail()

    def replace(self, submission_id: str, wire: dict) -> dict:
        self._fail()

    def remove(self, submission_id: str) -> None:
        self._fail()

    def ping(self) -> None:
        self._fail()

    def describe(self) -> dict:
        return {
            "backend": self.kind.value,
            "configured": False,
            "reason": self.reason,
        }


@dataclass
class SupabaseSubmissionBackend:
    """Submissions stored as rows of a Supabase table (PostgREST API)."""

    url: str
    api_key: str
    table: str = "survey_submissions"
    schema: str = "public"
    timeout: float = 10.0
    transport: Optional[httpx.BaseTransport] = None
    kind: BackendKind = field(default=BackendKind.SUPABASE, init=False)

    def _endpoint(self) -> str:
        return self.url.rstrip("/") + "/rest/v1/" + self.table

    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.schema and self.schema != "public":
            headers["Accept-Profile"] = self.schema
            headers["Content-Profile"] = self.schema
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _request(
        self,
        method: str,
        *,
        params: dict | None = None,
        payload: object = None,
        prefer: str | None = None,
    ):
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.request(
                    method,
                    self._endpoint(),
                    params=params,
                    json=payload,
                    headers=self._headers(prefer),
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            code = _extract_supabase_code(exc.response)
            category, message = describe_supabase_error(code)
            logger.warning(
                "Supabase %s %s failed (%s, code=%s)",
                method,
                self.table,
                exc.response.status_code,
                code,
            )
            raise NetworkError(message, category=category) from exc
        except httpx.TimeoutException as exc:
            raise NetworkError(
                f"Supabase request timed out after {self.timeout}s"
            ) from exc
        except httpx.RequestError as exc:
            raise NetworkError(f"Supabase unavailable: {exc}") from exc
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise NetworkError("Malformed response from Supabase") from exc

    def insert(self, wire: dict) -> dict:
        rows = self._request(
            "POST",
            params={"select": "*"},
            payload=wire,
            prefer="return=representation",
        )
        return _single_row(rows, "insert")

    def list_recent(self, limit: int) -> list[dict]:
        rows = self._request(
            "GET",
            params={"select": "*", "order": "created_at.desc", "limit": str(limit)},
        )
        if not isinstance(rows, list):
            raise NetworkError("Unexpected payload from Supabase list")
        return [row for row in rows if isinstance(row, dict)]

    def replace(self, submission_id: str, wire: dict) -> dict:
        rows = self._request(
            "PATCH",
            params={"id": f"eq.{submission_id}", "select": "*"},
            payload=wire,
            prefer="return=representation",
        )
        if isinstance(rows, list) and not rows:
            raise NotFoundError(f"Submission {submission_id} not found")
        return _single_row(rows, "update")

    def remove(self, submission_id: str) -> None:
        rows = self._request(
            "DELETE",
            params={"id": f"eq.{submission_id}"},
            prefer="return=representation",
        )
        if isinstance(rows, list) and not rows:
            raise NotFoundError(f"Submission {submission_id} not found")

    def ping(self) -> None:
        self._request("GET", params={"select": "id", "limit": "1"})

    def describe(self) -> dict:
        return {
            "backend": self.kind.value,
            "configured": True,
            "url": self.url,
            "table": self.table,
        }


@dataclass
class AppwriteSubmissionBackend:
    """Submissions stored as documents of an Appwrite collection."""

    endpoint: str
    project_id: str
    api_key: str
    database_id: str
    collection_id: str = "survey_responses"
    timeout: float = 10.0
    transport: Optional[httpx.BaseTransport] = None
    kind: BackendKind = field(default=BackendKind.APPWRITE, init=False)

    def _documents_url(self, document_id: str | None = None) -> str:
        url = (
            f"{self.endpoint.rstrip('/')}/databases/{self.database_id}"
            f"/collections/{self.collection_id}/documents"
        )
        if document_id:
            url += f"/{document_id}"
        return url

    def _headers(self) -> dict[str, str]:
        return {
            "X-Appwrite-Project": self.project_id,
            "X-Appwrite-Key": self.api_key,
            "Content-Type": "application/json",
        }

    def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict | None = None,
        payload: dict | None = None,
    ):
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.request(
                    method, url, params=params, json=payload, headers=self._headers()
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                raise NotFoundError(_extract_appwrite_message(exc.response)) from exc
            raise NetworkError(
                f"Appwrite rejected {method} ({exc.response.status_code}): "
                f"{_extract_appwrite_message(exc.response)}"
            ) from exc
        except httpx.TimeoutException as exc:
            raise NetworkError(
                f"Appwrite request timed out after {self.timeout}s"
            ) from exc
        except httpx.RequestError as exc:
            raise NetworkError(f"Appwrite unavailable: {exc}") from exc
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise NetworkError("Malformed response from Appwrite") from exc

    def insert(self, wire: dict) -> dict:
        data = dict(wire)
        data.setdefault("submitted_at", _now_iso())
        document = self._request(
            "POST",
            self._documents_url(),
            payload={"documentId": "unique()", "data": data},
        )
        if not isinstance(document, dict) or "$id" not in document:
            raise NetworkError("Unexpected payload from Appwrite create")
        return document

    def list_recent(self, limit: int) -> list[dict]:
        queries = [
            json.dumps({"method": "orderDesc", "attribute": "submitted_at"}),
            json.dumps({"method": "limit", "values": [limit]}),
        ]
        body = self._request(
            "GET", self._documents_url(), params={"queries[]": queries}
        )
        if not isinstance(body, dict) or not isinstance(body.get("documents"), list):
            raise NetworkError("Unexpected payload from Appwrite list")
        return [doc for doc in body["documents"] if isinstance(doc, dict)]

    def replace(self, submission_id: str, wire: dict) -> dict:
        document = self._request(
            "PATCH", self._documents_url(submission_id), payload={"data": wire}
        )
        if not isinstance(document, dict):
            raise NetworkError("Unexpected payload from Appwrite update")
        return document

    def remove(self, submission_id: str) -> None:
        self._request("DELETE", self._documents_url(submission_id))

    def ping(self) -> None:
        self.list_recent(1)

    def describe(self) -> dict:
        return {
            "backend": self.kind.value,
            "configured": True,
            "endpoint": self.endpoint,
            "databaseId": self.database_id,
            "collectionId": self.collection_id,
        }


def _single_row(rows, operation: str) -> dict:
    if isinstance(rows, list) and rows and isinstance(rows[0], dict):
        return rows[0]
    if isinstance(rows, dict):
        return rows
    raise NetworkError(f"Unexpected response from Supabase {operation}")


def _extract_supabase_code(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        code = body.get("code")
        return str(code) if code is not None else None
    return None


def _extract_appwrite_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text

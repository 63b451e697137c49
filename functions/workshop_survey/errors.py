"""
Error taxonomy for the submission store.
"""

from __future__ import annotations

from typing import Optional


class SubmissionStoreError(Exception):
    """Base class for every failure raised by the submission store."""


class ConfigurationError(SubmissionStoreError):
    """The remote backend is not configured; treated as remote-unavailable."""


class NetworkError(SubmissionStoreError):
    """A remote call failed, timed out, or returned something unusable."""

    def __init__(self, message: str, category: Optional[str] = None):
        super().__init__(message)
        self.category = category


class ValidationError(SubmissionStoreError):
    def __init__(self, errors: dict[str, str]):
        super().__init__(
            "Invalid submission: " + ", ".join(sorted(errors))
        )
        self.errors = dict(errors)


class NotFoundError(SubmissionStoreError):
    """Update/delete target is missing from the active store."""


class LocalStoreError(SubmissionStoreError):
    """The durable local store could not be read or written."""


class AggregateStoreError(SubmissionStoreError):
    """Both the remote backend and the local store failed on list."""

    def __init__(self, remote_error: Exception, local_error: Exception):
        super().__init__(
            "Failed to load submissions from the remote backend "
            f"({remote_error}) and from local storage ({local_error})"
        )
        self.remote_error = remote_error
        self.local_error = local_error


# PostgREST / Postgres codes seen from the Supabase backend.
SUPABASE_ERROR_CATEGORIES = {
    "PGRST205": "table not found",
    "42P01": "relation does not exist",
    "23505": "unique-constraint violation",
}

SUPABASE_ERROR_MESSAGES = {
    "table not found": (
        "The submissions table was not found. Create it in the Supabase "
        "project or check SUPABASE_TABLE."
    ),
    "relation does not exist": (
        "The submissions table does not exist in the database."
    ),
    "unique-constraint violation": (
        "A submission with the same unique value already exists."
    ),
}

GENERIC_BACKEND_MESSAGE = "The database request failed. Please try again."


def describe_supabase_error(code: Optional[str]) -> tuple[Optional[str], str]:
    """Map a backend error code to (category, human-readable message)."""
    category = SUPABASE_ERROR_CATEGORIES.get(code or "")
    if category is None:
        return None, GENERIC_BACKEND_MESSAGE
    return category, SUPABASE_ERROR_MESSAGES[category]

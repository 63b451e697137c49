"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

from workshop_survey.adapter import BackendKind
from workshop_survey.admin import SessionRegistry
from workshop_survey.config import Settings, get_settings
from workshop_survey.local_storage import (
    InMemoryKeyValueStore,
    KeyValueStore,
    LocalSubmissionStore,
    SqlKeyValueStore,
)
from workshop_survey.remote import (
    AppwriteSubmissionBackend,
    InMemorySubmissionBackend,
    SubmissionBackend,
    SupabaseSubmissionBackend,
    UnconfiguredSubmissionBackend,
)
from workshop_survey.store import SubmissionStore

logger = logging.getLogger(__name__)

# HTTP clients must time out before SubmissionStore stops waiting on them.
CLIENT_TIMEOUT_RATIO = 0.8

_submission_store: SubmissionStore | None = None
_session_registry: SessionRegistry | None = None


def build_remote_backend(settings: Settings) -> SubmissionBackend:
    """
    Pick the remote backend from settings. Missing identifiers yield the
    unconfigured client rather than a startup failure.
    """
    if settings.remote_backend == "memory":
        return InMemorySubmissionBackend()

    client_timeout = settings.remote_timeout_seconds * CLIENT_TIMEOUT_RATIO

    if settings.remote_backend == "appwrite":
        missing = [
            name
            for name, value in (
                ("APPWRITE_PROJECT_ID", settings.appwrite_project_id),
                ("APPWRITE_API_KEY", settings.appwrite_api_key),
                ("APPWRITE_DATABASE_ID", settings.appwrite_database_id),
            )
            if not value
        ]
        if missing:
            reason = "Appwrite not configured: missing " + ", ".join(missing)
            logger.warning(reason)
            return UnconfiguredSubmissionBackend(BackendKind.APPWRITE, reason)
        return AppwriteSubmissionBackend(
            endpoint=settings.appwrite_endpoint,
            project_id=settings.appwrite_project_id,
            api_key=settings.appwrite_api_key,
            database_id=settings.appwrite_database_id,
            collection_id=settings.appwrite_collection_id,
            timeout=client_timeout,
        )

    if not (settings.supabase_url and settings.supabase_anon_key):
        reason = "Supabase not configured: set SUPABASE_URL and SUPABASE_ANON_KEY"
        logger.warning(reason)
        return UnconfiguredSubmissionBackend(BackendKind.SUPABASE, reason)
    return SupabaseSubmissionBackend(
        url=settings.supabase_url,
        api_key=settings.supabase_anon_key,
        table=settings.supabase_table,
        schema=settings.supabase_schema,
        timeout=client_timeout,
    )


def build_key_value_store(settings: Settings) -> KeyValueStore:
    if not settings.local_store_url:
        return InMemoryKeyValueStore()
    return SqlKeyValueStore(settings.local_store_url)


def build_submission_store(settings: Settings) -> SubmissionStore:
    local = LocalSubmissionStore(
        build_key_value_store(settings), key=settings.local_storage_key
    )
    return SubmissionStore(
        build_remote_backend(settings),
        local,
        timeout_seconds=settings.remote_timeout_seconds,
        page_size=settings.list_page_size,
    )


def get_submission_store() -> SubmissionStore:
    """
    Return a singleton store so the local fallback persists across requests.
    """
    global _submission_store
    if _submission_store:
        return _submission_store
    _submission_store = build_submission_store(get_settings())
    return _submission_store


def get_session_registry() -> SessionRegistry:
    global _session_registry
    if _session_registry:
        return _session_registry
    _session_registry = SessionRegistry(
        ttl_seconds=get_settings().admin_session_ttl_seconds
    )
    return _session_registry

"""
HTTP routes for the survey and the admin dashboard.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response
from fastapi.responses import StreamingResponse

from workshop_survey.admin import (
    SessionRegistry,
    check_credentials,
    export_csv,
    export_filename,
    filter_submissions,
    submission_stats,
)
from workshop_survey.config import get_settings
from workshop_survey.dependencies import get_session_registry, get_submission_store
from workshop_survey.errors import (
    ConfigurationError,
    NetworkError,
    NotFoundError,
    SubmissionStoreError,
    ValidationError,
)
from workshop_survey.records import (
    AVAILABILITY_OPTIONS,
    BATCHES,
    DEPARTMENTS,
    EXPERIENCE_LEVELS,
    PROGRAMMING_LANGUAGES,
    WORKSHOP_TOPICS,
)
from workshop_survey.schemas import (
    BackendHealthResponse,
    CreateSubmissionResponse,
    ListSubmissionsResponse,
    LoginRequest,
    LoginResponse,
    OptionItem,
    SubmissionOut,
    SubmissionStats,
    SurveyOptionsResponse,
    SurveyRecordPayload,
    ValidationResponse,
)
from workshop_survey.store import StoreSession, SubmissionStore
from workshop_survey.validation import validate_step

logger = logging.getLogger(__name__)

router = APIRouter()

LOCAL_FALLBACK_NOTICE = (
    "Your response was saved. The registration server was unreachable, "
    "so it was stored locally and will be synced later."
)


def _raise_http(exc: SubmissionStoreError):
    if isinstance(exc, ValidationError):
        raise HTTPException(status_code=422, detail={"errors": exc.errors}) from exc
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    if isinstance(exc, (NetworkError, ConfigurationError)):
        raise HTTPException(
            status_code=503,
            detail=f"{exc} Please try again.",
        ) from exc
    raise HTTPException(status_code=500, detail=str(exc)) from exc


def get_admin_session(
    x_admin_session: str | None = Header(default=None),
    registry: SessionRegistry = Depends(get_session_registry),
) -> StoreSession:
    session = registry.get(x_admin_session) if x_admin_session else None
    if session is None:
        raise HTTPException(status_code=401, detail="Admin login required")
    return session


@router.get("/survey/options", response_model=SurveyOptionsResponse)
def survey_options():
    return SurveyOptionsResponse(
        batches=list(BATCHES),
        departments=list(DEPARTMENTS),
        experienceLevels=[
            OptionItem(value=k, label=v) for k, v in EXPERIENCE_LEVELS.items()
        ],
        workshopTopics=[
            OptionItem(value=k, label=v) for k, v in WORKSHOP_TOPICS.items()
        ],
        programmingLanguages=list(PROGRAMMING_LANGUAGES),
        availability=list(AVAILABILITY_OPTIONS),
    )


@router.post("/survey/steps/{step}/validate", response_model=ValidationResponse)
def validate_survey_step(step: int, payload: SurveyRecordPayload):
    try:
        errors = validate_step(step, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return ValidationResponse(errors=errors)


@router.post(
    "/survey/submissions",
    response_model=CreateSubmissionResponse,
    status_code=201,
)
async def create_submission(
    payload: SurveyRecordPayload,
    store: SubmissionStore = Depends(get_submission_store),
):
    """
    Submit a completed survey. Remote failures never reach the submitter;
    the outcome tells the page whether local storage was used.
    """
    try:
        outcome = await store.create(payload.to_record())
    except SubmissionStoreError as exc:
        _raise_http(exc)
    return CreateSubmissionResponse(
        submission=SubmissionOut.from_submission(outcome.submission),
        outcome=outcome.kind.value,
        notice=LOCAL_FALLBACK_NOTICE if outcome.used_fallback else None,
    )


@router.post("/admin/login", response_model=LoginResponse)
def admin_login(
    payload: LoginRequest,
    registry: SessionRegistry = Depends(get_session_registry),
):
    settings = get_settings()
    if not check_credentials(
        payload.email, payload.password, settings.admin_email, settings.admin_password
    ):
        raise HTTPException(
            status_code=401, detail="Invalid credentials. Please try again."
        )
    session = registry.open()
    logger.info("Admin session %s opened", session.session_id)
    return LoginResponse(sessionId=session.session_id)


@router.post("/admin/logout", status_code=204)
def admin_logout(
    session: StoreSession = Depends(get_admin_session),
    registry: SessionRegistry = Depends(get_session_registry),
):
    registry.close(session.session_id)
    return Response(status_code=204)


@router.get("/admin/submissions", response_model=ListSubmissionsResponse)
async def list_submissions(
    search: str | None = Query(None, max_length=200),
    session: StoreSession = Depends(get_admin_session),
    store: SubmissionStore = Depends(get_submission_store),
):
    result = await store.list(session)
    filtered = filter_submissions(result.submissions, search)
    return ListSubmissionsResponse(
        submissions=[SubmissionOut.from_submission(item) for item in filtered],
        dataSource=result.source.value,
        stats=SubmissionStats(**submission_stats(result.submissions, filtered)),
        error=str(result.error) if result.error else None,
    )


@router.get("/admin/submissions/export.csv")
def export_submissions(session: StoreSession = Depends(get_admin_session)):
    body = export_csv(session.loaded)
    return StreamingResponse(
        iter([body]),
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{export_filename()}"'
        },
    )


@router.put("/admin/submissions/{submission_id}", response_model=SubmissionOut)
async def update_submission(
    submission_id: str,
    payload: SurveyRecordPayload,
    session: StoreSession = Depends(get_admin_session),
    store: SubmissionStore = Depends(get_submission_store),
):
    try:
        updated = await store.update(session, submission_id, payload.to_record())
    except SubmissionStoreError as exc:
        logger.warning("Update of %s failed: %s", submission_id, exc)
        _raise_http(exc)
    return SubmissionOut.from_submission(updated)


@router.delete("/admin/submissions/{submission_id}", status_code=204)
async def delete_submission(
    submission_id: str,
    session: StoreSession = Depends(get_admin_session),
    store: SubmissionStore = Depends(get_submission_store),
):
    try:
        await store.delete(session, submission_id)
    except SubmissionStoreError as exc:
        logger.warning("Delete of %s failed: %s", submission_id, exc)
        _raise_http(exc)
    return Response(status_code=204)


@router.get("/health/backend", response_model=BackendHealthResponse)
async def backend_health(store: SubmissionStore = Depends(get_submission_store)):
    status = await store.check_remote()
    backend = status.pop("backend")
    configured = status.pop("configured")
    reachable = status.pop("reachable")
    error = status.pop("error", None)
    status.pop("reason", None)
    return BackendHealthResponse(
        backend=backend,
        configured=configured,
        reachable=reachable,
        error=error,
        details=status,
    )

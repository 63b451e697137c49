"""
Pydantic schemas for the survey HTTP API.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

from workshop_survey.adapter import format_availability_label
from workshop_survey.records import StoredSubmission, SurveyRecord


class SurveyRecordPayload(BaseModel):
    # Presence rules are enforced by workshop_survey.validation so that
    # every failing field is reported at once.
    name: str = ""
    email: str = ""
    phone: str = ""
    studentId: str = ""
    batch: str = ""
    department: str = ""
    experienceLevel: str = ""
    workshopTopics: list[str] = Field(default_factory=list)
    programmingLanguages: list[str] = Field(default_factory=list)
    availability: str = ""
    expectations: str = ""
    additionalComments: Optional[str] = ""

    def to_record(self) -> SurveyRecord:
        return SurveyRecord.from_dict(self.model_dump())


class SubmissionOut(BaseModel):
    id: str
    name: str
    email: str
    phone: str
    studentId: str
    batch: str
    department: str
    experienceLevel: str
    workshopTopics: list[str]
    programmingLanguages: list[str]
    availability: str
    availabilityLabel: str
    expectations: str
    additionalComments: str
    createdAt: Optional[str] = None

    @classmethod
    def from_submission(cls, submission: StoredSubmission) -> "SubmissionOut":
        payload = submission.to_dict()
        payload["availabilityLabel"] = format_availability_label(
            submission.record.availability
        )
        return cls(**payload)


class ValidationResponse(BaseModel):
    errors: dict[str, str]


class CreateSubmissionResponse(BaseModel):
    submission: SubmissionOut
    outcome: Literal["remote", "local_fallback"]
    notice: Optional[str] = None


class OptionItem(BaseModel):
    value: str
    label: str


class SurveyOptionsResponse(BaseModel):
    batches: list[str]
    departments: list[str]
    experienceLevels: list[OptionItem]
    workshopTopics: list[OptionItem]
    programmingLanguages: list[str]
    availability: list[str]


class LoginRequest(BaseModel):
    email: str = Field(..., max_length=254)
    password: str = Field(..., max_length=256)


class LoginResponse(BaseModel):
    sessionId: str


class SubmissionStats(BaseModel):
    total: int
    today: int
    filtered: int


class ListSubmissionsResponse(BaseModel):
    submissions: list[SubmissionOut]
    dataSource: Literal["remote", "local", "none"]
    stats: SubmissionStats
    error: Optional[str] = None


class BackendHealthResponse(BaseModel):
    backend: str
    configured: bool
    reachable: bool
    error: Optional[str] = None
    details: dict = Field(default_factory=dict)

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from app.models.student import StudentStatus
from app.schemas.schedule import DateRange, TimeWindow, WeeklySchedule
from app.services.weekdays import Weekday


class CandidateStatus(str, Enum):
    available = "available"
    busy = "busy"
    time_conflict = "time_conflict"
    day_mismatch = "day_mismatch"
    pending_fees = "pending_fees"
    fees_overdue = "fees_overdue"
    no_orientation = "no_orientation"


def _clean_identifiers(value: list[str]) -> list[str]:
    seen: set[str] = set()
    cleaned: list[str] = []
    for item in value:
        identifier = item.strip()
        if not identifier or identifier in seen:
            continue
        seen.add(identifier)
        cleaned.append(identifier)
    return cleaned


class BatchSpecification(BaseModel):
    """Draft batch to plan against; nothing is persisted."""

    batch_id: str | None = Field(default=None, max_length=36)
    title: str | None = Field(default=None, max_length=200)
    curriculum: list[str] = Field(min_length=1, max_length=50)
    schedule: WeeklySchedule = Field(default_factory=lambda: WeeklySchedule({}))
    date_range: DateRange
    faculty_ids: list[str] = Field(default_factory=list, max_length=100)
    student_statuses: list[StudentStatus] | None = None

    @field_validator("curriculum")
    @classmethod
    def normalize_curriculum(cls, value: list[str]) -> list[str]:
        cleaned = _clean_identifiers(value)
        if not cleaned:
            raise ValueError("Batch must have curriculum specified to suggest candidates")
        return cleaned

    @field_validator("faculty_ids")
    @classmethod
    def normalize_faculty_ids(cls, value: list[str]) -> list[str]:
        return _clean_identifiers(value)


class ConflictingBatch(BaseModel):
    batch_id: str
    title: str
    date_range: DateRange
    weekdays: list[Weekday] = Field(default_factory=list)


class ConflictingWindow(BaseModel):
    batch_id: str
    day: Weekday
    existing: TimeWindow
    proposed: TimeWindow


class CandidateFlags(BaseModel):
    has_overdue_fees: bool = False
    has_pending_fees: bool = False
    conflicting_batches: list[ConflictingBatch] = Field(default_factory=list)
    conflicting_windows: list[ConflictingWindow] = Field(default_factory=list)


class CandidateAmounts(BaseModel):
    overdue: float = 0.0
    pending: float = 0.0


class CandidateResult(BaseModel):
    student_id: str
    name: str
    email: str | None = None
    phone: str | None = None
    status: CandidateStatus
    status_message: str
    flags: CandidateFlags = Field(default_factory=CandidateFlags)
    amounts: CandidateAmounts = Field(default_factory=CandidateAmounts)


class CandidateSuggestionReport(BaseModel):
    candidates: list[CandidateResult]
    summary: dict[CandidateStatus, int]
    total_count: int


class EndDateRequest(BaseModel):
    start_date: date
    curriculum: list[str] = Field(default_factory=list, max_length=50)
    schedule: WeeklySchedule = Field(default_factory=lambda: WeeklySchedule({}))

    @field_validator("curriculum")
    @classmethod
    def normalize_curriculum(cls, value: list[str]) -> list[str]:
        return _clean_identifiers(value)


class EndDateResponse(BaseModel):
    start_date: date
    end_date: date
    total_sessions: int
    unresolved: list[str] = Field(default_factory=list)

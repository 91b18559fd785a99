from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.schemas.schedule import DateRange, TimeWindow, WeeklySchedule
from app.services.weekdays import Weekday


class FacultyAvailabilityRequest(BaseModel):
    faculty_ids: list[str] = Field(min_length=1, max_length=200)
    date_range: DateRange
    # None means the batch meets every day of the range.
    schedule: WeeklySchedule | None = None
    exclude_batch_id: str | None = Field(default=None, max_length=36)

    @field_validator("faculty_ids")
    @classmethod
    def normalize_faculty_ids(cls, value: list[str]) -> list[str]:
        cleaned = list(dict.fromkeys(item.strip() for item in value if item.strip()))
        if not cleaned:
            raise ValueError("At least one faculty id is required")
        return cleaned


class FacultyWindowConflict(BaseModel):
    day: Weekday
    existing: TimeWindow
    proposed: TimeWindow


class FacultyConflictOut(BaseModel):
    batch_id: str
    batch_title: str | None = None
    date_range: DateRange
    weekdays: list[Weekday] = Field(default_factory=list)
    windows: list[FacultyWindowConflict] = Field(default_factory=list)
    reason: Literal["date_overlap", "schedule_overlap"]


class FacultyAvailabilityOut(BaseModel):
    faculty_id: str
    is_available: bool
    conflicts: list[FacultyConflictOut] = Field(default_factory=list)


class FacultyAvailabilityResponse(BaseModel):
    per_faculty: dict[str, FacultyAvailabilityOut]

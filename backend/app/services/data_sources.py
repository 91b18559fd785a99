"""Read-only contracts for the registries the scheduling engine consults.

The engine never writes through these interfaces. Every method is a batched
read for one data category so that a suggestion or availability run costs a
fixed number of round trips regardless of how many students or faculty it
covers.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol

from app.core.exceptions import AppError, UpstreamUnavailableError
from app.models.batch import BatchStatus, EnrollmentStatus
from app.models.student import StudentStatus
from app.schemas.schedule import DateRange, WeeklySchedule

logger = logging.getLogger(__name__)

INACTIVE_BATCH_STATUSES = frozenset({BatchStatus.ended, BatchStatus.cancelled})
INACTIVE_ENROLLMENT_STATUSES = frozenset({EnrollmentStatus.completed, EnrollmentStatus.dropped, EnrollmentStatus.cancelled})


@dataclass(frozen=True)
class StudentRecord:
    student_id: str
    name: str
    email: str | None = None
    phone: str | None = None
    status: StudentStatus = StudentStatus.active
    curriculum_interest: tuple[str, ...] = ()
    schedule: WeeklySchedule | None = None


@dataclass(frozen=True)
class EnrollmentRecord:
    student_id: str
    batch_id: str
    batch_title: str
    date_range: DateRange
    schedule: WeeklySchedule | None = None
    enrollment_status: EnrollmentStatus = EnrollmentStatus.active
    batch_status: BatchStatus = BatchStatus.active

    @property
    def is_active(self) -> bool:
        return (
            self.batch_status not in INACTIVE_BATCH_STATUSES
            and self.enrollment_status not in INACTIVE_ENROLLMENT_STATUSES
        )


@dataclass(frozen=True)
class FeeSummary:
    overdue_amount: float = 0.0
    pending_amount: float = 0.0
    overdue_count: int = 0
    pending_count: int = 0

    @property
    def has_overdue(self) -> bool:
        return self.overdue_count > 0

    @property
    def has_pending(self) -> bool:
        return self.pending_count > 0


@dataclass(frozen=True)
class FacultyAssignment:
    faculty_id: str
    batch_id: str
    date_range: DateRange
    batch_title: str | None = None
    schedule: WeeklySchedule | None = None


OrientationFlags = Mapping[str, bool]


class StudentDirectory(Protocol):
    def list_students(self, statuses: Collection[StudentStatus]) -> list[StudentRecord]: ...


class EnrollmentRegistry(Protocol):
    def enrollments_for_students(self, student_ids: Sequence[str], date_range: DateRange) -> list[EnrollmentRecord]: ...


class BillingLedger(Protocol):
    def fee_summaries(self, student_ids: Sequence[str], today: date) -> dict[str, FeeSummary]: ...


class OrientationRegistry(Protocol):
    def orientation_acceptance(self, student_ids: Sequence[str]) -> dict[str, OrientationFlags]: ...


class FacultyRegistry(Protocol):
    def assignments_for_faculty(self, faculty_ids: Sequence[str], date_range: DateRange) -> list[FacultyAssignment]: ...


@dataclass
class AcademySnapshot:
    """Signals gathered for one suggestion run, keyed by student id."""

    enrollments: dict[str, list[EnrollmentRecord]] = field(default_factory=dict)
    fees: dict[str, FeeSummary] = field(default_factory=dict)
    orientation: dict[str, OrientationFlags] = field(default_factory=dict)


@contextmanager
def upstream_read(source: str) -> Iterator[None]:
    """Turn any failure while reading ``source`` into ``UpstreamUnavailableError``."""
    try:
        yield
    except AppError:
        raise
    except Exception as exc:
        logger.exception("Read from %s failed", source)
        raise UpstreamUnavailableError(source, reason=str(exc)) from exc

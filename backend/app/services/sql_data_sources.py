from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Collection, Iterable, Sequence
from datetime import date

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.batch import Batch, BatchFacultyAssignment, BatchStatus, Enrollment
from app.models.orientation import StudentOrientation
from app.models.payment import PaymentStatus, PaymentTransaction
from app.models.student import Student, StudentStatus
from app.schemas.schedule import DateRange, WeeklySchedule
from app.services.data_sources import (
    EnrollmentRecord,
    FacultyAssignment,
    FeeSummary,
    OrientationFlags,
    StudentRecord,
)

logger = logging.getLogger(__name__)

OUTSTANDING_PAYMENT_STATUSES = frozenset({PaymentStatus.pending, PaymentStatus.partial, PaymentStatus.overdue})


def parse_stored_schedule(raw, *, owner: str) -> WeeklySchedule | None:
    """Parse a schedule column; malformed data is logged and treated as unspecified."""
    try:
        return WeeklySchedule.optional(raw)
    except ValidationError as exc:
        logger.warning("Ignoring malformed schedule on %s: %s", owner, exc.errors(include_url=False))
        return None


def summarize_payments(payments: Iterable[PaymentTransaction], today: date) -> FeeSummary:
    overdue_amount = 0.0
    pending_amount = 0.0
    overdue_count = 0
    pending_count = 0
    for payment in payments:
        if payment.status not in OUTSTANDING_PAYMENT_STATUSES:
            continue
        outstanding = float(payment.amount or 0) - float(payment.paid_amount or 0)
        if outstanding <= 0:
            continue
        if payment.status == PaymentStatus.overdue or (payment.due_date is not None and payment.due_date < today):
            overdue_amount += outstanding
            overdue_count += 1
        else:
            pending_amount += outstanding
            pending_count += 1
    return FeeSummary(
        overdue_amount=round(overdue_amount, 2),
        pending_amount=round(pending_amount, 2),
        overdue_count=overdue_count,
        pending_count=pending_count,
    )


class SqlDataSources:
    """All registry contracts served from the academy database, read only."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def list_students(self, statuses: Collection[StudentStatus]) -> list[StudentRecord]:
        if not statuses:
            return []
        students = (
            self.db.execute(
                select(Student)
                .where(Student.status.in_(list(statuses)))
                .order_by(Student.name.asc(), Student.id.asc())
            )
            .scalars()
            .all()
        )
        return [
            StudentRecord(
                student_id=student.id,
                name=student.name,
                email=student.email,
                phone=student.phone,
                status=student.status,
                curriculum_interest=tuple(str(item) for item in (student.software_list or []) if str(item).strip()),
                schedule=parse_stored_schedule(student.schedule, owner=f"student {student.id}"),
            )
            for student in students
        ]

    def enrollments_for_students(self, student_ids: Sequence[str], date_range: DateRange) -> list[EnrollmentRecord]:
        if not student_ids:
            return []
        rows = self.db.execute(
            select(Enrollment, Batch)
            .join(Batch, Enrollment.batch_id == Batch.id)
            .where(
                Enrollment.student_id.in_(list(student_ids)),
                Batch.start_date <= date_range.end,
                Batch.end_date >= date_range.start,
            )
            .order_by(Batch.start_date.asc(), Batch.id.asc())
        ).all()
        return [
            EnrollmentRecord(
                student_id=enrollment.student_id,
                batch_id=batch.id,
                batch_title=batch.title,
                date_range=DateRange(start=batch.start_date, end=batch.end_date),
                schedule=parse_stored_schedule(batch.schedule, owner=f"batch {batch.id}"),
                enrollment_status=enrollment.status,
                batch_status=batch.status,
            )
            for enrollment, batch in rows
        ]

    def fee_summaries(self, student_ids: Sequence[str], today: date) -> dict[str, FeeSummary]:
        if not student_ids:
            return {}
        payments = (
            self.db.execute(select(PaymentTransaction).where(PaymentTransaction.student_id.in_(list(student_ids))))
            .scalars()
            .all()
        )
        by_student: dict[str, list[PaymentTransaction]] = defaultdict(list)
        for payment in payments:
            by_student[payment.student_id].append(payment)
        return {student_id: summarize_payments(items, today) for student_id, items in by_student.items()}

    def orientation_acceptance(self, student_ids: Sequence[str]) -> dict[str, OrientationFlags]:
        if not student_ids:
            return {}
        records = (
            self.db.execute(select(StudentOrientation).where(StudentOrientation.student_id.in_(list(student_ids))))
            .scalars()
            .all()
        )
        flags: dict[str, dict[str, bool]] = defaultdict(dict)
        for record in records:
            language = record.language.strip().lower()
            flags[record.student_id][language] = flags[record.student_id].get(language, False) or bool(record.accepted)
        return dict(flags)

    def assignments_for_faculty(self, faculty_ids: Sequence[str], date_range: DateRange) -> list[FacultyAssignment]:
        if not faculty_ids:
            return []
        rows = self.db.execute(
            select(BatchFacultyAssignment, Batch)
            .join(Batch, BatchFacultyAssignment.batch_id == Batch.id)
            .where(
                BatchFacultyAssignment.faculty_id.in_(list(faculty_ids)),
                Batch.status != BatchStatus.cancelled,
                Batch.start_date <= date_range.end,
                Batch.end_date >= date_range.start,
            )
            .order_by(Batch.start_date.asc(), Batch.id.asc())
        ).all()
        return [
            FacultyAssignment(
                faculty_id=assignment.faculty_id,
                batch_id=batch.id,
                batch_title=batch.title,
                date_range=DateRange(start=batch.start_date, end=batch.end_date),
                schedule=parse_stored_schedule(batch.schedule, owner=f"batch {batch.id}"),
            )
            for assignment, batch in rows
        ]

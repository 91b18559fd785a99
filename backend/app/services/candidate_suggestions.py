from __future__ import annotations

import logging
from collections import Counter, defaultdict
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date

from app.core.config import Settings, get_settings
from app.core.exceptions import ConfigurationError
from app.models.student import StudentStatus
from app.schemas.batch import (
    BatchSpecification,
    CandidateAmounts,
    CandidateFlags,
    CandidateResult,
    CandidateStatus,
    CandidateSuggestionReport,
    ConflictingBatch,
    ConflictingWindow,
)
from app.services.curriculum_catalog import CurriculumCatalog
from app.services.data_sources import (
    AcademySnapshot,
    BillingLedger,
    EnrollmentRecord,
    EnrollmentRegistry,
    FeeSummary,
    OrientationFlags,
    OrientationRegistry,
    StudentDirectory,
    StudentRecord,
    upstream_read,
)
from app.services.schedule_overlap import ScheduleOverlap, detect_overlap

logger = logging.getLogger(__name__)

STATUS_RANK = {
    CandidateStatus.available: 0,
    CandidateStatus.busy: 1,
    CandidateStatus.time_conflict: 2,
    CandidateStatus.day_mismatch: 3,
    CandidateStatus.pending_fees: 4,
    CandidateStatus.fees_overdue: 5,
    CandidateStatus.no_orientation: 6,
}


@dataclass(frozen=True)
class EnrollmentClash:
    enrollment: EnrollmentRecord
    overlap: ScheduleOverlap | None

    @property
    def is_unspecified(self) -> bool:
        return self.overlap is None


@dataclass(frozen=True)
class CandidateContext:
    """Everything known about one student relative to the draft batch."""

    student: StudentRecord
    spec: BatchSpecification
    fees: FeeSummary
    orientation_accepted: bool
    preference_overlap: ScheduleOverlap | None
    time_clashes: tuple[EnrollmentClash, ...]
    unspecified_clashes: tuple[EnrollmentClash, ...]


def lacks_orientation(context: CandidateContext) -> bool:
    return not context.orientation_accepted


def has_overdue_fees(context: CandidateContext) -> bool:
    return context.fees.has_overdue


def has_pending_fees(context: CandidateContext) -> bool:
    return context.fees.has_pending


def shares_no_day(context: CandidateContext) -> bool:
    return context.preference_overlap is not None and not context.preference_overlap.has_day_match


def collides_with_enrollment(context: CandidateContext) -> bool:
    return bool(context.time_clashes)


def overlaps_unscheduled_enrollment(context: CandidateContext) -> bool:
    return bool(context.unspecified_clashes)


@dataclass(frozen=True)
class ClassificationRule:
    status: CandidateStatus
    applies: Callable[[CandidateContext], bool]


# Evaluated in order; the first rule that applies decides the status.
CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(CandidateStatus.no_orientation, lacks_orientation),
    ClassificationRule(CandidateStatus.fees_overdue, has_overdue_fees),
    ClassificationRule(CandidateStatus.pending_fees, has_pending_fees),
    ClassificationRule(CandidateStatus.day_mismatch, shares_no_day),
    ClassificationRule(CandidateStatus.time_conflict, collides_with_enrollment),
    ClassificationRule(CandidateStatus.busy, overlaps_unscheduled_enrollment),
)


def classify(context: CandidateContext, rules: Sequence[ClassificationRule] = CLASSIFICATION_RULES) -> CandidateStatus:
    for rule in rules:
        if rule.applies(context):
            return rule.status
    return CandidateStatus.available


def _day_list(days: Iterable) -> str:
    return ", ".join(day.value for day in days)


def _batch_count(count: int) -> str:
    return f"{count} batch(es)"


class CandidateSuggestionEngine:
    """Classifies and ranks students for a draft batch.

    Each registry is read once per call. A failed read aborts the call with
    ``UpstreamUnavailableError``; no partial list is returned.
    """

    def __init__(
        self,
        *,
        students: StudentDirectory,
        enrollments: EnrollmentRegistry,
        billing: BillingLedger,
        orientation: OrientationRegistry,
        catalog: CurriculumCatalog,
        settings: Settings | None = None,
    ) -> None:
        self.students = students
        self.enrollments = enrollments
        self.billing = billing
        self.orientation = orientation
        self.catalog = catalog
        self.settings = settings or get_settings()

    def suggest(self, spec: BatchSpecification, *, today: date | None = None) -> CandidateSuggestionReport:
        today = today or date.today()
        statuses = self._pool_statuses(spec)

        with upstream_read("student_directory"):
            pool = self.students.list_students(statuses)

        interested = [
            student for student in pool if self.catalog.matches_any(student.curriculum_interest, spec.curriculum)
        ]
        snapshot = self._load_snapshot([student.student_id for student in interested], spec, today)

        candidates = [self._evaluate(student, spec, snapshot) for student in interested]
        candidates.sort(key=lambda item: (STATUS_RANK[item.status], item.name.casefold(), item.student_id))

        counts = Counter(item.status for item in candidates)
        summary = {status: counts.get(status, 0) for status in CandidateStatus}
        logger.info(
            "Suggested %d candidate(s) out of %d student(s) for %s (%s)",
            len(candidates),
            len(pool),
            spec.title or spec.batch_id or "draft batch",
            ", ".join(f"{status.value}={count}" for status, count in summary.items() if count),
        )
        return CandidateSuggestionReport(candidates=candidates, summary=summary, total_count=len(candidates))

    def _pool_statuses(self, spec: BatchSpecification) -> list[StudentStatus]:
        if spec.student_statuses:
            return list(dict.fromkeys(spec.student_statuses))
        try:
            return [StudentStatus(value) for value in self.settings.default_student_statuses]
        except ValueError as exc:
            raise ConfigurationError(f"Invalid default student status: {exc}") from exc

    def _load_snapshot(self, student_ids: list[str], spec: BatchSpecification, today: date) -> AcademySnapshot:
        snapshot = AcademySnapshot()
        if not student_ids:
            return snapshot

        with upstream_read("enrollment_registry"):
            enrollments = self.enrollments.enrollments_for_students(student_ids, spec.date_range)
        with upstream_read("billing_ledger"):
            snapshot.fees = dict(self.billing.fee_summaries(student_ids, today))
        with upstream_read("orientation_registry"):
            snapshot.orientation = dict(self.orientation.orientation_acceptance(student_ids))

        grouped: dict[str, list[EnrollmentRecord]] = defaultdict(list)
        for enrollment in enrollments:
            grouped[enrollment.student_id].append(enrollment)
        snapshot.enrollments = dict(grouped)

        missing_fees = [student_id for student_id in student_ids if student_id not in snapshot.fees]
        if missing_fees:
            logger.info(
                "No fee data for %d student(s); treating them as %s",
                len(missing_fees),
                self.settings.missing_fee_status_policy,
            )
        return snapshot

    def _fees_for(self, student_id: str, snapshot: AcademySnapshot) -> FeeSummary:
        fees = snapshot.fees.get(student_id)
        if fees is not None:
            return fees
        if self.settings.missing_fee_status_policy == "pending":
            return FeeSummary(pending_count=1)
        return FeeSummary()

    def _orientation_accepted(self, flags: OrientationFlags | None) -> bool:
        if not flags:
            return False
        return any(flags.get(language, False) for language in self.settings.orientation_languages)

    def _enrollment_clashes(
        self, spec: BatchSpecification, enrollments: Iterable[EnrollmentRecord]
    ) -> tuple[list[EnrollmentClash], list[EnrollmentClash]]:
        timed: list[EnrollmentClash] = []
        unspecified: list[EnrollmentClash] = []
        for enrollment in enrollments:
            if not enrollment.is_active:
                continue
            if spec.batch_id is not None and enrollment.batch_id == spec.batch_id:
                continue
            if not enrollment.date_range.overlaps(spec.date_range):
                continue
            if enrollment.schedule is None or enrollment.schedule.is_empty or spec.schedule.is_empty:
                unspecified.append(EnrollmentClash(enrollment=enrollment, overlap=None))
                continue
            overlap = detect_overlap(enrollment.schedule, spec.schedule)
            if overlap.conflicting_days():
                timed.append(EnrollmentClash(enrollment=enrollment, overlap=overlap))
        return timed, unspecified

    def _evaluate(self, student: StudentRecord, spec: BatchSpecification, snapshot: AcademySnapshot) -> CandidateResult:
        timed, unspecified = self._enrollment_clashes(spec, snapshot.enrollments.get(student.student_id, []))
        preference_overlap = None
        if student.schedule is not None and not student.schedule.is_empty and not spec.schedule.is_empty:
            preference_overlap = detect_overlap(student.schedule, spec.schedule)

        context = CandidateContext(
            student=student,
            spec=spec,
            fees=self._fees_for(student.student_id, snapshot),
            orientation_accepted=self._orientation_accepted(snapshot.orientation.get(student.student_id)),
            preference_overlap=preference_overlap,
            time_clashes=tuple(timed),
            unspecified_clashes=tuple(unspecified),
        )
        status = classify(context)

        conflicting_batches: list[ConflictingBatch] = []
        seen_batches: set[str] = set()
        for clash in (*timed, *unspecified):
            enrollment = clash.enrollment
            if enrollment.batch_id in seen_batches:
                continue
            seen_batches.add(enrollment.batch_id)
            conflicting_batches.append(
                ConflictingBatch(
                    batch_id=enrollment.batch_id,
                    title=enrollment.batch_title,
                    date_range=enrollment.date_range,
                    weekdays=list(clash.overlap.conflicting_days()) if clash.overlap is not None else [],
                )
            )
        conflicting_windows = [
            ConflictingWindow(
                batch_id=clash.enrollment.batch_id,
                day=collision.day,
                existing=collision.existing,
                proposed=collision.proposed,
            )
            for clash in timed
            for collision in clash.overlap.collisions
        ]

        return CandidateResult(
            student_id=student.student_id,
            name=student.name,
            email=student.email,
            phone=student.phone,
            status=status,
            status_message=self._status_message(status, context),
            flags=CandidateFlags(
                has_overdue_fees=context.fees.has_overdue,
                has_pending_fees=context.fees.has_pending,
                conflicting_batches=conflicting_batches,
                conflicting_windows=conflicting_windows,
            ),
            amounts=CandidateAmounts(
                overdue=context.fees.overdue_amount,
                pending=context.fees.pending_amount,
            ),
        )

    def _status_message(self, status: CandidateStatus, context: CandidateContext) -> str:
        currency = self.settings.currency_symbol
        if status == CandidateStatus.no_orientation:
            return "Orientation not accepted"
        if status == CandidateStatus.fees_overdue:
            return f"Fees overdue ({currency}{context.fees.overdue_amount:.2f})"
        if status == CandidateStatus.pending_fees:
            return f"Fees pending ({currency}{context.fees.pending_amount:.2f})"
        if status == CandidateStatus.day_mismatch:
            return (
                f"Day mismatch - student prefers {_day_list(context.student.schedule.days)}, "
                f"batch meets {_day_list(context.spec.schedule.days)}"
            )
        if status == CandidateStatus.time_conflict:
            titles = ", ".join(clash.enrollment.batch_title for clash in context.time_clashes)
            return f"Time conflict - {_batch_count(len(context.time_clashes))}: {titles}"
        if status == CandidateStatus.busy:
            return f"Busy - {_batch_count(len(context.unspecified_clashes))}"
        return "Available for enrollment"

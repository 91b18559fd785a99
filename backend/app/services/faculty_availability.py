from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable

from app.schemas.faculty import (
    FacultyAvailabilityOut,
    FacultyAvailabilityResponse,
    FacultyConflictOut,
    FacultyWindowConflict,
)
from app.schemas.schedule import DateRange, WeeklySchedule
from app.services.data_sources import FacultyAssignment, FacultyRegistry, upstream_read
from app.services.schedule_overlap import detect_overlap

logger = logging.getLogger(__name__)


class FacultyAvailabilityChecker:
    def __init__(self, registry: FacultyRegistry) -> None:
        self.registry = registry

    def check(
        self,
        faculty_ids: Iterable[str],
        date_range: DateRange,
        schedule: WeeklySchedule | None = None,
        *,
        exclude_batch_id: str | None = None,
    ) -> FacultyAvailabilityResponse:
        ids = list(dict.fromkeys(faculty_id for faculty_id in faculty_ids if faculty_id))
        if not ids:
            return FacultyAvailabilityResponse(per_faculty={})

        with upstream_read("faculty_registry"):
            assignments = self.registry.assignments_for_faculty(ids, date_range)

        by_faculty: dict[str, list[FacultyAssignment]] = defaultdict(list)
        for assignment in assignments:
            by_faculty[assignment.faculty_id].append(assignment)

        per_faculty: dict[str, FacultyAvailabilityOut] = {}
        for faculty_id in ids:
            conflicts: list[FacultyConflictOut] = []
            for assignment in by_faculty.get(faculty_id, []):
                if exclude_batch_id is not None and assignment.batch_id == exclude_batch_id:
                    continue
                conflict = assignment_conflict(assignment, date_range, schedule)
                if conflict is not None:
                    conflicts.append(conflict)
            per_faculty[faculty_id] = FacultyAvailabilityOut(
                faculty_id=faculty_id,
                is_available=not conflicts,
                conflicts=conflicts,
            )

        busy = sum(1 for item in per_faculty.values() if not item.is_available)
        logger.info(
            "Faculty availability for %s..%s: %d checked, %d with conflicts",
            date_range.start,
            date_range.end,
            len(ids),
            busy,
        )
        return FacultyAvailabilityResponse(per_faculty=per_faculty)


def assignment_conflict(
    assignment: FacultyAssignment,
    date_range: DateRange,
    schedule: WeeklySchedule | None,
) -> FacultyConflictOut | None:
    """Conflict raised by one existing assignment, or ``None`` when it does not clash.

    Without a schedule on either side the date overlap alone is a conflict. With
    both schedules, a shared weekday clashes when the windows intersect or when
    one side has no time for that day.
    """
    if not assignment.date_range.overlaps(date_range):
        return None

    if assignment.schedule is None or schedule is None:
        known = assignment.schedule if assignment.schedule is not None else schedule
        return FacultyConflictOut(
            batch_id=assignment.batch_id,
            batch_title=assignment.batch_title,
            date_range=assignment.date_range,
            weekdays=known.days if known is not None else [],
            reason="date_overlap",
        )

    overlap = detect_overlap(assignment.schedule, schedule)
    weekdays = overlap.conflicting_days()
    if not weekdays:
        return None
    return FacultyConflictOut(
        batch_id=assignment.batch_id,
        batch_title=assignment.batch_title,
        date_range=assignment.date_range,
        weekdays=list(weekdays),
        windows=[
            FacultyWindowConflict(day=collision.day, existing=collision.existing, proposed=collision.proposed)
            for collision in overlap.collisions
        ],
        reason="schedule_overlap",
    )

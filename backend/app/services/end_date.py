from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta

from app.core.exceptions import SchedulerError
from app.schemas.schedule import WeeklySchedule
from app.services.curriculum_catalog import CurriculumCatalog
from app.services.weekdays import Weekday

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class EndDateProjection:
    start_date: date
    end_date: date
    total_sessions: int
    unresolved: tuple[str, ...] = ()


def project_end_date(start_date: date, total_sessions: int, schedule: WeeklySchedule | None) -> date:
    """Date of the last session needed to cover ``total_sessions``.

    With no schedule one session is counted per calendar day. Otherwise the first
    scheduled weekday on or after ``start_date`` is session one and only
    scheduled weekdays count from there.
    """
    if total_sessions < 0:
        raise SchedulerError("Required session count cannot be negative", details={"total_sessions": total_sessions})
    if total_sessions == 0:
        return start_date
    if schedule is None or schedule.is_empty:
        return start_date + timedelta(days=total_sessions)

    meeting_days = set(schedule.days)
    current = start_date
    while Weekday.from_date(current) not in meeting_days:
        current += ONE_DAY

    sessions = 1
    while sessions < total_sessions:
        current += ONE_DAY
        if Weekday.from_date(current) in meeting_days:
            sessions += 1
    return current


def project_batch_end_date(
    start_date: date,
    identifiers: Iterable[str],
    schedule: WeeklySchedule | None,
    catalog: CurriculumCatalog,
) -> EndDateProjection:
    resolution = catalog.resolve_all(identifiers)
    end_date = project_end_date(start_date, resolution.total_sessions, schedule)
    return EndDateProjection(
        start_date=start_date,
        end_date=end_date,
        total_sessions=resolution.total_sessions,
        unresolved=resolution.unresolved,
    )

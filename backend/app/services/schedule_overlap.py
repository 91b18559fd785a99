from __future__ import annotations

from dataclasses import dataclass, field

from app.schemas.schedule import TimeWindow, WeeklySchedule
from app.services.weekdays import Weekday


@dataclass(frozen=True)
class WindowCollision:
    day: Weekday
    existing: TimeWindow
    proposed: TimeWindow


@dataclass(frozen=True)
class ScheduleOverlap:
    """Result of comparing two weekly schedules.

    ``day_matches`` lists the weekdays both schedules meet on. ``time_matches``
    holds, per shared weekday, whether the two windows intersect, or ``None``
    when at least one side has no window for that day.
    """

    day_matches: tuple[Weekday, ...] = ()
    time_matches: dict[Weekday, bool | None] = field(default_factory=dict)
    collisions: tuple[WindowCollision, ...] = ()

    @property
    def has_day_match(self) -> bool:
        return bool(self.day_matches)

    def conflicting_days(self, *, missing_time_conflicts: bool = True) -> tuple[Weekday, ...]:
        """Shared weekdays that count as a clash.

        A missing window is treated as unbounded unless ``missing_time_conflicts``
        is turned off.
        """
        return tuple(
            day
            for day in self.day_matches
            if self.time_matches.get(day) is True
            or (missing_time_conflicts and self.time_matches.get(day) is None)
        )


def detect_overlap(existing: WeeklySchedule, proposed: WeeklySchedule) -> ScheduleOverlap:
    """Compare two schedules day by day.

    An empty schedule on either side never matches anything.
    """
    if existing.is_empty or proposed.is_empty:
        return ScheduleOverlap()

    day_matches: list[Weekday] = []
    time_matches: dict[Weekday, bool | None] = {}
    collisions: list[WindowCollision] = []
    for day, existing_window in existing.items():
        if day not in proposed:
            continue
        day_matches.append(day)
        proposed_window = proposed.window(day)
        if existing_window is None or proposed_window is None:
            time_matches[day] = None
            continue
        intersects = existing_window.intersects(proposed_window)
        time_matches[day] = intersects
        if intersects:
            collisions.append(WindowCollision(day=day, existing=existing_window, proposed=proposed_window))

    return ScheduleOverlap(
        day_matches=tuple(day_matches),
        time_matches=time_matches,
        collisions=tuple(collisions),
    )

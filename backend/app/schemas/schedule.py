from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from datetime import date, time
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, RootModel, field_serializer, field_validator, model_validator

from app.services.weekdays import WEEKDAY_ORDER, Weekday, normalize_weekday

logger = logging.getLogger(__name__)

TIME_PATTERN = re.compile(r"^(\d{1,2}):([0-5]\d)(?::([0-5]\d))?\s*([AaPp][Mm])?$")

START_KEYS = ("start", "startTime", "start_time")
END_KEYS = ("end", "endTime", "end_time")


def parse_clock_time(value: Any) -> time:
    """Parse ``HH:MM``, ``HH:MM:SS`` or ``h:MM AM/PM`` into a ``time``."""
    if isinstance(value, time):
        return value
    match = TIME_PATTERN.match(str(value).strip())
    if not match:
        raise ValueError("Time must be in HH:MM 24-hour or h:MM AM/PM format")
    hours = int(match.group(1))
    minutes = int(match.group(2))
    seconds = int(match.group(3) or 0)
    period = match.group(4)
    if period:
        if not 1 <= hours <= 12:
            raise ValueError("12-hour times must use hours 1-12")
        if period.upper() == "PM" and hours != 12:
            hours += 12
        elif period.upper() == "AM" and hours == 12:
            hours = 0
    elif hours > 23:
        raise ValueError("Hours must be between 00 and 23")
    return time(hours, minutes, seconds)


def _first_present(payload: Mapping, keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = payload.get(key)
        if value not in (None, ""):
            return value
    return None


class TimeWindow(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: time = Field(validation_alias=AliasChoices(*START_KEYS))
    end: time = Field(validation_alias=AliasChoices(*END_KEYS))

    @field_validator("start", "end", mode="before")
    @classmethod
    def parse_time(cls, value: Any) -> time:
        return parse_clock_time(value)

    @model_validator(mode="after")
    def validate_order(self) -> "TimeWindow":
        if self.end <= self.start:
            raise ValueError("end must be after start; windows crossing midnight are not supported")
        return self

    @field_serializer("start", "end")
    def serialize_time(self, value: time) -> str:
        return value.strftime("%H:%M")

    def intersects(self, other: "TimeWindow") -> bool:
        return self.start < other.end and other.start < self.end


def _window_payload(day: Weekday, raw: Any) -> Any:
    if raw is None or raw is True or isinstance(raw, TimeWindow):
        return None if raw is True else raw
    if isinstance(raw, Mapping):
        start = _first_present(raw, START_KEYS)
        end = _first_present(raw, END_KEYS)
        if start is None and end is None:
            return None
        if start is None or end is None:
            logger.warning("Ignoring half-specified time window on %s: %r", day.value, dict(raw))
            return None
        return {"start": start, "end": end}
    raise ValueError("Schedule entries must map a day to a time window")


class WeeklySchedule(RootModel[dict[Weekday, TimeWindow | None]]):
    """Recurring weekly pattern keyed by canonical weekday.

    A weekday mapped to ``None`` meets on that day with no known time window.
    An empty schedule means the pattern is unspecified.
    """

    root: dict[Weekday, TimeWindow | None] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def coerce_representation(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, WeeklySchedule):
            return dict(value.root)

        if isinstance(value, Mapping):
            pairs = list(value.items())
        elif isinstance(value, (list, tuple, set)):
            pairs = []
            for item in value:
                if isinstance(item, Mapping):
                    pairs.append((item.get("day"), item))
                else:
                    pairs.append((item, None))
        else:
            raise ValueError("Schedule must be a mapping of days or a list of day entries")

        normalized: dict[Weekday, Any] = {}
        for token, raw_window in pairs:
            if raw_window is False:
                continue
            day = normalize_weekday(token)
            if day is None:
                logger.warning("Ignoring unrecognized weekday token %r in schedule", token)
                continue
            if day in normalized:
                raise ValueError(f"Duplicate schedule entry for {day.value}")
            normalized[day] = _window_payload(day, raw_window)
        return {day: normalized[day] for day in WEEKDAY_ORDER if day in normalized}

    def __contains__(self, day: object) -> bool:
        return normalize_weekday(day) in self.root

    @property
    def days(self) -> list[Weekday]:
        return list(self.root)

    @property
    def is_empty(self) -> bool:
        return not self.root

    def window(self, day: Weekday) -> TimeWindow | None:
        return self.root.get(day)

    def items(self):
        return self.root.items()

    @classmethod
    def optional(cls, value: Any) -> "WeeklySchedule | None":
        """Parse ``value`` keeping ``None`` (no schedule at all) distinct from empty."""
        if value is None:
            return None
        return cls.model_validate(value)


class DateRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: date = Field(validation_alias=AliasChoices("start", "startDate", "start_date"))
    end: date = Field(validation_alias=AliasChoices("end", "endDate", "end_date"))

    @model_validator(mode="after")
    def validate_order(self) -> "DateRange":
        if self.end < self.start:
            raise ValueError("end date must not be before start date")
        return self

    def overlaps(self, other: "DateRange") -> bool:
        return self.start <= other.end and other.start <= self.end

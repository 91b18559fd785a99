from __future__ import annotations

from datetime import date
from enum import Enum


class Weekday(str, Enum):
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"
    saturday = "Saturday"
    sunday = "Sunday"

    @property
    def short(self) -> str:
        return self.value[:3]

    @classmethod
    def from_date(cls, value: date) -> "Weekday":
        return WEEKDAY_ORDER[value.weekday()]


WEEKDAY_ORDER: tuple[Weekday, ...] = (
    Weekday.monday,
    Weekday.tuesday,
    Weekday.wednesday,
    Weekday.thursday,
    Weekday.friday,
    Weekday.saturday,
    Weekday.sunday,
)

_FULL_NAMES = {day.value.lower(): day for day in WEEKDAY_ORDER}
_SHORT_NAMES = {day.short.lower(): day for day in WEEKDAY_ORDER}
# Monday=1 ... Sunday=7
_ISO_NUMBERS = {str(index + 1): day for index, day in enumerate(WEEKDAY_ORDER)}
# Sunday=0 ... Saturday=6
_ZERO_BASED_NUMBERS = {str((index + 1) % 7): day for index, day in enumerate(WEEKDAY_ORDER)}


def normalize_weekday(token: str | int | Weekday | None) -> Weekday | None:
    """Map a weekday token to its canonical ``Weekday``.

    Named forms are tried before numeric ones: full English name, then the
    three-letter abbreviation (both case-insensitive), then ISO numbering and
    finally zero-based numbering. ``"0"`` and ``"7"`` both mean Sunday.
    Returns ``None`` for anything unrecognized.
    """
    if token is None or isinstance(token, bool):
        return None
    if isinstance(token, Weekday):
        return token
    text = str(token).strip()
    if not text:
        return None

    lowered = text.lower()
    if lowered in _FULL_NAMES:
        return _FULL_NAMES[lowered]
    if lowered in _SHORT_NAMES:
        return _SHORT_NAMES[lowered]
    if text in _ISO_NUMBERS:
        return _ISO_NUMBERS[text]
    return _ZERO_BASED_NUMBERS.get(text)

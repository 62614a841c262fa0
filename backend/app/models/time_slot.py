from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class Day(str, Enum):
    mon = "Mon"
    tue = "Tue"
    wed = "Wed"
    thu = "Thu"
    fri = "Fri"
    sat = "Sat"
    sun = "Sun"

    @property
    def order(self) -> int:
        return _DAY_ORDER[self]

    @classmethod
    def parse(cls, value: "str | Day") -> "Day":
        if isinstance(value, Day):
            return value
        key = str(value).strip()[:3].title()
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Invalid day value: {value!r}") from None


_DAY_ORDER = {day: index for index, day in enumerate(Day)}


@dataclass(frozen=True)
class TimeSlot:
    id: str
    day: Day
    start_time: str
    end_time: str
    label: str = ""

    @property
    def start_minutes(self) -> int:
        return parse_time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return parse_time_to_minutes(self.end_time)

    @property
    def display(self) -> str:
        return self.label or f"{self.day.value} {self.start_time}-{self.end_time}"

    def sort_key(self) -> tuple[int, int, str]:
        """Canonical week order: day, then start time, then id."""
        return (self.day.order, self.start_minutes, self.id)

    def overlaps(self, other: "TimeSlot") -> bool:
        if self.day != other.day:
            return False
        return max(self.start_minutes, other.start_minutes) < min(self.end_minutes, other.end_minutes)

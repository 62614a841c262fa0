from dataclasses import dataclass


@dataclass(frozen=True)
class Subject:
    id: str
    name: str
    department: str
    weekly_periods: int = 1

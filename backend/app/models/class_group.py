from dataclasses import dataclass


@dataclass(frozen=True)
class ClassGroup:
    id: str
    department: str
    label: str
    student_count: int = 0

from dataclasses import dataclass


@dataclass(frozen=True)
class Room:
    id: str
    name: str
    capacity: int
    building: str = ""

    def sort_key(self) -> tuple[int, str]:
        return (self.capacity, self.id)

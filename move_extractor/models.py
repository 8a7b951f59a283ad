"""Data types shared by the extraction engine.

Move is the unit of extraction. ScanContext carries the last-seen date, time
and cumulative vehicle counts across lines of a single email body.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict


@dataclass
class VehicleCounts:
    truck: int = 0
    van: int = 0
    car: int = 0

    def total(self) -> int:
        return self.truck + self.van + self.car

    def add(self, other: "VehicleCounts") -> None:
        self.truck += other.truck
        self.van += other.van
        self.car += other.car

    def copy(self) -> "VehicleCounts":
        return VehicleCounts(self.truck, self.van, self.car)


@dataclass
class Move:
    """One candidate dispatch record.

    date is ``DD/MM/`` (no year), time is ``HH:MM`` 24-hour. Any field may be
    empty; a Move is only kept at flush time if one of date, time, origin or
    destination is set.
    """

    date: str = ""
    time: str = ""
    origin: str = ""
    destination: str = ""
    counts: VehicleCounts = field(default_factory=VehicleCounts)

    def has_content(self) -> bool:
        return bool(self.date or self.time or self.origin or self.destination)

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class ScanContext:
    """Per-email scanning state. Created empty for each scan, never shared."""

    date: str = ""
    time: str = ""
    counts: VehicleCounts = field(default_factory=VehicleCounts)

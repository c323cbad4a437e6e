"""Data structures for Graphite data points."""
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable


@dataclass(frozen=True)
class DataPoint:
    """A single (path, timestamp, value) sample returned by Graphite."""
    path: str
    timestamp: datetime
    value: float

    def unix_time(self) -> int:
        """Timestamp as integer seconds since the epoch."""
        return int(self.timestamp.timestamp())

    def latest(self, other: "DataPoint") -> "DataPoint":
        """Return self if it is strictly newer than other, otherwise other."""
        if self.timestamp > other.timestamp:
            return self
        return other


def longest_path(points: Iterable[DataPoint]) -> int:
    """Length of the longest path, used to align the long output."""
    return max((len(p.path) for p in points), default=0)

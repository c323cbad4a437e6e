"""Threshold classification and per-state statistics."""
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, List, Sequence, Tuple

import numpy as np

from check_graphite.series import DataPoint, longest_path


class Direction(str, Enum):
    """Which side of a threshold is considered bad."""
    GT = "gt"
    LT = "lt"

    @classmethod
    def parse(cls, value) -> "Direction":
        """Anything other than "gt" means less-than."""
        if isinstance(value, Direction):
            return value
        if str(value) == cls.GT.value:
            return cls.GT
        return cls.LT

    @property
    def word(self) -> str:
        return "above" if self is Direction.GT else "below"


class Severity(IntEnum):
    """Plugin states; the integer value is the process exit code."""
    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3


def triggers(direction: Direction, value: float, threshold: float) -> bool:
    """Inclusive threshold comparison in the given direction."""
    if direction is Direction.GT:
        return value >= threshold
    return value <= threshold


def partition(
    points: Sequence[DataPoint],
    direction: Direction,
    warning: float,
    critical: float
) -> Tuple[List[DataPoint], List[DataPoint], List[DataPoint]]:
    """
    Split points into OK, WARNING and CRITICAL groups.

    Critical is checked first, so a point past both thresholds is only
    counted as critical. Each group is sorted worst-first; the sort is
    stable, so equal values keep their input order.

    Returns:
        (ok, warning, critical)
    """
    direction = Direction.parse(direction)
    ok, warn, crit = [], [], []
    for point in points:
        if triggers(direction, point.value, critical):
            crit.append(point)
        elif triggers(direction, point.value, warning):
            warn.append(point)
        else:
            ok.append(point)

    reverse = direction is Direction.GT
    return (
        sorted(ok, key=lambda p: p.value, reverse=reverse),
        sorted(warn, key=lambda p: p.value, reverse=reverse),
        sorted(crit, key=lambda p: p.value, reverse=reverse),
    )


def _values(points: Sequence[DataPoint]) -> np.ndarray:
    return np.fromiter((p.value for p in points), dtype=np.float64, count=len(points))


def avg(points: Sequence[DataPoint]) -> float:
    """Mean value, 0 for an empty set."""
    if not points:
        return 0.0
    return float(np.mean(_values(points)))


def maximum(points: Sequence[DataPoint]) -> float:
    """Highest value, 0 for an empty set."""
    if not points:
        return 0.0
    return float(np.max(_values(points)))


def minimum(points: Sequence[DataPoint]) -> float:
    """Lowest value, 0 for an empty set."""
    if not points:
        return 0.0
    return float(np.min(_values(points)))


@dataclass(frozen=True)
class Stats:
    """Aggregate values for one state."""
    avg: float = 0.0
    min: float = 0.0
    max: float = 0.0

    @classmethod
    def of(cls, points: Sequence[DataPoint]) -> "Stats":
        return cls(avg=avg(points), min=minimum(points), max=maximum(points))


@dataclass
class Classification:
    """Result of classifying one fetch, consumed by the report formatter."""
    severity: Severity
    partitions: Dict[Severity, List[DataPoint]]
    stats: Dict[Severity, Stats]
    align: int
    response_time: float
    direction: Direction = Direction.GT

    def count(self, severity: Severity) -> int:
        return len(self.partitions.get(severity, []))

    def active_stats(self) -> Stats:
        return self.stats.get(self.severity, Stats())


def worst_severity(ok: Sequence, warn: Sequence, crit: Sequence) -> Severity:
    """First non-empty state in CRITICAL, WARNING, OK order; UNKNOWN if none."""
    if crit:
        return Severity.CRITICAL
    if warn:
        return Severity.WARNING
    if ok:
        return Severity.OK
    return Severity.UNKNOWN


def classify(
    points: Sequence[DataPoint],
    direction: Direction,
    warning: float,
    critical: float,
    response_time: float = 0.0
) -> Classification:
    """Partition points, compute stats per state and pick the overall state."""
    direction = Direction.parse(direction)
    ok, warn, crit = partition(points, direction, warning, critical)
    partitions = {
        Severity.CRITICAL: crit,
        Severity.WARNING: warn,
        Severity.OK: ok,
    }
    return Classification(
        severity=worst_severity(ok, warn, crit),
        partitions=partitions,
        stats={sev: Stats.of(group) for sev, group in partitions.items()},
        align=longest_path(points),
        response_time=response_time,
        direction=direction,
    )

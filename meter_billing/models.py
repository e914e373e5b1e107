from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Dict, List

from .errors import UnknownEnergyTypeError


class EnergyType(IntEnum):
    ELECTRICITY = 1
    GAS = 2

    @classmethod
    def from_code(cls, code: object) -> "EnergyType":
        try:
            return cls(code)
        except ValueError as exc:
            raise UnknownEnergyTypeError(code) from exc


@dataclass(frozen=True)
class Reading:
    """Cumulative meter counter read at a point in time.

    ``usage`` is in the native unit of the energy type: watt-hours for
    electricity, raw gas units for gas. ``energy_type`` keeps the raw code
    when it is not a known ``EnergyType``.
    """

    meter_id: int
    energy_type: int
    usage: float
    timestamp: datetime
    line: int | None = None


@dataclass(frozen=True)
class BatchIssue:
    """Data-quality problem found in one row or reading pair."""

    code: str
    message: str
    row: int | None = None
    meter_id: int | None = None


@dataclass(frozen=True)
class ReadingBatch:
    """Readings grouped per meter, with a zeroed totals table."""

    series: Dict[int, List[Reading]]
    totals: Dict[int, float]
    issues: List[BatchIssue] = field(default_factory=list)
    row_count: int = 0

    @property
    def skipped_rows(self) -> int:
        return sum(1 for issue in self.issues if issue.code == "malformed_row")

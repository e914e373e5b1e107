from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Mapping

from .models import BatchIssue, ReadingBatch

OUTPUT_HEADER = ("id", "cost")
_CENT = Decimal("0.01")


@dataclass
class BillingReport:
    """Outcome of one batch run: per-meter costs plus data-quality counters."""

    row_count: int = 0
    skipped_rows: int = 0
    anomalous_deltas: int = 0
    issues: List[BatchIssue] = field(default_factory=list)
    costs: Dict[int, float] = field(default_factory=dict)

    @classmethod
    def for_batch(cls, batch: ReadingBatch) -> "BillingReport":
        return cls(
            row_count=batch.row_count,
            skipped_rows=batch.skipped_rows,
            issues=list(batch.issues),
        )

    @property
    def unknown_energy_types(self) -> int:
        return sum(1 for issue in self.issues if issue.code == "unknown_energy_type")

    def summary(self) -> Dict[str, int]:
        return {
            "meters": len(self.costs),
            "rows": self.row_count,
            "skipped_rows": self.skipped_rows,
            "anomalous_deltas": self.anomalous_deltas,
            "unknown_energy_types": self.unknown_energy_types,
        }


def round_cost(value: float) -> float:
    """Round to cents, half away from zero, on the shortest decimal form.

    ``repr`` gives the digits a reader sees, so 0.045 rounds to 0.05 even
    though its binary value lies just below.
    """

    return float(_to_cents(value))


def format_cost(value: float) -> str:
    return str(_to_cents(value))


def _to_cents(value: float) -> Decimal:
    return Decimal(repr(float(value))).quantize(_CENT, rounding=ROUND_HALF_UP)


def build_output_rows(totals: Mapping[int, float]) -> List[List[str]]:
    """Render ``id,cost`` rows, header first, sorted by meter id."""

    rows = [list(OUTPUT_HEADER)]
    for meter_id in sorted(totals):
        rows.append([str(meter_id), format_cost(totals[meter_id])])
    return rows

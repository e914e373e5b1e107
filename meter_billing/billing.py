from __future__ import annotations

import logging
from typing import Iterable, Sequence

from .costs import accumulate
from .readings import organize
from .reporting import BillingReport
from .tariffs import DEFAULT_SCHEDULE, TariffSchedule

logger = logging.getLogger(__name__)


def calculate_meter_costs(
    rows: Iterable[Sequence[object]],
    *,
    schedule: TariffSchedule = DEFAULT_SCHEDULE,
) -> BillingReport:
    """Organize raw rows, accumulate per-meter costs and collect issues.

    ``report.costs`` holds the unrounded totals; rounding happens when the
    output is rendered.
    """

    batch = organize(rows)
    report = BillingReport.for_batch(batch)
    report.costs = accumulate(batch.series, dict(batch.totals), schedule=schedule, report=report)
    logger.info(
        "Billed %d meters from %d rows (%d skipped, %d anomalous deltas, %d unknown energy types)",
        len(report.costs),
        report.row_count,
        report.skipped_rows,
        report.anomalous_deltas,
        report.unknown_energy_types,
    )
    return report

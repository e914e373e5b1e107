from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Mapping, Sequence

from .errors import UnknownEnergyTypeError
from .models import BatchIssue, EnergyType, Reading
from .tariffs import DEFAULT_SCHEDULE, TariffSchedule, price_for

if TYPE_CHECKING:
    from .reporting import BillingReport

logger = logging.getLogger(__name__)

WATT_HOURS_PER_KWH = 1000.0
GAS_KWH_EQUIVALENT_FACTOR = 9.769
MAX_DELTA_KWH = 100.0

_KNOWN_TYPES = frozenset(EnergyType)


def to_kwh_equivalent(usage: float, energy_type: int) -> float:
    """Convert a native meter counter to kilowatt-hour equivalent."""

    kind = EnergyType.from_code(energy_type)
    if kind is EnergyType.ELECTRICITY:
        return usage / WATT_HOURS_PER_KWH
    return usage * GAS_KWH_EQUIVALENT_FACTOR


def is_valid_delta(delta_kwh: float) -> bool:
    """Deltas outside [0, 100] kWh point at a counter reset or corrupt data."""

    return 0.0 <= delta_kwh <= MAX_DELTA_KWH


def accumulate(
    series: Mapping[int, Sequence[Reading]],
    totals: Dict[int, float],
    *,
    schedule: TariffSchedule = DEFAULT_SCHEDULE,
    report: "BillingReport | None" = None,
) -> Dict[int, float]:
    """Add the cost of every valid consecutive-reading delta to ``totals``.

    Each pair is priced at the tariff in force at its earlier reading.
    Anomalous deltas and readings with an unknown energy type contribute
    nothing and are recorded on ``report`` when one is given.
    """

    for meter_id, readings in series.items():
        totals[meter_id] = totals.get(meter_id, 0.0) + _meter_cost(
            meter_id, readings, schedule, report
        )
    return totals


def _meter_cost(
    meter_id: int,
    readings: Sequence[Reading],
    schedule: TariffSchedule,
    report: "BillingReport | None",
) -> float:
    total = 0.0
    issues: List[BatchIssue] = []
    anomalous = 0
    for current, following in zip(readings, readings[1:]):
        try:
            delta = to_kwh_equivalent(following.usage, following.energy_type) - to_kwh_equivalent(
                current.usage, current.energy_type
            )
            if not is_valid_delta(delta):
                anomalous += 1
                logger.debug(
                    "Ignoring delta of %.4f kWh for meter %d at line %s",
                    delta,
                    meter_id,
                    following.line,
                )
                continue
            total += delta * price_for(current.energy_type, current.timestamp, schedule)
        except UnknownEnergyTypeError as exc:
            logger.warning("Meter %d: %s", meter_id, exc)
            issues.append(
                BatchIssue(
                    code="unknown_energy_type",
                    message=str(exc),
                    row=_unknown_line(current, following),
                    meter_id=meter_id,
                )
            )

    if report is not None:
        report.anomalous_deltas += anomalous
        report.issues.extend(issues)
    return total


def _unknown_line(current: Reading, following: Reading) -> int | None:
    if current.energy_type not in _KNOWN_TYPES:
        return current.line
    return following.line

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Sequence

from .errors import MalformedRowError, UnknownEnergyTypeError
from .models import BatchIssue, EnergyType, Reading, ReadingBatch

logger = logging.getLogger(__name__)

HEADER = ("metering_point_id", "type", "reading", "created_at")


def organize(rows: Iterable[Sequence[object]]) -> ReadingBatch:
    """Group raw rows into per-meter series in input order.

    The first row is treated as a header and skipped. Rows that fail to
    parse are reported as ``malformed_row`` issues and left out of the
    series.
    """

    series: Dict[int, List[Reading]] = {}
    totals: Dict[int, float] = {}
    issues: List[BatchIssue] = []
    row_count = 0

    iterator = iter(rows)
    next(iterator, None)
    for line, row in enumerate(iterator, start=2):
        if not row:
            continue
        row_count += 1
        try:
            reading = parse_reading(row, line)
        except MalformedRowError as exc:
            meter_id = _observed_meter_id(row)
            if meter_id is not None:
                totals.setdefault(meter_id, 0.0)
            logger.warning("Skipping line %d: %s", line, exc)
            issues.append(
                BatchIssue(code="malformed_row", message=str(exc), row=line, meter_id=meter_id)
            )
            continue

        totals.setdefault(reading.meter_id, 0.0)
        series.setdefault(reading.meter_id, []).append(reading)

    logger.debug(
        "Organized %d rows into %d meters (%d skipped)",
        row_count,
        len(totals),
        len(issues),
    )
    return ReadingBatch(series=series, totals=totals, issues=issues, row_count=row_count)


def parse_reading(row: Sequence[object], line: int | None = None) -> Reading:
    """Parse one ``metering_point_id,type,reading,created_at`` row."""

    if len(row) < len(HEADER):
        raise MalformedRowError(
            f"expected {len(HEADER)} fields, got {len(row)}", row=line
        )
    meter_id = _parse_int(row[0], "metering_point_id", line)
    code = _parse_int(row[1], "type", line)
    usage = _parse_float(row[2], "reading", line)
    created_at = _parse_int(row[3], "created_at", line)

    try:
        energy_type: int = EnergyType.from_code(code)
    except UnknownEnergyTypeError:
        energy_type = code

    try:
        timestamp = datetime.fromtimestamp(created_at, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise MalformedRowError(f"created_at out of range: {created_at}", row=line) from exc

    return Reading(
        meter_id=meter_id,
        energy_type=energy_type,
        usage=usage,
        timestamp=timestamp,
        line=line,
    )


def _observed_meter_id(row: Sequence[object]) -> int | None:
    if not row:
        return None
    try:
        return _parse_int(row[0], "metering_point_id", None)
    except MalformedRowError:
        return None


def _parse_int(value: object, name: str, line: int | None) -> int:
    if isinstance(value, bool):
        raise MalformedRowError(f"invalid {name}: {value!r}", row=line)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    text = str(value).strip()
    if "_" in text:
        raise MalformedRowError(f"invalid {name}: {value!r}", row=line)
    try:
        return int(text)
    except ValueError as exc:
        raise MalformedRowError(f"invalid {name}: {value!r}", row=line) from exc


def _parse_float(value: object, name: str, line: int | None) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = float(value)
    else:
        text = str(value).strip()
        if "_" in text:
            raise MalformedRowError(f"invalid {name}: {value!r}", row=line)
        try:
            parsed = float(text)
        except ValueError as exc:
            raise MalformedRowError(f"invalid {name}: {value!r}", row=line) from exc
    if not math.isfinite(parsed):
        raise MalformedRowError(f"invalid {name}: {value!r}", row=line)
    return parsed

"""Billing engine for cumulative meter readings: grouping, tariffs, and cost accumulation."""

from .billing import calculate_meter_costs
from .costs import accumulate, is_valid_delta, to_kwh_equivalent
from .errors import (
    InputUnavailableError,
    MalformedRowError,
    MeterBillingError,
    OutputWriteError,
    UnknownEnergyTypeError,
)
from .models import BatchIssue, EnergyType, Reading, ReadingBatch
from .readings import organize, parse_reading
from .reporting import BillingReport, build_output_rows, format_cost, round_cost
from .tariffs import DEFAULT_SCHEDULE, TariffSchedule, price_for

__all__ = [
    "accumulate",
    "BatchIssue",
    "BillingReport",
    "build_output_rows",
    "calculate_meter_costs",
    "DEFAULT_SCHEDULE",
    "EnergyType",
    "format_cost",
    "InputUnavailableError",
    "is_valid_delta",
    "MalformedRowError",
    "MeterBillingError",
    "organize",
    "OutputWriteError",
    "parse_reading",
    "price_for",
    "Reading",
    "ReadingBatch",
    "round_cost",
    "TariffSchedule",
    "to_kwh_equivalent",
    "UnknownEnergyTypeError",
]

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .models import EnergyType

DEFAULT_TIMEZONE = "Europe/Amsterdam"
DEFAULT_ELECTRICITY_PRICE = 0.18
WEEKDAY_PEAK_ELECTRICITY_PRICE = 0.20
GAS_PRICE = 0.6


@dataclass(frozen=True)
class TariffSchedule:
    """Unit prices per kWh-equivalent and the weekday peak window.

    The peak window is exclusive on both bounds: with the defaults only
    local hours 8 through 22 on Monday to Friday are peak.
    """

    default_electricity_price: float = DEFAULT_ELECTRICITY_PRICE
    weekday_peak_price: float = WEEKDAY_PEAK_ELECTRICITY_PRICE
    gas_price: float = GAS_PRICE
    peak_start_hour: int = 7
    peak_end_hour: int = 23
    timezone: str = DEFAULT_TIMEZONE

    def __post_init__(self) -> None:
        for name in ("default_electricity_price", "weekday_peak_price", "gas_price"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")
        if not 0 <= self.peak_start_hour < self.peak_end_hour <= 24:
            raise ValueError("peak hours must satisfy 0 <= start < end <= 24")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {self.timezone!r}") from exc

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


DEFAULT_SCHEDULE = TariffSchedule()


def price_for(
    energy_type: int,
    timestamp: datetime,
    schedule: TariffSchedule = DEFAULT_SCHEDULE,
) -> float:
    """Return the unit price in force for ``energy_type`` at ``timestamp``.

    Raises ``UnknownEnergyTypeError`` for anything but electricity or gas.
    """

    kind = EnergyType.from_code(energy_type)
    if kind is EnergyType.GAS:
        return schedule.gas_price

    local_dt = _to_local(timestamp, schedule.tzinfo)
    if _is_weekday_peak(local_dt, schedule.peak_start_hour, schedule.peak_end_hour):
        return schedule.weekday_peak_price
    return schedule.default_electricity_price


def _to_local(timestamp: datetime, tzinfo: ZoneInfo) -> datetime:
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=dt_timezone.utc)
    return timestamp.astimezone(tzinfo)


def _is_weekday_peak(local_dt: datetime, peak_start_hour: int, peak_end_hour: int) -> bool:
    return local_dt.weekday() < 5 and peak_start_hour < local_dt.hour < peak_end_hour

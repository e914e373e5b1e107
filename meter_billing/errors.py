from __future__ import annotations


class MeterBillingError(Exception):
    """Base class for all billing engine errors."""


class InputUnavailableError(MeterBillingError):
    """The source dataset is missing or cannot be read."""


class OutputWriteError(MeterBillingError):
    """The destination file cannot be created or written."""


class MalformedRowError(MeterBillingError):
    def __init__(self, message: str, row: int | None = None) -> None:
        super().__init__(message)
        self.row = row


class UnknownEnergyTypeError(MeterBillingError):
    def __init__(self, energy_type: object) -> None:
        super().__init__(f"Unknown energy type: {energy_type!r}")
        self.energy_type = energy_type

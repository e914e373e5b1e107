from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from meter_billing.billing import calculate_meter_costs
from meter_billing.errors import InputUnavailableError, OutputWriteError
from meter_billing.tariffs import DEFAULT_TIMEZONE, TariffSchedule
from upload_flow import read_meter_rows, write_totals_csv

logger = logging.getLogger("meter_billing.cli")

DEFAULT_INPUT = "test-input.csv"
DEFAULT_OUTPUT = "output.csv"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="meter-billing",
        description="Compute per-meter energy costs from cumulative meter readings.",
    )
    parser.add_argument("input", nargs="?", default=DEFAULT_INPUT, help="readings CSV")
    parser.add_argument("output", nargs="?", default=DEFAULT_OUTPUT, help="id,cost CSV to write")
    parser.add_argument(
        "--timezone",
        default=DEFAULT_TIMEZONE,
        help=f"IANA zone used for the weekday peak window (default: {DEFAULT_TIMEZONE})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log every skipped pair")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        schedule = TariffSchedule(timezone=args.timezone)
    except ValueError as exc:
        logger.error("%s", exc)
        return 2

    try:
        report = calculate_meter_costs(read_meter_rows(args.input), schedule=schedule)
        write_totals_csv(args.output, report.costs)
    except (InputUnavailableError, OutputWriteError) as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

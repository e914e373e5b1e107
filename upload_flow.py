from __future__ import annotations

import csv
import datetime as dt
import io
import logging
import os
import pathlib
import tempfile
import zipfile
from dataclasses import dataclass
from typing import Iterator, Mapping

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from meter_billing.errors import InputUnavailableError, OutputWriteError
from meter_billing.readings import HEADER
from meter_billing.reporting import build_output_rows

logger = logging.getLogger(__name__)

CSV_SUFFIXES = {".csv", ".txt"}
EXCEL_SUFFIXES = {".xlsx", ".xlsm"}


@dataclass(frozen=True)
class ParsingError:
    code: str
    message: str
    row: int | None = None


class UploadValidationError(Exception):
    def __init__(self, errors: list[ParsingError]) -> None:
        super().__init__("Upload validation failed")
        self.errors = errors

    def user_messages(self) -> list[dict[str, str | int]]:
        return [
            {
                "code": error.code,
                "message": error.message,
                "row": error.row or 0,
            }
            for error in self.errors
        ]


def read_meter_rows(path: str | pathlib.Path) -> Iterator[list[str]]:
    """Stream raw rows, header included, from a delimited text file."""

    source = pathlib.Path(path)
    try:
        handle = source.open("r", encoding="utf-8-sig", newline="")
    except OSError as exc:
        raise InputUnavailableError(f"Cannot open input {source}: {exc}") from exc

    with handle:
        try:
            yield from csv.reader(handle)
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            raise InputUnavailableError(f"Cannot read input {source}: {exc}") from exc


def write_totals_csv(path: str | pathlib.Path, totals: Mapping[int, float]) -> pathlib.Path:
    """Write the ``id,cost`` table; the target only appears once complete."""

    target = pathlib.Path(path)
    rows = build_output_rows(totals)
    tmp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            newline="",
            dir=target.parent,
            prefix=f".{target.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            tmp_name = handle.name
            csv.writer(handle).writerows(rows)
        os.replace(tmp_name, target)
    except OSError as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise OutputWriteError(f"Cannot write output {target}: {exc}") from exc

    logger.info("Wrote %d meter totals to %s", len(rows) - 1, target)
    return target


def parse_meter_upload(file_bytes: bytes, original_filename: str) -> list[list[object]]:
    """Turn an uploaded CSV or Excel file into rows ordered like ``HEADER``.

    Columns are matched by header name, so uploads may order them freely.
    The returned rows start with the canonical header row.
    """

    suffix = pathlib.Path(original_filename).suffix.lower()
    errors: list[ParsingError] = []

    if suffix in CSV_SUFFIXES:
        rows = _parse_csv(file_bytes, errors)
    elif suffix in EXCEL_SUFFIXES:
        rows = _parse_xlsx(file_bytes, errors)
    else:
        raise UploadValidationError(
            [
                ParsingError(
                    code="unsupported_format",
                    message="Enkel CSV of Excel (.xlsx) wordt ondersteund.",
                )
            ]
        )

    if errors:
        raise UploadValidationError(errors)
    return rows


def _parse_csv(file_bytes: bytes, errors: list[ParsingError]) -> list[list[object]]:
    try:
        text = file_bytes.decode("utf-8-sig")
    except UnicodeDecodeError:
        errors.append(
            ParsingError(
                code="invalid_encoding",
                message="CSV-bestand moet UTF-8 gecodeerd zijn.",
            )
        )
        return []

    first_line = text.split("\n", 1)[0]
    # Semicolons are common in exports from Dutch and Belgian portals
    delimiter = ";" if ";" in first_line and "," not in first_line else ","
    try:
        raw_rows = list(csv.reader(io.StringIO(text), delimiter=delimiter))
    except csv.Error as exc:
        errors.append(
            ParsingError(
                code="invalid_csv",
                message=f"CSV-bestand kan niet gelezen worden: {exc}.",
            )
        )
        return []
    return _reorder_columns(raw_rows, errors, "CSV-bestand")


def _parse_xlsx(file_bytes: bytes, errors: list[ParsingError]) -> list[list[object]]:
    try:
        workbook = openpyxl.load_workbook(io.BytesIO(file_bytes), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        logger.info("Rejected unreadable workbook: %s", exc)
        errors.append(
            ParsingError(
                code="invalid_workbook",
                message="Excel-bestand kan niet geopend worden.",
            )
        )
        return []

    try:
        sheet = workbook.active
        raw_rows = [
            [_cell_to_str(cell) for cell in row] if any(cell is not None for cell in row) else []
            for row in sheet.iter_rows(values_only=True)
        ]
    finally:
        workbook.close()
    return _reorder_columns(raw_rows, errors, "Excel-bestand")


def _reorder_columns(
    raw_rows: list[list[str]],
    errors: list[ParsingError],
    label: str,
) -> list[list[object]]:
    if not any(raw_rows):
        errors.append(
            ParsingError(
                code="empty_file",
                message=f"{label} bevat geen data.",
            )
        )
        return []

    header = [name.strip() for name in raw_rows[0]]
    indices = []
    for column in HEADER:
        index = _find_header(header, column)
        if index is None:
            errors.append(
                ParsingError(
                    code="missing_columns",
                    message=f"Kolom '{column}' ontbreekt. Verwacht: {', '.join(HEADER)}.",
                    row=1,
                )
            )
            continue
        indices.append(index)
    if errors:
        return []

    # blank rows stay as [] so line numbers match the uploaded file
    rows: list[list[object]] = [list(HEADER)]
    for row in raw_rows[1:]:
        if not row:
            rows.append([])
            continue
        rows.append([row[index] if index < len(row) else "" for index in indices])
    return rows


def _find_header(header: list[str], candidate: str) -> int | None:
    lowered = [name.lower() for name in header]
    if candidate.lower() in lowered:
        return lowered.index(candidate.lower())
    return None


def _cell_to_str(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, dt.datetime):
        return str(int(value.replace(tzinfo=value.tzinfo or dt.timezone.utc).timestamp()))
    return str(value).strip()

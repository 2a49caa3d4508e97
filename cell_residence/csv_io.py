"""CSV input utilities for the cell connection log."""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from cell_residence.models import DEFAULT_TZ, Event, EventLog, PreconditionError
from cell_residence.timeutils import parse_log_time

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CsvSummary:
    """Quick summary of CSV parsing."""

    rows_total: int
    rows_parsed: int
    rows_skipped: int
    fieldnames: Sequence[str]
    delimiter: str


def _parse_float(value: str) -> float:
    return float(value.strip())


def sniff_delimiter(header_line: str) -> str:
    """Tab if the header line contains one, otherwise comma."""

    return "\t" if "\t" in header_line else ","


def parse_row(row: Sequence[str], tz_name: str) -> Event:
    """Build an Event from [timestamp, longitude, latitude, cellTag].

    Raises:
        PreconditionError: If the row is short or a field cannot be parsed.
    """

    if len(row) < 4:
        raise PreconditionError(f"字段不足（需要4列）：{list(row)}")
    try:
        lon = _parse_float(row[1])
        lat = _parse_float(row[2])
    except ValueError as exc:
        raise PreconditionError(f"经纬度无法解析：{row[1]!r}, {row[2]!r}") from exc
    tag = row[3].strip()
    if not tag:
        raise PreconditionError(f"小区标识为空：{list(row)}")
    return Event(epoch_s=parse_log_time(row[0], tz_name), longitude=lon, latitude=lat, cell_tag=tag)


def load_cell_log(
    csv_path: str | Path,
    tz_name: str = DEFAULT_TZ,
    delimiter: str | None = None,
    strict: bool = True,
) -> tuple[EventLog, CsvSummary]:
    """Load the whole log into memory and partition it by cell.

    Args:
        csv_path: Path to the log.
        tz_name: IANA timezone the timestamps were recorded in.
        delimiter: Field separator; sniffed from the header line if None.
        strict: Raise on malformed rows (default); if False skip them with a warning.

    Returns:
        (log, summary)
    """

    p = Path(csv_path)
    rows_total = 0
    parsed: list[Event] = []

    with p.open("r", encoding="utf-8", newline="") as f:
        header = f.readline()
        sep = delimiter or sniff_delimiter(header)
        fieldnames = [name.strip() for name in header.rstrip("\r\n").split(sep)] if header else []
        reader = csv.reader(f, delimiter=sep)
        for row in reader:
            if not any(cell.strip() for cell in row):
                continue
            rows_total += 1
            try:
                parsed.append(parse_row(row, tz_name))
            except PreconditionError as exc:
                if strict:
                    raise PreconditionError(f"{p}:{reader.line_num + 1}: {exc}") from exc
                continue

    summary = CsvSummary(
        rows_total=rows_total,
        rows_parsed=len(parsed),
        rows_skipped=rows_total - len(parsed),
        fieldnames=fieldnames,
        delimiter=sep,
    )
    if summary.rows_skipped > 0:
        logger.warning("CSV中有 %s 行解析失败已跳过", summary.rows_skipped)
    log = EventLog.from_events(parsed)
    logger.info("读取 %s 条记录，%s 个小区", len(log.events), len(log.groups))
    return log, summary

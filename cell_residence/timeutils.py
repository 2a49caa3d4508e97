"""Time parsing and formatting utilities."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Iterable

from zoneinfo import ZoneInfo

from cell_residence.models import TIME_FORMAT, PreconditionError


def tzinfo_from_name(tz_name: str) -> tzinfo:
    """Create tzinfo from an IANA timezone name.

    Args:
        tz_name: Timezone name like "Asia/Taipei".

    Returns:
        tzinfo instance.

    Raises:
        ValueError: If timezone name is invalid on this system.
    """

    try:
        return ZoneInfo(tz_name)
    except Exception as exc:  # ZoneInfo raises KeyError / ZoneInfoNotFoundError (platform dependent)
        raise ValueError(f"无效时区：{tz_name!r}。例如可用：Asia/Taipei") from exc


def dt_from_epoch_s(epoch_s: int, tz_name: str) -> datetime:
    """Convert epoch seconds to timezone-aware datetime."""

    return datetime.fromtimestamp(epoch_s, tz=tzinfo_from_name(tz_name))


def parse_log_time(text: str, tz_name: str) -> int:
    """Parse a log timestamp ("YYYY-MM-DD HH:MM:SS", local time) to epoch seconds.

    Args:
        text: Timestamp string in TIME_FORMAT.
        tz_name: IANA timezone the log was recorded in.

    Returns:
        Unix epoch seconds.

    Raises:
        PreconditionError: If the text does not match TIME_FORMAT.
    """

    try:
        dt = datetime.strptime(text.strip(), TIME_FORMAT)
    except ValueError as exc:
        raise PreconditionError(f"无法解析时间：{text!r}。要求格式：2019-03-01 08:30:00") from exc
    return int(dt.replace(tzinfo=tzinfo_from_name(tz_name)).timestamp())


def clock_string(epoch_s: int, tz_name: str, use_colon: bool = True) -> str:
    """Format the local wall-clock time as "HH:MM:SS" or "HHMMSS"."""

    fmt = "%H:%M:%S" if use_colon else "%H%M%S"
    return dt_from_epoch_s(epoch_s, tz_name).strftime(fmt)


def format_local(epoch_s: int, tz_name: str) -> str:
    """Format epoch seconds as "YYYY-MM-DD HH:MM:SS" in tz_name."""

    return dt_from_epoch_s(epoch_s, tz_name).strftime(TIME_FORMAT)


@dataclass(frozen=True, slots=True)
class DeltaStats:
    """Sampling interval stats (seconds)."""

    count: int
    min_s: float
    median_s: float
    p95_s: float
    max_s: float


def delta_stats(epoch_s_sorted: Iterable[int]) -> DeltaStats | None:
    """Compute basic sampling-interval statistics.

    Args:
        epoch_s_sorted: Epoch seconds sorted ascending.

    Returns:
        DeltaStats or None if less than 2 points.
    """

    ts = list(epoch_s_sorted)
    if len(ts) < 2:
        return None
    deltas = [float(ts[i] - ts[i - 1]) for i in range(1, len(ts)) if ts[i] >= ts[i - 1]]
    if not deltas:
        return None
    deltas.sort()
    n = len(deltas)
    median = deltas[n // 2] if n % 2 == 1 else 0.5 * (deltas[n // 2 - 1] + deltas[n // 2])
    p95 = deltas[int(0.95 * (n - 1))]
    return DeltaStats(
        count=n,
        min_s=deltas[0],
        median_s=median,
        p95_s=p95,
        max_s=deltas[-1],
    )

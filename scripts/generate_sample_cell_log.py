from __future__ import annotations

import argparse
import csv
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Final

from zoneinfo import ZoneInfo


TZ: Final[str] = "Asia/Taipei"


@dataclass(frozen=True, slots=True)
class Place:
    name: str
    lat: float
    lon: float
    cells: tuple[str, ...]


def generate_rows(
    *,
    days: int,
    seed: int,
    start_local: datetime,
    home: Place,
    work: Place,
    roaming_cells: int,
) -> list[list[str]]:
    """Generate a fake connection log: nights at home, office hours at work, commutes between."""

    rng = random.Random(seed)
    tz = ZoneInfo(TZ)
    day0 = start_local.replace(hour=0, minute=0, second=0, tzinfo=tz)
    out: list[list[str]] = []

    def _emit(t: datetime, place: Place, jitter: float = 0.002) -> None:
        out.append(
            [
                t.strftime("%Y-%m-%d %H:%M:%S"),
                f"{place.lon + rng.uniform(-jitter, jitter):.6f}",
                f"{place.lat + rng.uniform(-jitter, jitter):.6f}",
                rng.choice(place.cells),
            ]
        )

    def _stay(start: datetime, end: datetime, place: Place) -> None:
        t = start
        while t < end:
            _emit(t, place)
            # Idle phones report every few minutes, sometimes go quiet for longer
            if rng.random() < 0.05:
                t += timedelta(minutes=rng.uniform(20, 60))
            else:
                t += timedelta(seconds=rng.uniform(60, 300))

    def _commute(start: datetime, src: Place, dst: Place) -> None:
        steps = 6
        for k in range(1, steps):
            frac = k / steps
            cell = f"CELL_R{rng.randrange(roaming_cells):03d}"
            t = start + timedelta(minutes=5 * k)
            lat = src.lat + (dst.lat - src.lat) * frac
            lon = src.lon + (dst.lon - src.lon) * frac
            out.append([t.strftime("%Y-%m-%d %H:%M:%S"), f"{lon:.6f}", f"{lat:.6f}", cell])

    for d in range(days):
        day = day0 + timedelta(days=d)
        _stay(day, day + timedelta(hours=8), home)
        _commute(day + timedelta(hours=8), home, work)
        _stay(day + timedelta(hours=9), day + timedelta(hours=18), work)
        _commute(day + timedelta(hours=18), work, home)
        _stay(day + timedelta(hours=19), day + timedelta(hours=24), home)

    # Real exports are not strictly ordered
    rng.shuffle(out)
    return out


def main() -> int:
    p = argparse.ArgumentParser(description="Generate a fake cell connection log for demo/testing (privacy-safe).")
    p.add_argument("--out", type=str, default="sample_data/data.csv", help="Output path (tab separated)")
    p.add_argument("--days", type=int, default=3, help="Number of simulated days")
    p.add_argument("--seed", type=int, default=42, help="Random seed (reproducible)")
    p.add_argument("--start", type=str, default="2019-03-01", help="First day, local time in Asia/Taipei")
    p.add_argument("--roaming-cells", type=int, default=40, help="Distinct cells seen while commuting")
    args = p.parse_args()

    start_local = datetime.fromisoformat(args.start)
    home = Place("home", 25.045682, 121.512526, ("CELL_101", "CELL_102", "CELL_103"))
    work = Place("work", 25.050978, 121.299258, ("CELL_201", "CELL_202"))

    rows = generate_rows(
        days=args.days,
        seed=args.seed,
        start_local=start_local,
        home=home,
        work=work,
        roaming_cells=args.roaming_cells,
    )
    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", encoding="utf-8", newline="") as f:
        w = csv.writer(f, delimiter="\t")
        w.writerow(["time", "longitude", "latitude", "cell"])
        w.writerows(rows)

    print(f"Generated: {out_path} (rows={len(rows)}, seed={args.seed})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

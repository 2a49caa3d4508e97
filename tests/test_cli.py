import csv
import json

from cell_residence.cli import main

HOME = (121.512526, 25.045682)
WORK = (121.299258, 25.050978)


def write_log(path, delimiter="\t"):
    """Two days: nights on two overlapping HOME cells, office hours on one WORK cell."""

    def stamp(day, sec):
        return f"{day} {sec // 3600:02d}:{sec % 3600 // 60:02d}:{sec % 60:02d}"

    rows = []
    for day in ("2019-03-01", "2019-03-02"):
        # every 4 minutes: CELL_H1 at +0s and +120s, CELL_H2 in between at +60s
        for k in range(12):
            base = 240 * k
            rows.append((stamp(day, base), *HOME, "CELL_H1"))
            rows.append((stamp(day, base + 60), *HOME, "CELL_H2"))
            rows.append((stamp(day, base + 120), *HOME, "CELL_H1"))
        # 09:00-10:36 every 4 minutes
        for k in range(25):
            rows.append((stamp(day, 9 * 3600 + 240 * k), *WORK, "CELL_W"))
        rows.append((stamp(day, 12 * 3600), 121.4, 25.0, "CELL_X"))

    with path.open("w", encoding="utf-8", newline="") as f:
        w = csv.writer(f, delimiter=delimiter)
        w.writerow(["time", "longitude", "latitude", "cell"])
        w.writerows(rows[::-1])
    return path


def test_find_areas_end_to_end(tmp_path, capsys):
    data = write_log(tmp_path / "data.csv")
    out_dir = tmp_path / "out"
    assert main(["find-areas", "--csv", str(data), "--out-dir", str(out_dir)]) == 0

    printed = capsys.readouterr().out
    assert "2" in printed.splitlines()[0]

    with (out_dir / "time-vs-area.csv").open(encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))
    by_time = {r["time"]: r["areaID"] for r in rows}
    # CELL_W is the most active cell and opens area 1
    assert by_time["2019-03-01 09:00:00"] == "1"
    assert by_time["2019-03-01 00:00:00"] == "2"
    assert by_time["2019-03-01 00:01:00"] == "2"
    assert by_time["2019-03-01 12:00:00"] == "0"

    for name in ("area-1.json", "area-2.json", "gravity-area-1.csv", "average-area-2.csv", "area-2-lon.txt"):
        assert (out_dir / name).exists(), name
    assert json.loads((out_dir / "area-1.json").read_text(encoding="utf-8"))["type"] == "MultiPoint"


def test_segments_command(tmp_path, capsys):
    data = write_log(tmp_path / "data.csv", delimiter=",")
    assert main(["segments", "--csv", str(data), "--cell", "CELL_W", "--gap-seconds", "3600"]) == 0
    out = capsys.readouterr().out
    assert "连接数=50" in out
    assert "2019-03-01 09:00:00-to-2019-03-01 10:00:00" in out


def test_unknown_cell_exits_with_error(tmp_path, capsys):
    data = write_log(tmp_path / "data.csv")
    assert main(["segments", "--csv", str(data), "--cell", "CELL_NOPE"]) == 1
    assert "CELL_NOPE" in capsys.readouterr().err


def test_missing_input_exits_with_error(tmp_path, capsys):
    assert main(["inspect", "--csv", str(tmp_path / "missing.csv")]) == 1
    assert capsys.readouterr().err


def test_inspect_json(tmp_path, capsys):
    data = write_log(tmp_path / "data.csv")
    assert main(["inspect", "--csv", str(data), "--json"]) == 0
    out = capsys.readouterr().out
    payload = json.loads(out[out.index("{") :])
    assert payload["events"] == 124
    assert payload["cells"] == 4
    assert payload["busiest_cell"] == "CELL_W"


def test_top_cells_and_speed_commands(tmp_path, capsys):
    data = write_log(tmp_path / "data.csv")
    maps = tmp_path / "maps"
    assert main(["top-cells", "--csv", str(data), "--k", "2", "--out-dir", str(maps)]) == 0
    assert sorted(p.name for p in maps.iterdir()) == ["map-by-cell-top-1.json", "map-by-cell-top-2.json"]

    assert main(["speed-segments", "--csv", str(data), "--out-dir", str(tmp_path / "speed")]) == 0
    assert any((tmp_path / "speed").glob("map-by-speed-1-*.json"))

    out = tmp_path / "time-vs-speed.csv"
    assert main(["speed-timeline", "--csv", str(data), "--out", str(out)]) == 0
    assert out.read_text(encoding="utf-8").startswith("time,speed")

import csv
import json

from cell_residence.exporters import (
    write_area_coordinate_files,
    write_area_maps,
    write_area_timeline_csv,
    write_centroid_reports,
    write_speed_segment_maps,
    write_speed_timeline_csv,
    write_top_cell_maps,
)
from cell_residence.models import Event, EventLog
from cell_residence.residence import top_cells
from cell_residence.speed import DwellSegment

TZ = "Asia/Taipei"
# 2019-03-01 08:00:00 local
T0 = 1551398400


def labeled_events():
    return [
        Event(T0, 121.50, 25.04, "A", area_id=1),
        Event(T0 + 60, 121.60, 25.10, "Z"),
        Event(T0 + 120, 121.52, 25.06, "A", area_id=1),
        Event(T0 + 180, 121.30, 25.05, "W", area_id=2),
    ]


def read_rows(path):
    with path.open(encoding="utf-8", newline="") as f:
        return list(csv.reader(f))


def test_area_timeline_csv(tmp_path):
    out = tmp_path / "time-vs-area.csv"
    write_area_timeline_csv(labeled_events(), out, TZ)
    rows = read_rows(out)
    assert rows[0] == ["time", "areaID"]
    assert rows[1] == ["2019-03-01 08:00:00", "1"]
    assert [r[1] for r in rows[1:]] == ["1", "0", "1", "2"]


def test_area_maps_are_multipoint_geojson(tmp_path):
    paths = write_area_maps(labeled_events(), 2, tmp_path)
    assert [p.name for p in paths] == ["area-1.json", "area-2.json"]
    geo = json.loads(paths[0].read_text(encoding="utf-8"))
    assert geo == {"type": "MultiPoint", "coordinates": [[121.50, 25.04], [121.52, 25.06]]}


def test_area_coordinate_files(tmp_path):
    write_area_coordinate_files(labeled_events(), 2, tmp_path)
    assert (tmp_path / "area-1-lon.txt").read_text(encoding="utf-8").split() == ["121.5", "121.52"]
    assert (tmp_path / "area-2-lat.txt").read_text(encoding="utf-8").split() == ["25.05"]


def test_centroid_reports_write_cdf(tmp_path):
    reports = write_centroid_reports(labeled_events(), 2, tmp_path, "gravity")
    assert [r.area_id for r in reports] == [1, 2]
    rows = read_rows(tmp_path / "gravity-area-1.csv")
    assert rows[0] == ["bound_km", "percent"]
    assert len(rows) == 51
    assert float(rows[-1][1]) == 100.0


def test_speed_segment_maps_named_by_clock(tmp_path):
    events = labeled_events()
    seg = DwellSegment(segment_id=1, start_index=0, end_index=2, start_s=T0, end_s=T0 + 120)
    (path,) = write_speed_segment_maps(events, [seg], tmp_path, TZ)
    assert path.name == "map-by-speed-1-080000-to-080200.json"
    assert len(json.loads(path.read_text(encoding="utf-8"))["coordinates"]) == 3


def test_top_cell_maps(tmp_path):
    log = EventLog.from_events(labeled_events())
    top = top_cells(log.groups, 1, 180)
    (path,) = write_top_cell_maps(top, log.groups, tmp_path)
    assert path.name == "map-by-cell-top-1.json"
    assert len(json.loads(path.read_text(encoding="utf-8"))["coordinates"]) == 2


def test_speed_timeline_csv(tmp_path):
    out = tmp_path / "time-vs-speed.csv"
    n = write_speed_timeline_csv(labeled_events(), out, TZ)
    rows = read_rows(out)
    assert n == 3
    assert rows[0] == ["time", "speed"]
    assert rows[1][0] == "2019-03-01 08:01:00"
    assert float(rows[1][1]) > 0

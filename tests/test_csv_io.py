import pytest

from cell_residence.csv_io import load_cell_log, sniff_delimiter
from cell_residence.models import PreconditionError
from cell_residence.timeutils import clock_string, delta_stats, format_local, parse_log_time

# 2019-03-01 08:00:00 in Asia/Taipei (UTC+8)
T0 = 1551398400


def write(tmp_path, text, name="data.csv"):
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return p


def test_parse_log_time_uses_timezone():
    assert parse_log_time("2019-03-01 08:00:00", "Asia/Taipei") == T0
    assert parse_log_time("2019-03-01 00:00:00", "UTC") == T0
    assert format_local(T0, "Asia/Taipei") == "2019-03-01 08:00:00"
    assert clock_string(T0 + 65, "Asia/Taipei", use_colon=False) == "080105"


def test_parse_log_time_rejects_other_formats():
    with pytest.raises(PreconditionError):
        parse_log_time("2019/03/01 08:00", "Asia/Taipei")


def test_invalid_timezone():
    with pytest.raises(ValueError):
        parse_log_time("2019-03-01 08:00:00", "Mars/Olympus")


def test_sniff_delimiter():
    assert sniff_delimiter("time\tlon\tlat\tcell\n") == "\t"
    assert sniff_delimiter("time,lon,lat,cell\n") == ","


def test_load_tab_separated_log_sorted_and_grouped(tmp_path):
    p = write(
        tmp_path,
        "time\tlongitude\tlatitude\tcell\n"
        "2019-03-01 08:10:00\t121.51\t25.04\tCELL_2\n"
        "2019-03-01 08:00:00\t121.50\t25.05\tCELL_1\n"
        "\n"
        "2019-03-01 08:05:00\t121.50\t25.05\tCELL_1\n",
    )
    log, summary = load_cell_log(p, "Asia/Taipei")
    assert summary.rows_total == 3
    assert summary.rows_skipped == 0
    assert summary.delimiter == "\t"
    assert list(summary.fieldnames) == ["time", "longitude", "latitude", "cell"]

    assert [e.epoch_s - T0 for e in log.events] == [0, 300, 600]
    assert list(log.groups) == ["CELL_2", "CELL_1"]
    assert [e.epoch_s - T0 for e in log.group("CELL_1").events] == [0, 300]
    first = log.events[0]
    assert (first.longitude, first.latitude, first.cell_tag, first.area_id) == (121.50, 25.05, "CELL_1", None)


def test_load_comma_separated_log(tmp_path):
    p = write(tmp_path, "time,lon,lat,cell\n2019-03-01 08:00:00,121.5,25.0,A\n")
    log, summary = load_cell_log(p, "Asia/Taipei")
    assert summary.delimiter == ","
    assert log.num_connections("A") == 1


def test_bad_row_is_fatal_in_strict_mode(tmp_path):
    p = write(tmp_path, "time,lon,lat,cell\n2019-03-01 08:00:00,121.5,25.0,A\nnot-a-time,121.5,25.0,A\n")
    with pytest.raises(PreconditionError, match=":3:"):
        load_cell_log(p, "Asia/Taipei")


def test_bad_rows_skipped_in_lenient_mode(tmp_path):
    p = write(
        tmp_path,
        "time,lon,lat,cell\n"
        "2019-03-01 08:00:00,121.5,25.0,A\n"
        "not-a-time,121.5,25.0,A\n"
        "2019-03-01 08:01:00,east,25.0,A\n"
        "2019-03-01 08:02:00,121.5\n",
    )
    log, summary = load_cell_log(p, "Asia/Taipei", strict=False)
    assert summary.rows_total == 4
    assert summary.rows_skipped == 3
    assert len(log.events) == 1


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_cell_log(tmp_path / "absent.csv")


def test_delta_stats():
    stats = delta_stats([0, 10, 20, 50])
    assert stats is not None
    assert (stats.count, stats.min_s, stats.median_s, stats.max_s) == (3, 10.0, 10.0, 30.0)
    assert delta_stats([5]) is None

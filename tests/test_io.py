import pytest

from heatmap_tracks.io import ParseError, load_records, read_records
from heatmap_tracks.records import RecordSchema

HEADER = "timestamp,xpos,ypos,zpos,EtPositionX,EtPositionY,EtPositionZ,object"


def test_read_records_parses_numeric_and_text_fields():
    text = "\n".join(
        [
            HEADER,
            "1.5,0,1.7,0,0.2,1.1,3.0,Table",
            "1.6,0.1,1.7,0,0.25,1.1,3.0,Chair",
        ]
    )
    records = read_records(text)
    assert len(records) == 2
    first = records[0]
    assert first["timestamp"] == pytest.approx(1.5)
    assert first["object"] == "Table"
    assert records.position(first) == pytest.approx((0.0, 1.7, 0.0))
    assert records.gaze_position(records[1]) == pytest.approx((0.25, 1.1, 3.0))


def test_read_records_with_custom_separators():
    text = "xpos;ypos;zpos;EtPositionX;EtPositionY;EtPositionZ\n0,5;1;2;3,25;4;5\n"
    records = read_records(text, separator=";", decimal=",")
    assert records.position(records[0]) == pytest.approx((0.5, 1.0, 2.0))
    assert records.gaze_position(records[0]) == pytest.approx((3.25, 4.0, 5.0))


def test_blank_lines_and_bom_are_ignored():
    text = "\ufeff" + HEADER + "\n\n1,0,0,0,1,1,1,A\n\n"
    records = read_records(text)
    assert len(records) == 1
    assert "timestamp" in records.fields


def test_missing_header_raises():
    with pytest.raises(ParseError):
        read_records("")
    with pytest.raises(ParseError):
        read_records("\n\n")


def test_short_row_reports_data_row():
    text = "\n".join([HEADER, "1,0,0,0,1,1,1,A", "2,0,0,0,1,1"])
    with pytest.raises(ParseError, match="row 2"):
        read_records(text)


def test_row_with_extra_fields_raises():
    with pytest.raises(ParseError):
        read_records("\n".join([HEADER, "1,0,0,0,1,1,1,A", "2,0,0,0,1,1,1,B,extra"]))
    with pytest.raises(ParseError):
        read_records("\n".join([HEADER, "1,0,0,0,1,1,1,A,extra", "2,0,0,0,1,1,1,B"]))


def test_all_empty_row_raises():
    text = "xpos,ypos,zpos,EtPositionX,EtPositionY,EtPositionZ\n0,0,0,1,1,1\n,,,,,\n1,1,1,2,2,2"
    with pytest.raises(ParseError, match="row 2"):
        read_records(text)


def test_value_with_other_decimal_mark_raises():
    text = "xpos;ypos;zpos;EtPositionX;EtPositionY;EtPositionZ\n1.5;0;0;0;0;0"
    with pytest.raises(ParseError, match="xpos"):
        read_records(text, separator=";", decimal=",")


def test_separator_equal_to_decimal_is_rejected():
    with pytest.raises(ValueError):
        read_records(HEADER + "\n", separator=",", decimal=",")


def test_non_numeric_required_field_raises():
    text = "\n".join([HEADER, "1,0,0,0,1,1,1,A", "2,0,zero,0,1,1,1,B"])
    with pytest.raises(ParseError, match="ypos"):
        read_records(text)


def test_empty_required_value_raises():
    text = "\n".join([HEADER, "1,0,0,0,,1,1,A"])
    with pytest.raises(ParseError, match="EtPositionX"):
        read_records(text)


def test_missing_required_column_raises():
    text = "xpos,ypos,zpos\n0,0,0\n"
    with pytest.raises(ParseError):
        read_records(text)
    records = read_records(text, schema=RecordSchema(gaze=None))
    assert len(records) == 1


def test_duplicate_header_raises():
    with pytest.raises(ParseError):
        read_records("xpos,xpos,ypos,zpos\n0,0,0,0\n", schema=RecordSchema(gaze=None))


def test_header_only_gives_empty_set():
    records = read_records(HEADER + "\n")
    assert len(records) == 0


def test_load_records_resolves_data_dir(tmp_path):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "session.csv").write_text(HEADER + "\n1,0,0,0,1,1,1,A\n", encoding="utf-8")
    records = load_records("session.csv", data_dir=data_dir)
    assert len(records) == 1

    with pytest.raises(FileNotFoundError):
        load_records("missing.csv", data_dir=data_dir)

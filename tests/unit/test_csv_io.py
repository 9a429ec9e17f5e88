import re

import pytest

from motion_classifier.exceptions import EmptyInputError
from motion_classifier.processing.csv_io import (
    format_samples_csv,
    is_header_line,
    parse_combined,
    read_combined_csv,
    write_samples_csv,
)


def test_header_is_skipped_and_row_parsed() -> None:
    rows = parse_combined("acc_z,acc_y,...\n1,2,3,4,5,6\n")
    assert rows == [[1.0, 2.0, 3.0, 4.0, 5.0, 6.0]]


@pytest.mark.parametrize("header", ["Sample,Acc_Z,Acc_Y", "TIME,x,y,z", "GYRO_Z,foo", "timestamp;a;b"])
def test_header_markers_are_case_insensitive(header: str) -> None:
    assert is_header_line(header)


def test_first_line_without_markers_is_data() -> None:
    rows = parse_combined("1,2,3,4,5,6\n7,8,9,10,11,12")
    assert len(rows) == 2
    assert rows[0][0] == 1.0


def test_short_line_is_dropped_not_fatal(caplog) -> None:
    text = "acc_z,acc_y,acc_x,gyro_z,gyro_y,gyro_x\n1,2,3,4\n1,2,3,4,5,6\n"
    with caplog.at_level("WARNING"):
        rows = parse_combined(text)

    assert rows == [[1.0, 2.0, 3.0, 4.0, 5.0, 6.0]]
    assert any("line 2" in r.getMessage() for r in caplog.records)


def test_unparseable_and_non_finite_rows_are_dropped() -> None:
    text = "\n".join(
        [
            "1,2,3,4,5,6",
            "1,abc,3,4,5,6",
            "1,2,nan,4,5,6",
            "1,2,3,inf,5,6",
            "",
            " 7 , 8 , 9 , 10 , 11 , 12 , extra, 99",
        ]
    )
    rows = parse_combined(text)
    assert rows == [[1.0, 2.0, 3.0, 4.0, 5.0, 6.0], [7.0, 8.0, 9.0, 10.0, 11.0, 12.0]]


def test_header_after_first_line_is_treated_as_bad_data() -> None:
    rows = parse_combined("1,2,3,4,5,6\nacc_z,acc_y,acc_x,gyro_z,gyro_y,gyro_x\n")
    assert len(rows) == 1


def test_rows_keep_file_order() -> None:
    text = "\n".join(f"{i},1,1,1,1,1" for i in range(1, 11))
    assert [r[0] for r in parse_combined(text)] == [float(i) for i in range(1, 11)]


@pytest.mark.parametrize("text", ["", "acc_z,acc_y,acc_x,gyro_z,gyro_y,gyro_x\n", "a,b\n1,2,3\n"])
def test_no_usable_rows_raises_empty_input(text: str) -> None:
    with pytest.raises(EmptyInputError):
        parse_combined(text)


def test_read_combined_csv_from_file(tmp_path) -> None:
    path = tmp_path / "combined.csv"
    path.write_text("Sample,Acc_Z\n0.5,0.25,-1,2,3,4\n", encoding="utf-8")
    assert read_combined_csv(path) == [[0.5, 0.25, -1.0, 2.0, 3.0, 4.0]]


def test_export_format_has_index_and_twelve_decimals() -> None:
    text = format_samples_csv([[1, 2, 3, 4, 5, 6], [-0.5, 0.125, 0, 1e-3, 2, 3]])
    lines = text.splitlines()

    assert lines[0] == "Sample,Acc_Z,Acc_Y,Acc_X,Gyro_Z,Gyro_Y,Gyro_X"
    assert lines[1] == "1,1.000000000000,2.000000000000,3.000000000000,4.000000000000,5.000000000000,6.000000000000"
    assert lines[2].startswith("2,-0.500000000000,0.125000000000,0.000000000000,0.001000000000,")
    assert len(lines) == 3


def test_exported_csv_parses_back_with_same_values() -> None:
    samples = [[0.25, -1.5, 2.0, 3.75, -4.0, 0.5]]
    parsed = parse_combined(format_samples_csv(samples))
    # The index column shifts the six channels by one when re-read.
    assert parsed == [[1.0, 0.25, -1.5, 2.0, 3.75, -4.0]]


def test_export_rejects_empty_data(tmp_path) -> None:
    with pytest.raises(EmptyInputError):
        write_samples_csv([], tmp_path)


def test_write_samples_csv_names_file_with_prefix_and_timestamp(tmp_path) -> None:
    path = write_samples_csv([[1, 2, 3, 4, 5, 6]], tmp_path / "exports", prefix="session_data")

    assert path.exists()
    assert re.fullmatch(r"session_data_\d{8}_\d{6}\.csv", path.name)
    assert path.read_text(encoding="utf-8").startswith("Sample,Acc_Z")

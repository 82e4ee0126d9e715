import pytest

from services.reader.file_reader import FileDataReader, parse_line
from services.simulator.outputs import FileOutputStrategy, format_line
from shared.models import RecordType


def test_parse_line():
    line = "Patient ID: 7, Timestamp: 1700000000000, Label: Saturation, Data: 97.5"

    assert parse_line(line) == (7, 97.5, "Saturation", 1700000000000)


def test_parse_line_accepts_percent_suffix():
    assert parse_line(format_line(1, 1000, "Saturation", "96%")) == (1, 96.0, "Saturation", 1000)


def test_parse_blank_line():
    assert parse_line("   \n") is None


@pytest.mark.parametrize(
    "line",
    [
        "Patient ID: 1, Timestamp: 1000, Label: ECG",
        "Patient ID: x, Timestamp: 1000, Label: ECG, Data: 70",
        "Patient: 1, Timestamp: 1000, Label: ECG, Data: 70",
        "Patient ID: 1, Timestamp: 1000, Label: ECG, Data: seventy",
    ],
)
def test_parse_malformed_line(line):
    with pytest.raises(ValueError):
        parse_line(line)


def test_reads_simulator_file_output(tmp_path, storage):
    output = FileOutputStrategy(str(tmp_path))
    output.output(1, 1000, "SystolicPressure", 125.0)
    output.output(1, 2000, "SystolicPressure", 131.0)
    output.output(2, 1500, "Saturation", 95.5)
    output.output(1, 1200, "ECG", 72.0)

    summary = FileDataReader(str(tmp_path)).read_data(storage)

    assert (summary.files, summary.records, summary.skipped) == (3, 4, 0)
    assert storage.get_patient_ids() == [1, 2]
    systolic = storage.get_records(1, 0, 3000, record_type=RecordType.SYSTOLIC_PRESSURE)
    assert sorted(r.value for r in systolic) == [125.0, 131.0]


def test_bad_lines_are_skipped_not_fatal(tmp_path, storage):
    (tmp_path / "mixed.txt").write_text(
        "\n".join([
            format_line(1, 1000, "ECG", 70),
            "garbage",
            format_line(1, 2000, "Alert", "triggered"),
            format_line(1, 3000, "Cholesterol", 200),
            format_line(1, 4000, "ECG", 75),
        ]),
        encoding="utf-8",
    )
    (tmp_path / "notes.csv").write_text("ignored", encoding="utf-8")

    summary = FileDataReader(str(tmp_path)).read_data(storage)

    assert (summary.files, summary.records, summary.skipped) == (1, 2, 3)
    assert storage.record_count(1) == 2


def test_missing_directory_raises(tmp_path, storage):
    with pytest.raises(NotADirectoryError):
        FileDataReader(str(tmp_path / "missing")).read_data(storage)


def test_undecodable_line_is_skipped(tmp_path, storage):
    good_first = format_line(1, 1000, "ECG", 70).encode("utf-8")
    good_last = format_line(1, 3000, "ECG", 74).encode("utf-8")
    (tmp_path / "ECG.txt").write_bytes(good_first + b"\nPatient ID: 1, \xff\xfe bad\n" + good_last + b"\n")
    (tmp_path / "Saturation.txt").write_text(format_line(1, 2000, "Saturation", 97) + "\n", encoding="utf-8")

    summary = FileDataReader(str(tmp_path)).read_data(storage)

    assert (summary.files, summary.records, summary.skipped) == (2, 3, 1)
    assert storage.record_count(1) == 3

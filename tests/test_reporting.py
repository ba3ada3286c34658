import pytest
import csv
from pathlib import Path
from movr.commit.executor import CommitExecutor
from movr.models import Record, apply_edit
from movr.reporting import ReportGenerator


def read_rows(path):
    with open(path, "r", encoding="utf-8") as f:
        return list(csv.DictReader(f))


def test_report_lists_every_record_with_outcome(make_file, tmp_path):
    """Committed, renamed and skipped records each get a row with the right status."""
    first = Record.from_path(make_file("MO1_K111111_005.jpg"))
    second = Record.from_path(make_file("copy_MO1_K111111_005.jpg"))
    skipped = Record.from_path(make_file("vacation.jpg"))
    records = [first, second, skipped]

    CommitExecutor(yield_interval=0).execute(records, tmp_path / "library")

    output_csv = tmp_path / "out" / "report.csv"
    assert ReportGenerator().generate_commit_report(records, output_csv) == 3

    rows = read_rows(output_csv)
    assert [r["Status"] for r in rows] == ["Committed", "Committed (Renamed)", "Skipped"]
    assert rows[0]["Canonical Filename"] == "IMG_QVC_PH_LS_MO1_K111111_005.jpg"
    assert rows[0]["Destination Path"].endswith("IMG_QVC_PH_LS_MO1_K111111_005.jpg")
    assert rows[1]["Destination Path"] != rows[0]["Destination Path"]
    assert rows[2]["Canonical Filename"] == ""
    assert rows[2]["Notes"] == "missing required information"
    assert rows[0]["Image Type"] == "Lifestyle"


def test_uncommitted_records_are_pending():
    ok = Record.from_path(Path("/in/MO1_K111111.jpg"))
    incomplete = apply_edit(Record.from_path(Path("/in/MO1_K111111.jpg")), description="")

    gen = ReportGenerator()
    assert gen._row(ok)[4] == "Pending"
    assert gen._row(ok)[6] == ""
    assert gen._row(incomplete)[6] == "Missing required information"


def test_failed_rows_carry_the_error(make_file, tmp_path):
    rec = Record.from_path(tmp_path / "missing" / "MO1_K111111.jpg")
    CommitExecutor(yield_interval=0).execute([rec], tmp_path / "library")

    output_csv = tmp_path / "report.csv"
    ReportGenerator().generate_commit_report([rec], output_csv)

    row = read_rows(output_csv)[0]
    assert row["Status"] == "Failed"
    assert row["Notes"]
    assert row["Destination Path"] == ""

import json
import pytest
from movr.database.db import DBManager
from movr.main import parse_args, run, batch_changes


def test_full_run_commits_and_reports(make_file, tmp_path):
    a = make_file("MO1_K111111_005.jpg", b"a")
    b = make_file("PH2_K222222_006.jpg", b"b")
    dest = tmp_path / "library"
    report = tmp_path / "report.csv"
    log = tmp_path / "processing.log"

    code = run(parse_args([str(a), str(b), "--dest", str(dest),
                           "--report-csv", str(report), "--audit-log", str(log)]))

    assert code == 0
    assert (dest / "Lifestyle Images" / "IMG_QVC_PH_LS_MO1_K111111_005.jpg").read_bytes() == b"a"
    assert (dest / "Lifestyle Images" / "IMG_HSN_PH_LS_PH2_K222222_006.jpg").read_bytes() == b"b"
    assert a.exists() and b.exists()
    assert report.read_text(encoding="utf-8").count("Committed") == 2
    assert "Processing Complete" in log.read_text(encoding="utf-8")


def test_batch_fields_apply_to_every_file(make_file, tmp_path):
    src = make_file("shoot_a.jpg")
    dest = tmp_path / "library"

    code = run(parse_args([str(src), "--dest", str(dest), "--type", "product",
                           "--description", "K123456", "--request-id", "MO9", "--retouched"]))

    assert code == 0
    assert (dest / "Product Images" / "IMG_QVC_PH_PR_MO9_K123456_RT.jpg").exists()


def test_too_many_incomplete_files_refuses(make_file, tmp_path):
    files = [make_file("a.jpg"), make_file("b.jpg"), make_file("MO1_K111111.jpg")]
    dest = tmp_path / "library"

    code = run(parse_args([*map(str, files), "--dest", str(dest)]))

    assert code == 1
    assert not (dest / "Lifestyle Images").exists()


def test_skipped_files_give_partial_exit_code(make_file, tmp_path):
    files = [make_file("a.jpg"), make_file("MO1_K111111.jpg")]
    code = run(parse_args([*map(str, files), "--dest", str(tmp_path / "library")]))
    assert code == 2


def test_dry_run_copies_nothing_then_restore_commits(make_file, tmp_path):
    src = make_file("MO1_K111111_005.jpg")
    dest = tmp_path / "library"

    assert run(parse_args([str(src), "--dest", str(dest), "--dry-run"])) == 0
    assert not (dest / "Lifestyle Images").exists()

    assert run(parse_args(["--dest", str(dest), "--restore"])) == 0
    assert (dest / "Lifestyle Images" / "IMG_QVC_PH_LS_MO1_K111111_005.jpg").exists()


def test_settings_export_and_import(make_file, tmp_path):
    src = make_file("MO1_K111111.jpg")
    dest = tmp_path / "library"
    settings = tmp_path / "settings.json"

    run(parse_args([str(src), "--dest", str(dest), "--type", "headshot",
                    "--export-settings", str(settings), "--dry-run"]))
    exported = json.loads(settings.read_text(encoding="utf-8"))
    assert exported["defaultBatchType"] == "headshot"
    assert exported["destinationPath"] == str(dest.resolve())

    other = tmp_path / "other"
    code = run(parse_args([str(make_file("MO2_K222222.jpg")), "--dest", str(other),
                           "--import-settings", str(settings)]))
    assert code == 0
    assert list((other / "Headshots").iterdir())


def test_batch_changes_only_includes_given_flags():
    args = parse_args(["--dest", "/tmp/x", "--company", "HSN", "--sequence", "002"])
    assert batch_changes(args) == {"company": "HSN", "sequence": "002"}


def test_audit_entries_reach_the_session_database(make_file, tmp_path):
    dest = tmp_path / "library"
    run(parse_args([str(make_file("MO1_K111111_005.jpg")), "--dest", str(dest)]))

    with DBManager.for_destination(dest) as ops:
        actions = [r['action'] for r in ops.fetch_audit_entries()]
    assert "Filename Parsed" in actions
    assert "File Processed" in actions
    assert actions[-1] == "Processing Complete"

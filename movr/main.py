import argparse
import json
import logging
import sys
from pathlib import Path

from .audit import AuditLog
from .commit.executor import CommitExecutor
from .commit.progress import format_time_remaining
from .core import AssetSession
from .database.db import DBManager
from .exceptions import BatchValidationError, MovrError
from .models import Company, ImageType
from .reporting import ReportGenerator
from .scanning.filesystem import SourceScanner
from .validation import ValidationGate
from . import config

def setup_logging(dest_root: Path, verbose: bool):
    """Sets up logging to both console and a file in the destination."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Create dest root if it doesn't exist so we can log there
    dest_root.mkdir(parents=True, exist_ok=True)
    log_file = dest_root / "movr.log"

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.FileHandler(log_file, encoding='utf-8'),
            logging.StreamHandler(sys.stdout)
        ]
    )

    # Silence chatty libraries
    logging.getLogger("PIL").setLevel(logging.WARNING)

def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Movr: rename vendor photo assets and commit them to the library")

    p.add_argument("sources", type=Path, nargs="*", help="Files or folders to import")
    p.add_argument("--dest", type=Path, required=True, help="Destination library root")

    p.add_argument("--type", choices=[t.slug for t in ImageType], default=None, help="Image type for the batch")
    p.add_argument("--company", choices=[c.value for c in Company], default=None, help="Company for every file")
    p.add_argument("--description", default=None, help="Item number for every file")
    p.add_argument("--request-id", default=None, help="Request ID (MO#/PH#) for every file")
    p.add_argument("--sequence", default=None, help="Sequence number for every file")
    p.add_argument("--retouched", action="store_true", help="Mark every file as retouched")
    p.add_argument("--auto-fill", action="store_true", help="Fill missing item numbers/request IDs from filenames")

    p.add_argument("--recursive", action="store_true", help="Descend into subfolders of source folders")
    p.add_argument("--restore", action="store_true", help="Start from the previously saved session")
    p.add_argument("--threshold", type=float, default=config.VALIDATION_FAILURE_THRESHOLD,
                   help="Refuse to commit when more than this share of files have issues")
    p.add_argument("--dry-run", action="store_true", help="Show the planned names without copying")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    p.add_argument("--db", type=Path, default=None, help=f"Custom path for the session DB (default: dest/{config.DB_FILENAME})")
    p.add_argument("--report-csv", type=Path, default=None, help="Write a per-file commit report to this CSV")
    p.add_argument("--audit-log", type=Path, default=None, help="Write the processing log to this file")
    p.add_argument("--export-settings", type=Path, default=None, help="Write current settings as JSON")
    p.add_argument("--import-settings", type=Path, default=None, help="Load settings from a JSON file")

    return p.parse_args(argv)

def batch_changes(args) -> dict:
    changes = {}
    if args.type:
        changes['image_type'] = args.type
    if args.company:
        changes['company'] = args.company
    if args.description:
        changes['description'] = args.description
    if args.request_id:
        changes['request_id'] = args.request_id
    if args.sequence:
        changes['sequence'] = args.sequence
    if args.retouched:
        changes['retouched'] = True
    return changes

def log_progress(snapshot, record):
    if snapshot.throughput is not None:
        logging.debug(
            f"{snapshot.index}/{snapshot.total} {record.original_filename} "
            f"({snapshot.throughput:.1f} files/sec, ETA {format_time_remaining(snapshot.eta or 0)})"
        )

def run(args) -> int:
    dest_root = args.dest.resolve()
    manager = DBManager.for_destination(dest_root, args.db)
    with manager as db_ops:
        audit = AuditLog(db_ops=db_ops)

        session = AssetSession(
            audit_log=audit,
            store=db_ops,
            gate=ValidationGate(args.threshold),
            executor=CommitExecutor(audit_log=audit, show_progress=True),
            default_type=ImageType.from_string(args.type) if args.type else None,
            destination_root=dest_root,
        )

        if args.import_settings:
            session.import_settings(json.loads(args.import_settings.read_text(encoding="utf-8")))

        if args.restore:
            restored = session.restore_state()
            logging.info(f"Restored {restored} files from previous session.")

        scanner = SourceScanner()
        session.import_paths(scanner.expand(args.sources, recursive=args.recursive))

        if args.auto_fill:
            session.auto_fill_missing()

        changes = batch_changes(args)
        if changes and len(session):
            session.apply_to_all(**changes)

        if args.export_settings:
            args.export_settings.write_text(json.dumps(session.export_settings(), indent=2), encoding="utf-8")
            logging.info(f"Settings written to {args.export_settings}")

        for issue in session.validation_report():
            logging.warning(str(issue))

        if args.dry_run:
            for rec in session.records:
                target = dest_root / rec.image_type.destination_folder / rec.canonical_name if rec.canonical_name else None
                logging.info(f"[DRY RUN] {rec.source_path} -> {target or 'SKIP (missing required information)'}")
            return 0

        try:
            summary = session.commit(dest_root, on_progress=log_progress)
        except BatchValidationError as e:
            logging.error(str(e))
            return 1
        finally:
            if args.audit_log:
                audit.save(args.audit_log)

        if args.report_csv:
            ReportGenerator().generate_commit_report(session.records, args.report_csv)

        return 0 if summary.error_count == 0 else 2

def main(argv=None):
    args = parse_args(argv)

    dest_root = args.dest.resolve()
    setup_logging(dest_root, args.verbose)

    logging.info("=== Movr Started ===")
    logging.info(f"Dest:   {dest_root}")

    try:
        code = run(args)
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        sys.exit(1)
    except MovrError as e:
        logging.error(str(e))
        sys.exit(1)
    except Exception:
        logging.exception("Fatal error during processing.")
        sys.exit(1)

    sys.exit(code)

if __name__ == "__main__":
    main()

"""
Inventory import from the command line.

Previews every file (column mapping, row counts, validation errors), then
commits them as one import job.

Usage:
    # Preview only
    python scripts/import_inventory.py estoque.xlsx filial2.csv --dry-run

    # Preview and commit
    python scripts/import_inventory.py estoque.xlsx filial2.csv
"""

import argparse
import os
import sys
import threading

# Allow imports from the project root when running as a script
_root_dir = os.path.join(os.path.dirname(__file__), "..")
sys.path.insert(0, _root_dir)

from dotenv import load_dotenv
load_dotenv(os.path.join(_root_dir, ".env"))

from config import configure_logging
from services.catalog_service import get_catalog_service
from services.import_coordinator import ImportCoordinator, ImportState

SEPARATOR = "=" * 61
PROGRESS_INTERVAL_SEC = 1.0


def add_files(coordinator: ImportCoordinator, paths: list[str]) -> None:
    """Plan every file, named by its path as given (not just the basename)."""
    for path in paths:
        file_name = os.path.normpath(path)
        if not os.path.isfile(path):
            coordinator.reject_file(file_name, "FILE_NOT_FOUND", "File does not exist")
            continue
        coordinator.add_file(path, file_name)


def print_previews(coordinator: ImportCoordinator) -> None:
    """Print one block per accepted file, then the rejected files."""
    print(SEPARATOR)
    print("  IMPORT PREVIEW")
    print(SEPARATOR)

    for plan in coordinator.plans:
        print()
        print(f"{plan.file_name}")
        print(f"  Rows:    {plan.total_rows:>8,}")
        print(f"  Valid:   {plan.valid_count:>8,}")
        print(f"  Invalid: {plan.invalid_count:>8,}")
        print("  Columns:")
        for header, field_name in plan.mapped_columns.items():
            print(f"    {header!r:<30} -> {field_name}")
        for error in plan.errors:
            print(f"  ! row {error.row} {error.field}: {error.message}")
        if plan.errors_truncated:
            print(f"  ! ... {plan.error_total - len(plan.errors)} more")

    for rejected in coordinator.rejected_files:
        print()
        print(f"{rejected.file_name}")
        print(f"  REJECTED ({rejected.code}): {rejected.reason}")

    print()


def run_with_progress(coordinator: ImportCoordinator) -> None:
    """Run the job, printing progress from a watcher thread."""
    done = threading.Event()

    def watch() -> None:
        while not done.wait(PROGRESS_INTERVAL_SEC):
            p = coordinator.progress
            print(
                f"  {p.current:>8,}/{p.total:,}  "
                f"+{p.inserted:,} ~{p.updated:,} x{p.errors:,}  {p.current_file}"
            )

    watcher = threading.Thread(target=watch, daemon=True)
    watcher.start()
    try:
        coordinator.run()
    except KeyboardInterrupt:
        coordinator.request_stop()
        raise
    finally:
        done.set()
        watcher.join()


def print_summary(coordinator: ImportCoordinator) -> None:
    summary = coordinator.summary
    print()
    print(SEPARATOR)
    print("  IMPORT STOPPED" if summary.stopped else "  IMPORT COMPLETE")
    print(f"  Files:    {summary.files_processed}")
    print(f"  Inserted: {summary.total_inserted:,}")
    print(f"  Updated:  {summary.total_updated:,}")
    print(f"  Errors:   {summary.total_errors:,}")
    if summary.rejected_files:
        print(f"  Rejected: {', '.join(r.file_name for r in summary.rejected_files)}")
    print(SEPARATOR)


def main():
    parser = argparse.ArgumentParser(
        description="Import inventory spreadsheets into the catalog."
    )
    parser.add_argument(
        "files",
        nargs="+",
        help="CSV or Excel files to import",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only preview the files, do not write to the catalog",
    )

    args = parser.parse_args()

    configure_logging()

    store = None if args.dry_run else get_catalog_service()
    coordinator = ImportCoordinator(store)

    add_files(coordinator, args.files)

    print_previews(coordinator)

    if not coordinator.plans:
        print("ERROR: No importable files.")
        sys.exit(1)

    if args.dry_run:
        print("Dry run: nothing written.")
        sys.exit(0)

    run_with_progress(coordinator)
    print_summary(coordinator)

    ok = coordinator.state == ImportState.COMPLETED and coordinator.summary.total_errors == 0
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()

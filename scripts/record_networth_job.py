#!/usr/bin/env python
"""
Daily Net Worth Recording Job

Runs once a day (cron, systemd timer, ...) to record an AUTOMATIC net worth
snapshot for every user. Recording the same day twice overwrites that day.

Usage:
    python scripts/record_networth_job.py [--date YYYY-MM-DD] [--user-id ID]

Options:
    --date: Day to record (default: today)
    --user-id: Process only specific user (default: all users)
"""
import sys
from pathlib import Path
from datetime import date, datetime
from argparse import ArgumentParser

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from networth.db.core import get_db, NotFoundError
from networth.logging_config import setup_logging
from networth.services.networth_history import run_automatic_recording


def run_recording(snapshot_date: date, user_id: int = None) -> int:
    """
    Record net worth for all users (or one user). Returns the process exit code.
    """
    print("=" * 60)
    print(f"Running Net Worth Recording Job - {snapshot_date}")
    print("=" * 60)

    db = next(get_db())

    try:
        result = run_automatic_recording(db, snapshot_date=snapshot_date, user_id=user_id)
    except NotFoundError as e:
        print(str(e))
        return 1
    finally:
        db.close()

    for error in result.errors:
        print(f"ERROR processing user {error.email} (ID: {error.user_id}): {error.error}")

    print("\n" + "=" * 60)
    print("Job Complete!")
    print(f"  Users processed: {result.processed_users}")
    print(f"  Records written: {result.successful_records}")
    print(f"  Errors: {result.error_count}")
    print("=" * 60)

    return 0 if result.error_count == 0 else 1


def main():
    parser = ArgumentParser(description="Record daily net worth snapshots")

    parser.add_argument(
        '--date',
        type=str,
        help='Snapshot date (YYYY-MM-DD), defaults to today'
    )

    parser.add_argument(
        '--user-id',
        type=int,
        help='Process only specific user ID'
    )

    args = parser.parse_args()

    setup_logging()

    # Parse date
    if args.date:
        try:
            snapshot_date = datetime.strptime(args.date, '%Y-%m-%d').date()
        except ValueError:
            print(f"Invalid date format: {args.date}. Use YYYY-MM-DD")
            sys.exit(1)
    else:
        snapshot_date = date.today()

    sys.exit(run_recording(snapshot_date=snapshot_date, user_id=args.user_id))


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""Utility script to back up the listings database."""
import argparse
import sqlite3
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from olx_monitor.config import ADS_DB


def backup(db_path: Path, backups_dir: Path | None = None) -> Path:
    """Copy db_path to backups/<name>.<timestamp>.bak using the SQLite backup API."""
    if not db_path.exists():
        raise FileNotFoundError(f"Database not found: {db_path}")

    backups_dir = backups_dir or db_path.parent / "backups"
    backups_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    dest_path = backups_dir / f"{db_path.name}.{stamp}.bak"

    # The backup API gives a consistent copy even while a scrape is writing
    source = sqlite3.connect(db_path)
    dest = sqlite3.connect(dest_path)
    try:
        source.backup(dest)
    finally:
        dest.close()
        source.close()
    return dest_path


def main() -> None:
    parser = argparse.ArgumentParser(description="Back up the listings database")
    parser.add_argument("--db", type=Path, default=ADS_DB, help=f"Database file (default: {ADS_DB})")
    parser.add_argument("--dest", type=Path, default=None, help="Backups directory (default: <db dir>/backups)")
    args = parser.parse_args()

    try:
        dest_path = backup(args.db, args.dest)
    except (FileNotFoundError, sqlite3.Error) as e:
        print(f"Backup failed: {e}")
        sys.exit(1)
    print(f"Backup created: {dest_path}")


if __name__ == "__main__":
    main()

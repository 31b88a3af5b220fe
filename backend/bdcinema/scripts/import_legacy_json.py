#!/usr/bin/env python3
"""Import a legacy bdcinema-data.json dump into the configured database."""
import argparse
import json
import sys
from pathlib import Path

from bdcinema.core.database import SessionLocal, create_tables
from bdcinema.services.legacy_import import import_legacy_data


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("path", nargs="?", default="bdcinema-data.json", help="Path to the JSON dump")
    args = parser.parse_args(argv)

    path = Path(args.path)
    if not path.exists():
        print(f"No legacy data found at {path}. Skipping import.")
        return 0

    data = json.loads(path.read_text(encoding="utf-8"))
    create_tables()
    db = SessionLocal()
    try:
        counts = import_legacy_data(db, data)
    finally:
        db.close()

    for key, value in counts.items():
        print(f"{key:<10} {value:>6}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

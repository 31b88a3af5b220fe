#!/usr/bin/env python3
"""Run the TMDB region sync from the command line (same as POST /api/tmdb/sync)."""
import argparse
import asyncio
import sys

from bdcinema.core.config import settings
from bdcinema.core.database import SessionLocal, create_tables
from bdcinema.services.catalog_sync import sync_curated_region


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--region", default=settings.sync_region, help="ISO country code, e.g. BD or IN")
    args = parser.parse_args(argv)

    create_tables()
    db = SessionLocal()
    try:
        result = asyncio.run(sync_curated_region(db, args.region))
    finally:
        db.close()
    print(f"Synced {result['synced']} titles ({result['movies']} movies, {result['series']} series)")
    return 0


if __name__ == "__main__":
    sys.exit(main())

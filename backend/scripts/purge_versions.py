"""Purge intermediate content versions of a collection.

Usage:
  python scripts/purge_versions.py --collection-id 3            # dry-run
  python scripts/purge_versions.py --collection-id 3 --apply    # delete purgeable versions
"""
import argparse
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from content_engine.database import SessionLocal
from content_engine.services.purge_service import PurgeEngine


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--collection-id", type=int, required=True, help="Target collection id")
    parser.add_argument("--apply", action="store_true", help="Actually delete purgeable versions")
    parser.add_argument("--batch-size", type=int, default=None, help="Contents per delete batch")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        engine = PurgeEngine(db, batch_size=args.batch_size)
        purgeable = engine.preview_purge(args.collection_id)
        deleted = engine.purge(args.collection_id) if args.apply else 0
    finally:
        db.close()

    print("Version purge result")
    print(f"  collection_id: {args.collection_id}")
    print(f"  dry_run: {not args.apply}")
    print(f"  purgeable_count: {purgeable}")
    print(f"  deleted_count: {deleted}")


if __name__ == "__main__":
    main()

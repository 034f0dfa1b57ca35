"""Apply pending schema and data migrations."""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from content_engine.database import engine
from content_engine.utils.migrations import MIGRATIONS, run_migrations


def migrate():
    print(f"Checking {len(MIGRATIONS)} migrations... dialect={engine.dialect.name}")
    applied = run_migrations(engine)
    for migration_id in applied:
        print(f"[OK] applied: {migration_id}")
    if not applied:
        print("[SKIP] nothing to apply")


if __name__ == "__main__":
    migrate()

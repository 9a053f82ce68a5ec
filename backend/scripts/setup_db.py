"""CLI script to drop, recreate and seed the catalog database.
Usage: python scripts/setup_db.py [--data-dir DIR] [--concurrency N]
"""
import sys
import pathlib
# Ensure `backend/` is on sys.path so `catalog` package imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from catalog.seed import main

if __name__ == '__main__':
    sys.exit(main())

"""
Check that the database is reachable and every inventory table answers.

Run locally:
  python backend/scripts/check_connection.py

Exits non-zero when any table fails.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from sqlalchemy import select

from db.database import Base, async_session_maker
from routers.health import CHECKED_TABLES


async def main() -> int:
    failures = 0
    async with async_session_maker() as db:
        for i, name in enumerate(CHECKED_TABLES, start=1):
            print(f"{i}. Checking table '{name}'...")
            try:
                await db.execute(select(Base.metadata.tables[name]).limit(1))
                print("   ok")
            except Exception as e:
                await db.rollback()
                failures += 1
                print(f"   FAILED: {e}")

    print("=" * 50)
    if failures:
        print(f"Partial connection: {len(CHECKED_TABLES) - failures}/{len(CHECKED_TABLES)} tables reachable")
    else:
        print("Database connection OK, all tables reachable")
    print("=" * 50)
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))

"""
Run the daily quantity reset outside the API (e.g. from cron at midnight).

Run locally:
  python backend/scripts/reset_daily.py [--warehouse-id UUID] [--force]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import uuid
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from core.daily_reset import reset_daily_quantities
from core.log import setup_logging
from db.database import async_session_maker


async def main(warehouse_id: uuid.UUID | None, force: bool) -> None:
    setup_logging()
    async with async_session_maker() as db:
        count = await reset_daily_quantities(db, warehouse_id=warehouse_id, force=force)
    print(f"Rebaselined {count} item(s)")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Reset the per-day inventory counters")
    parser.add_argument("--warehouse-id", type=uuid.UUID, default=None)
    parser.add_argument("--force", action="store_true", help="rebaseline items already reset today")
    args = parser.parse_args()
    asyncio.run(main(args.warehouse_id, args.force))

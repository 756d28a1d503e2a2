"""
Create (or promote) an administrator account from the command line.

Run locally:
  python backend/scripts/create_admin.py --email admin@example.com --username admin --password secret

Same rules as POST /setup/admin, except --force skips the "no active
administrator yet" check.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from sqlalchemy import select

from core.auth import InventoryUserDatabase, UserManager, exceptions
from db.database import async_session_maker, create_db_and_tables
from db.users import User
from schemas.users import UserCreate


async def main(email: str, username: str, password: str, full_name: str | None, force: bool) -> int:
    await create_db_and_tables()
    async with async_session_maker() as session:
        admin = await session.execute(
            select(User.id).where(User.is_superuser == True, User.is_active == True).limit(1)  # noqa: E712
        )
        if admin.first() and not force:
            print("An active administrator already exists (use --force to add another)")
            return 1

        res = await session.execute(select(User).where(User.email == email))
        existing = res.scalar_one_or_none()
        if existing is not None:
            existing.username = username
            existing.full_name = full_name
            existing.is_superuser = True
            existing.is_active = True
            existing.is_verified = True
            await session.commit()
            print(f"Promoted {existing.email} ({existing.id}) to administrator")
            return 0

        manager = UserManager(InventoryUserDatabase(session, User))
        try:
            user = await manager.create(
                UserCreate(
                    email=email,
                    password=password,
                    username=username,
                    full_name=full_name,
                    is_superuser=True,
                    is_active=True,
                    is_verified=True,
                ),
                safe=False,
            )
        except exceptions.UserAlreadyExists:
            print(f"User {email} already exists")
            return 1
        print(f"Created administrator {user.email} ({user.id})")
        return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--email", required=True)
    parser.add_argument("--username", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--full-name", default=None)
    parser.add_argument("--force", action="store_true")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.email, args.username, args.password, args.full_name, args.force)))

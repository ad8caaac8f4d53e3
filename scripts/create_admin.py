"""
Create (or reset) a platform administrator account.

Usage:
    ENV_FILE=.env python scripts/create_admin.py admin 'a-strong-password'
"""

import asyncio
import os
import sys
from pathlib import Path

# Add parent directory to path to import libs
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

# MUST be done before importing libs that use get_settings()
project_root = Path(__file__).resolve().parents[1]
env_file = os.environ.get("ENV_FILE", ".env")
load_dotenv(project_root / env_file, override=True)

from sqlalchemy import select

from libs.auth.security import hash_password
from libs.db.config import Database
from services.marketplace_service.models import AdminUser


async def create_admin_user(username: str, password: str) -> None:
    print("🚀 Starting Admin User Creation Script")
    database = Database()
    try:
        async with database.session() as session:
            async with session.begin():
                result = await session.execute(
                    select(AdminUser).where(AdminUser.username == username)
                )
                admin = result.scalar_one_or_none()
                if admin:
                    print(f"⚠️ Admin {username} already exists. Resetting password.")
                    admin.password_hash = hash_password(password)
                    admin.disabled = False
                else:
                    session.add(
                        AdminUser(
                            username=username,
                            password_hash=hash_password(password),
                            nickname="Administrator",
                            is_super=True,
                        )
                    )
                    print("✅ Admin record created.")
    finally:
        await database.dispose()

    print("\n🎉 Admin setup complete!")
    print(f"Username: {username}")
    print("Log in through POST /auth/admin/login")


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(1)
    asyncio.run(create_admin_user(sys.argv[1], sys.argv[2]))

"""초기 데이터 시드 스크립트 — 관리자 계정 생성.

Seed script — Creates the bootstrap admin account.
Run this script once to bootstrap a fresh database.

Usage:
    python -m auth_server.seed

Environment:
    SEED_ADMIN_EMAIL: 관리자 이메일 (default admin@example.com)
    SEED_ADMIN_PASSWORD: 관리자 비밀번호 (default Admin1234!)
"""

import asyncio
import os
from datetime import datetime, timezone

from auth_server.database import Base, async_session, engine
from auth_server.models.user import ROLE_ADMIN, STATUS_ACTIVE, User, generate_user_id
from auth_server.repositories.account_repository import SqlAccountRepository
from auth_server.utils.logger import log
from auth_server.utils.password import hash_password


async def seed() -> None:
    """데이터베이스를 초기 데이터로 시드합니다.

    Create tables if they don't exist, then insert the admin account.

    Idempotent: 이미 시드된 경우 건너뜁니다 (Skips if the admin email is taken).
    """
    email: str = os.environ.get("SEED_ADMIN_EMAIL", "admin@example.com")
    password: str = os.environ.get("SEED_ADMIN_PASSWORD", "Admin1234!")

    # 테이블 생성 — DDL 실행 (Create all tables from ORM metadata)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as db:
        accounts: SqlAccountRepository = SqlAccountRepository(db)
        if await accounts.exists_by_email(email):
            log.info(f"Already seeded ({email}). Skipping.")
            return

        now: datetime = datetime.now(timezone.utc)
        admin: User = User(
            user_id=generate_user_id(),
            email=email,
            password_hash=hash_password(password),
            first_name="System",
            last_name="Admin",
            avatar="",
            role=ROLE_ADMIN,
            status=STATUS_ACTIVE,
            language="en",
            theme="light",
            notifications=True,
            created_at=now,
            updated_at=now,
        )
        await accounts.insert(admin)
        await db.commit()
        log.info(f"Seeded admin account {admin.user_id} ({email})")


if __name__ == "__main__":
    asyncio.run(seed())

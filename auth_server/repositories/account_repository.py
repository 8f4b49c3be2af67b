"""계정 레포지토리 — 사용자 계정 조회/생성/갱신.

Account Repository — SQLAlchemy implementation of ``AccountRepository``.
Email uniqueness is enforced by the ``uq_user_accounts_email`` constraint;
a duplicate-key failure on insert is reported as ``AccountExistsError``.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Select, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from auth_server.models.user import User
from auth_server.repositories.base import AccountRepository, store_errors
from auth_server.utils.exceptions import AccountExistsError

# 갱신 불가 필드 — Fields update_fields never touches
_IMMUTABLE_FIELDS: frozenset[str] = frozenset({"id", "user_id", "email", "created_at"})


class SqlAccountRepository(AccountRepository):
    """사용자 계정 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling account queries against ``user_accounts``.

    Args:
        db: 비동기 데이터베이스 세션 (Async database session bound for the request)
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db: AsyncSession = db

    async def find_by_email(self, email: str) -> User | None:
        """이메일로 계정을 조회합니다.

        Retrieve an account by its exact email address.

        Args:
            email: 조회할 이메일 (Email to look up)

        Returns:
            User | None: 조회된 계정 또는 None (Found account or None)
        """
        query: Select = select(User).where(User.email == email)
        with store_errors("account.find_by_email"):
            result = await self.db.execute(query)
            return result.scalar_one_or_none()

    async def find_by_id(self, user_id: str) -> User | None:
        """안정 식별자로 계정을 조회합니다.

        Retrieve an account by its stable ``usr_`` identifier.
        """
        query: Select = select(User).where(User.user_id == user_id)
        with store_errors("account.find_by_id"):
            result = await self.db.execute(query)
            return result.scalar_one_or_none()

    async def insert(self, user: User) -> User:
        """새 계정을 저장합니다.

        Insert a new account row. The check-then-insert in the service is not
        atomic; the unique constraint decides concurrent registrations.

        Args:
            user: 저장할 계정 (Account to persist)

        Returns:
            User: 저장된 계정 (Persisted account)

        Raises:
            AccountExistsError: 이메일 중복 시 (Duplicate email)
        """
        with store_errors("account.insert"):
            self.db.add(user)
            try:
                await self.db.flush()
            except IntegrityError as exc:
                await self.db.rollback()
                raise AccountExistsError() from exc
            return user

    async def update_fields(self, user_id: str, fields: dict[str, Any]) -> bool:
        """계정 필드를 갱신합니다.

        Update the given fields on an account and stamp ``updated_at``.
        Identity fields are ignored.

        Args:
            user_id: 대상 계정 안정 식별자 (Target account stable id)
            fields: 갱신할 필드와 값 (Fields and values to set)

        Returns:
            bool: 계정이 존재하여 갱신되었는지 여부 (Whether an account was updated)
        """
        values: dict[str, Any] = {
            key: value for key, value in fields.items() if key not in _IMMUTABLE_FIELDS
        }
        values["updated_at"] = datetime.now(timezone.utc)

        with store_errors("account.update_fields"):
            result = await self.db.execute(
                update(User).where(User.user_id == user_id).values(**values)
            )
            await self.db.flush()
            return result.rowcount > 0

    async def exists_by_email(self, email: str) -> bool:
        """이메일 사용 여부를 확인합니다 (Whether an account uses this email)."""
        query: Select = select(func.count()).select_from(User).where(User.email == email)
        with store_errors("account.exists_by_email"):
            count: int = (await self.db.execute(query)).scalar() or 0
            return count > 0

"""세션 레포지토리 — 리프레시 토큰 세션 CRUD.

Session Repository — SQLAlchemy implementation of ``SessionRepository``.
Refresh-token lookups filter out expired rows in the query, so callers never
see a session whose ``expires_at`` has passed.
"""

from datetime import datetime, timezone

from sqlalchemy import Select, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from auth_server.models.token import AuthSession
from auth_server.repositories.base import SessionRepository, store_errors


class SqlSessionRepository(SessionRepository):
    """인증 세션 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling ``auth_sessions`` queries.

    Args:
        db: 비동기 데이터베이스 세션 (Async database session bound for the request)
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db: AsyncSession = db

    async def insert(self, auth_session: AuthSession) -> AuthSession:
        """새 세션을 저장합니다 (Insert a new session row)."""
        with store_errors("session.insert"):
            self.db.add(auth_session)
            await self.db.flush()
            return auth_session

    async def find_by_refresh_token(self, refresh_token: str) -> AuthSession | None:
        """리프레시 토큰으로 유효한 세션을 조회합니다.

        Retrieve the live session holding a refresh token.

        Args:
            refresh_token: 조회할 리프레시 토큰 (Refresh token to look up)

        Returns:
            AuthSession | None: 만료되지 않은 세션 또는 None (Unexpired session or None)
        """
        query: Select = select(AuthSession).where(
            AuthSession.refresh_token == refresh_token,
            AuthSession.expires_at > datetime.now(timezone.utc),
        )
        with store_errors("session.find_by_refresh_token"):
            result = await self.db.execute(query)
            return result.scalar_one_or_none()

    async def find_by_id(self, session_id: str) -> AuthSession | None:
        query: Select = select(AuthSession).where(AuthSession.session_id == session_id)
        with store_errors("session.find_by_id"):
            result = await self.db.execute(query)
            return result.scalar_one_or_none()

    async def delete_by_id(self, session_id: str) -> bool:
        """세션 하나를 삭제합니다 (Delete one session by its identifier)."""
        with store_errors("session.delete_by_id"):
            result = await self.db.execute(
                delete(AuthSession)
                .where(AuthSession.session_id == session_id)
                .execution_options(synchronize_session=False)
            )
            await self.db.flush()
            return result.rowcount > 0

    async def delete_all_for_account(self, user_id: str) -> int:
        """특정 계정의 모든 세션을 삭제합니다.

        Delete all sessions for an account (logout from all devices).

        Args:
            user_id: 대상 계정 안정 식별자 (Target account stable id)

        Returns:
            int: 삭제된 세션 수 (Number of sessions deleted)
        """
        with store_errors("session.delete_all_for_account"):
            result = await self.db.execute(
                delete(AuthSession)
                .where(AuthSession.user_id == user_id)
                .execution_options(synchronize_session=False)
            )
            await self.db.flush()
            return result.rowcount

    async def delete_expired(self, now: datetime) -> int:
        """만료된 세션을 일괄 삭제합니다.

        Delete every session with ``expires_at < now``.

        Returns:
            int: 삭제된 세션 수 (Number of sessions deleted)
        """
        with store_errors("session.delete_expired"):
            result = await self.db.execute(
                delete(AuthSession)
                .where(AuthSession.expires_at < now)
                .execution_options(synchronize_session=False)
            )
            await self.db.flush()
            return result.rowcount

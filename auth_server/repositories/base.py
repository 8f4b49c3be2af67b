"""레포지토리 인터페이스 — 인증 서비스가 의존하는 저장소 계약.

Repository interfaces — Storage contracts the authentication service depends on.
The service receives implementations by injection: SQLAlchemy-backed ones in
the application, in-memory ones in tests.

Also provides ``store_errors``, which converts driver/ORM failures into
``StoreUnavailableError`` with a retryable flag.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from auth_server.models.token import AuthSession
from auth_server.models.user import User
from auth_server.utils.exceptions import StoreUnavailableError
from auth_server.utils.logger import log


class AccountRepository(ABC):
    """계정 저장소 계약 (Account store contract)."""

    @abstractmethod
    async def find_by_email(self, email: str) -> User | None:
        """이메일로 계정을 조회합니다 (Exact, case-sensitive match)."""

    @abstractmethod
    async def find_by_id(self, user_id: str) -> User | None:
        """안정 식별자로 계정을 조회합니다 (Look up by stable identifier)."""

    @abstractmethod
    async def insert(self, user: User) -> User:
        """계정을 저장합니다.

        Persist a new account.

        Raises:
            AccountExistsError: 이메일 고유 제약 위반 시 (Email uniqueness violated)
        """

    @abstractmethod
    async def update_fields(self, user_id: str, fields: dict[str, Any]) -> bool:
        """계정 필드를 갱신합니다. 계정이 없으면 False (False when absent)."""

    @abstractmethod
    async def exists_by_email(self, email: str) -> bool:
        """이메일 사용 여부를 확인합니다 (Whether the email is taken)."""


class SessionRepository(ABC):
    """세션 저장소 계약 (Session store contract)."""

    @abstractmethod
    async def insert(self, auth_session: AuthSession) -> AuthSession:
        """세션을 저장합니다 (Persist a new session)."""

    @abstractmethod
    async def find_by_refresh_token(self, refresh_token: str) -> AuthSession | None:
        """만료되지 않은 세션만 조회합니다.

        Return the session holding this refresh token only while
        ``expires_at > now``; expired rows are filtered in the query itself.
        """

    @abstractmethod
    async def find_by_id(self, session_id: str) -> AuthSession | None:
        """세션 식별자로 조회합니다 (Look up by session identifier)."""

    @abstractmethod
    async def delete_by_id(self, session_id: str) -> bool:
        """세션 하나를 삭제합니다 (Delete one session; False when absent)."""

    @abstractmethod
    async def delete_all_for_account(self, user_id: str) -> int:
        """계정의 모든 세션을 삭제하고 삭제 수를 반환합니다 (Delete all, return count)."""

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """``expires_at < now`` 인 세션을 삭제합니다 (Delete expired rows, return count)."""


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, (TimeoutError, ConnectionError, PoolTimeoutError, OperationalError)):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """저장소 예외를 ``StoreUnavailableError`` 로 변환합니다.

    Convert store-layer failures raised inside the block into
    ``StoreUnavailableError``. Timeouts and connection failures are marked
    retryable. Cancellation is not intercepted.

    Args:
        operation: 로그용 작업 이름 (Operation name for the log line)
    """
    try:
        yield
    except (SQLAlchemyError, TimeoutError, ConnectionError) as exc:
        retryable: bool = _is_retryable(exc)
        log.error(f"Store operation '{operation}' failed (retryable={retryable}): {type(exc).__name__}")
        raise StoreUnavailableError(retryable=retryable) from exc


async def commit(db: AsyncSession, operation: str) -> None:
    """트랜잭션을 커밋합니다 — 실패는 ``StoreUnavailableError`` 로 변환.

    Commit the unit of work; a failing commit is classified like any other
    store operation.
    """
    with store_errors(f"{operation}.commit"):
        await db.commit()

"""만료 세션 정리 스케줄러.

Expired-session sweeper.
Uses APScheduler to delete sessions whose ``expires_at`` has passed at a fixed
interval. Lookups already ignore expired rows, so the sweep only bounds
storage growth; a failed run is logged and retried at the next interval.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from auth_server.config import settings
from auth_server.database import async_session
from auth_server.repositories.account_repository import SqlAccountRepository
from auth_server.repositories.base import commit
from auth_server.repositories.session_repository import SqlSessionRepository
from auth_server.services.auth_service import AuthService
from auth_server.utils.exceptions import StoreUnavailableError
from auth_server.utils.jwt import token_issuer
from auth_server.utils.logger import log
from auth_server.utils.password import password_hasher

SWEEP_JOB_ID: str = "sweep_expired_sessions"


async def sweep_expired_sessions() -> int:
    """만료 세션을 한 번 정리합니다.

    Run one sweep in its own database session and commit.

    Returns:
        int: 삭제된 세션 수 (Number of sessions deleted, 0 on store failure)
    """
    async with async_session() as db:
        service: AuthService = AuthService(
            accounts=SqlAccountRepository(db),
            sessions=SqlSessionRepository(db),
            hasher=password_hasher,
            tokens=token_issuer,
        )
        try:
            removed: int = await service.sweep_expired_sessions()
            await commit(db, "sessions.sweep")
        except StoreUnavailableError as exc:
            await db.rollback()
            log.warning(f"Session sweep skipped: {exc.detail} (retryable={exc.retryable})")
            return 0
        return removed


def create_scheduler(interval_minutes: int = settings.SESSION_SWEEP_INTERVAL_MINUTES) -> AsyncIOScheduler:
    """정리 작업이 등록된 스케줄러를 생성합니다.

    Build a scheduler with the sweep job registered. The caller starts and
    shuts it down (see the application lifespan).

    Args:
        interval_minutes: 실행 주기(분) (Run interval in minutes)
    """
    scheduler: AsyncIOScheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        sweep_expired_sessions,
        IntervalTrigger(minutes=interval_minutes),
        id=SWEEP_JOB_ID,
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    return scheduler

"""테스트 인프라 — 인메모리 SQLite DB, 세션, httpx 클라이언트 픽스처.

Test infrastructure — In-memory SQLite DB, session, service and httpx client
fixtures. SQL repositories run against aiosqlite; service tests use the
in-memory stores from ``tests.fakes``. A low-cost bcrypt hasher keeps the
suite fast.
"""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from auth_server.api.deps import get_password_hasher, get_token_issuer
from auth_server.database import Base, get_db
from auth_server.main import app
from auth_server.models import AuthSession, User  # noqa: F401 — register all models with metadata
from auth_server.models.user import ROLE_ADMIN, ROLE_USER, STATUS_ACTIVE, generate_user_id
from auth_server.services.auth_service import AuthService
from auth_server.utils.jwt import TokenIssuer
from auth_server.utils.password import PasswordHasher
from auth_server.utils.validation import ValidationRules
from tests.fakes import InMemoryAccountRepository, InMemorySessionRepository

TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_SECRET = "test-secret-key-with-enough-length-for-hs256"

# bcrypt 최소 비용 — Minimum bcrypt cost for speed
FAST_HASHER = PasswordHasher(rounds=4)
TEST_ISSUER = TokenIssuer(
    secret_key=TEST_SECRET,
    algorithm="HS256",
    access_ttl=timedelta(hours=24),
    refresh_ttl=timedelta(days=7),
)

ALICE_PASSWORD = "Str0ng!pass"


# ---------------------------------------------------------------------------
# 서비스 단위: 인메모리 저장소
# ---------------------------------------------------------------------------
@pytest.fixture
def accounts() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def sessions() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def service(accounts, sessions) -> AuthService:
    """인메모리 저장소 기반 인증 서비스."""
    return AuthService(accounts=accounts, sessions=sessions, hasher=FAST_HASHER, tokens=TEST_ISSUER)


# ---------------------------------------------------------------------------
# SQL 계층: aiosqlite 엔진, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 async 엔진 — 테스트마다 새 인메모리 DB."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """각 테스트에 격리된 DB 세션을 제공합니다."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — DB 세션, 해셔, 토큰 발급기를 오버라이드합니다."""
    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_password_hasher] = lambda: FAST_HASHER
    app.dependency_overrides[get_token_issuer] = lambda: TEST_ISSUER
    # ASGITransport는 lifespan을 실행하지 않음 — lifespan is not run by ASGITransport
    app.state.validation_rules = ValidationRules()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# 헬퍼: 테스트용 데이터 생성
# ---------------------------------------------------------------------------
def make_user(
    email: str = "alice@example.com",
    password: str = ALICE_PASSWORD,
    role: str = ROLE_USER,
    status: str = STATUS_ACTIVE,
) -> User:
    """저장 전 계정 객체를 생성합니다."""
    now = datetime.now(timezone.utc)
    return User(
        user_id=generate_user_id(),
        email=email,
        password_hash=FAST_HASHER.hash(password),
        first_name="Alice",
        last_name="Smith",
        avatar="",
        role=role,
        status=status,
        language="en",
        theme="light",
        notifications=True,
        created_at=now,
        updated_at=now,
    )


@pytest_asyncio.fixture
async def admin_user(db: AsyncSession) -> User:
    """관리자 계정을 DB에 생성합니다."""
    user = make_user(email="admin@example.com", password="Adm1n!pass", role=ROLE_ADMIN)
    db.add(user)
    await db.commit()
    return user


def make_token(user: User) -> str:
    """테스트용 JWT 액세스 토큰을 생성합니다."""
    return TEST_ISSUER.issue_access_token(user.user_id, user.email, user.role)


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}

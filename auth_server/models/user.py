"""사용자 계정 SQLAlchemy ORM 모델 정의.

User account SQLAlchemy ORM model definition.
Each registered person owns exactly one account, identified externally by a
stable ``usr_`` identifier that is independent of the storage primary key.

Tables:
    - user_accounts: 사용자 계정 (User accounts with credentials, profile and preferences)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from auth_server.database import Base

# 역할 — Account roles
ROLE_USER: str = "user"
ROLE_ADMIN: str = "admin"

# 계정 상태 — Account statuses (이 서비스는 상태를 읽기만 함, status is only read here)
STATUS_ACTIVE: str = "active"
STATUS_INACTIVE: str = "inactive"
STATUS_LOCKED: str = "locked"

# 컬럼 폭 — Column widths shared with request validation
EMAIL_MAX_LENGTH: int = 255
NAME_MAX_LENGTH: int = 100


def generate_user_id() -> str:
    """외부 노출용 안정 식별자를 생성합니다.

    Generate a stable, externally safe account identifier (``usr_<uuid4 hex>``).
    """
    return f"usr_{uuid.uuid4().hex}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """사용자 계정 모델.

    User account model — credentials, profile, authorization and preferences.

    Attributes:
        id: 내부 저장소 식별자 UUID (Storage-internal identifier)
        user_id: 외부 노출용 안정 식별자 (Stable external identifier, ``usr_...``)
        email: 이메일 (Email address, unique, compared case-sensitively)
        password_hash: bcrypt 해시된 비밀번호 (bcrypt digest, never serialized outward)
        first_name: 이름 (First name)
        last_name: 성 (Last name)
        avatar: 아바타 URI (Avatar URI)
        role: 역할 (``user`` | ``admin``)
        status: 상태 (``active`` | ``inactive`` | ``locked``)
        language: 언어 설정 (Locale preference)
        theme: 테마 설정 (Theme preference)
        notifications: 알림 수신 여부 (Notification preference)
        created_at: 생성 일시 UTC (Creation timestamp)
        updated_at: 수정 일시 UTC (Last update timestamp)

    Constraints:
        uq_user_accounts_email: 이메일 고유 — 중복 가입의 최종 판정
                                (Unique email, the authoritative duplicate check)
        uq_user_accounts_user_id: 안정 식별자 고유 (Unique stable identifier)
    """

    __tablename__ = "user_accounts"

    # 내부 식별자 — Storage-internal identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 안정 식별자 — Stable identifier exposed to clients and used as token subject
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, default=generate_user_id)
    # 이메일 — Email address (저장된 그대로 비교, compared exactly as stored)
    email: Mapped[str] = mapped_column(String(EMAIL_MAX_LENGTH), nullable=False)
    # 비밀번호 해시 — bcrypt hashed password (평문 저장 금지, never store plaintext)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    last_name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    avatar: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=ROLE_USER)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=STATUS_ACTIVE)
    # 사용자 환경설정 — Preferences
    language: Mapped[str] = mapped_column(String(10), nullable=False, default="en")
    theme: Mapped[str] = mapped_column(String(20), nullable=False, default="light")
    notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    # 수정 일시 — Last modification timestamp (UTC, auto-updated)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint("email", name="uq_user_accounts_email"),
        UniqueConstraint("user_id", name="uq_user_accounts_user_id"),
    )

    @property
    def is_active(self) -> bool:
        """로그인/갱신 가능 상태 여부 (Whether the account may log in or refresh)."""
        return self.status == STATUS_ACTIVE

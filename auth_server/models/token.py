"""인증 세션 모델 — 리프레시 토큰 저장.

Auth session model — Stores opaque refresh tokens for session management.
Each session is bound to an account's stable identifier and has an absolute
expiration timestamp fixed at creation.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from auth_server.database import Base


def generate_session_id() -> str:
    """세션 식별자를 생성합니다 (Generate an opaque ``sess_`` identifier)."""
    return f"sess_{uuid.uuid4().hex}"


class AuthSession(Base):
    """인증 세션 테이블.

    Auth session table — one row per successful login.

    Attributes:
        id: 내부 식별자 (Primary key UUID)
        session_id: 외부 세션 식별자 (Opaque session identifier)
        user_id: 소유 계정의 안정 식별자 (Owner account stable id, weak reference)
        refresh_token: 리프레시 토큰 문자열 (Opaque refresh token, capability)
        user_agent: 발급 시 User-Agent (Issuing user agent, informational)
        ip_address: 발급 시 IP (Issuing IP address, informational)
        expires_at: 만료 일시 (Absolute expiration timestamp)
        created_at: 생성 일시 (Creation timestamp)
    """

    __tablename__ = "auth_sessions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, default=generate_session_id)
    # 계정 FK 없음 — 계정이 외부에서 삭제되어도 세션은 남을 수 있음 (No FK: dangling sessions are tolerated)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    refresh_token: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    user_agent: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    ip_address: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        Index("ix_auth_sessions_user_id", "user_id"),
        Index("ix_auth_sessions_expires_at", "expires_at"),
    )

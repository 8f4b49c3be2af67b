"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package — Central import point for all domain models.
Importing from this package ensures all models are registered with the
SQLAlchemy metadata, which is required for Alembic migrations and
``create_all``.

Modules:
    user: 사용자 계정 (User accounts)
    token: 인증 세션 (Refresh-token sessions)
"""

from auth_server.models.user import User
from auth_server.models.token import AuthSession

__all__ = [
    "User",
    "AuthSession",
]

"""FastAPI 의존성 주입 모듈 — 서비스 조립, 인증 및 권한 검사.

FastAPI dependency injection module — Service assembly, authentication and
authorization.

Authentication Flow:
    1. 클라이언트가 Authorization: Bearer <token> 헤더를 전송
       (Client sends Authorization: Bearer <token> header)
    2. HTTPBearer가 토큰을 추출 (HTTPBearer extracts the token)
    3. TokenIssuer.verify_access_token()이 서명과 만료를 검증
       (Signature and expiry are verified; no database session is opened)
    4. 검증된 클레임(계정 ID, 이메일, 역할)을 핸들러에 전달
       (Verified claims are handed to the handler)

Authorization Flow (require_role):
    1. get_current_claims로 토큰 검증 (Token verified via get_current_claims)
    2. 클레임의 역할이 요구 역할과 다르면 403 반환
       (Returns 403 when the token role differs from the required role)
"""

from typing import Annotated, Awaitable, Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from auth_server.database import get_db
from auth_server.models.user import ROLE_ADMIN
from auth_server.repositories.account_repository import SqlAccountRepository
from auth_server.repositories.base import AccountRepository, SessionRepository
from auth_server.repositories.session_repository import SqlSessionRepository
from auth_server.services.auth_service import AuthService
from auth_server.utils.exceptions import ForbiddenError, UnauthorizedError
from auth_server.utils.jwt import AccessTokenClaims, TokenIssuer, token_issuer
from auth_server.utils.password import PasswordHasher, password_hasher
from auth_server.utils.validation import ValidationRules

# HTTP Bearer 토큰 추출기 — 헤더 누락 시 직접 401 반환 (Missing header handled as 401 below)
security: HTTPBearer = HTTPBearer(auto_error=False)


def get_account_repository(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AccountRepository:
    return SqlAccountRepository(db)


def get_session_repository(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> SessionRepository:
    return SqlSessionRepository(db)


def get_password_hasher() -> PasswordHasher:
    return password_hasher


def get_token_issuer() -> TokenIssuer:
    return token_issuer


def get_auth_service(
    accounts: Annotated[AccountRepository, Depends(get_account_repository)],
    sessions: Annotated[SessionRepository, Depends(get_session_repository)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    tokens: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> AuthService:
    """요청 단위 인증 서비스를 조립합니다.

    Assemble a request-scoped AuthService from injected collaborators.
    """
    return AuthService(accounts=accounts, sessions=sessions, hasher=hasher, tokens=tokens)


def get_validation_rules(request: Request) -> ValidationRules:
    """시작 시 생성된 불변 검증 규칙을 반환합니다.

    Return the immutable rule set built at startup (stored on ``app.state``).
    """
    return request.app.state.validation_rules


async def get_current_claims(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    tokens: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> AccessTokenClaims:
    """Authorization 헤더의 액세스 토큰을 검증합니다.

    Verify the bearer access token and return its claims.

    Raises:
        UnauthorizedError(401): 헤더 누락 (Missing bearer credentials)
        InvalidTokenError(401): 유효하지 않거나 만료된 토큰 (Invalid or expired token)
    """
    if credentials is None:
        raise UnauthorizedError("Authorization header required")
    return tokens.verify_access_token(credentials.credentials)


def require_role(role: str) -> Callable[..., Awaitable[AccessTokenClaims]]:
    """역할 기반 권한 검사 의존성 팩토리.

    Dependency factory enforcing that the token carries the given role.

    Args:
        role: 요구 역할 (Required role, e.g. "admin")

    Returns:
        FastAPI 의존성 함수 — 클레임 반환 또는 403 발생
        (FastAPI dependency returning claims or raising 403)
    """
    async def _check(
        claims: Annotated[AccessTokenClaims, Depends(get_current_claims)],
    ) -> AccessTokenClaims:
        if claims.role != role:
            raise ForbiddenError()
        return claims
    return _check


# 편의 의존성 — Pre-configured role dependency
require_admin = require_role(ROLE_ADMIN)

"""인증 라우터 — 회원가입, 로그인, 토큰 갱신, 로그아웃, 프로필 조회.

Auth Router — Registration, login, token refresh, logout, profile and
session management endpoints. Error responses come from the HTTPException
subclasses raised by the service (409/401/403/400/5xx).
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from auth_server.api.deps import (
    get_auth_service,
    get_current_claims,
    get_validation_rules,
    require_admin,
)
from auth_server.database import get_db
from auth_server.repositories.base import commit
from auth_server.schemas.auth import (
    AccountResponse,
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    RegisterResponse,
    SweepResponse,
    TokenClaimsResponse,
)
from auth_server.services.auth_service import AuthService
from auth_server.utils.jwt import AccessTokenClaims
from auth_server.utils.validation import ValidationRules

router: APIRouter = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    data: RegisterRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[AuthService, Depends(get_auth_service)],
    rules: Annotated[ValidationRules, Depends(get_validation_rules)],
) -> RegisterResponse:
    """회원가입 — 활성 일반 사용자 계정 생성.

    Registration endpoint. Creates an active ``user`` account.
    """
    rules.check_registration(data)
    account: AccountResponse = await service.register(
        data.email, data.password, data.first_name, data.last_name
    )
    await commit(db, "auth.register")
    return RegisterResponse.model_validate(account)


@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[AuthService, Depends(get_auth_service)],
    user_agent: Annotated[str | None, Header()] = None,
) -> LoginResponse:
    """로그인 — 액세스 토큰과 리프레시 토큰 발급.

    Login endpoint. Issues an access token and opens a new session.
    """
    client_ip: str = request.client.host if request.client else ""
    result: LoginResponse = await service.login(
        data.email, data.password, user_agent=user_agent or "", ip_address=client_ip
    )
    await commit(db, "auth.login")
    return result


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_token(
    data: RefreshRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> RefreshResponse:
    """토큰 갱신 — 리프레시 토큰으로 새 액세스 토큰 발급.

    Refresh endpoint. Issues a new access token; the refresh token is kept.
    """
    return await service.refresh_token(data.refresh_token)


@router.post("/logout", status_code=204)
async def logout(
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[AuthService, Depends(get_auth_service)],
    claims: Annotated[AccessTokenClaims, Depends(get_current_claims)],
) -> None:
    """로그아웃 — 계정의 모든 세션 폐기.

    Logout endpoint. Revokes every session of the calling account.
    """
    await service.logout(claims.account_id)
    await commit(db, "auth.logout")


@router.get("/me", response_model=AccountResponse)
async def get_me(
    service: Annotated[AuthService, Depends(get_auth_service)],
    claims: Annotated[AccessTokenClaims, Depends(get_current_claims)],
) -> AccountResponse:
    """현재 사용자 프로필 조회.

    Get the account of the currently authenticated caller.
    """
    return await service.get_account(claims.account_id)


@router.get("/validate", response_model=TokenClaimsResponse)
async def validate_token(
    claims: Annotated[AccessTokenClaims, Depends(get_current_claims)],
) -> TokenClaimsResponse:
    """액세스 토큰 검증 결과 조회 (Return the verified claims of the bearer token)."""
    return TokenClaimsResponse(
        account_id=claims.account_id,
        email=claims.email,
        role=claims.role,
        expires_at=claims.expires_at,
    )


@router.post("/change-password", status_code=204)
async def change_password(
    data: ChangePasswordRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[AuthService, Depends(get_auth_service)],
    rules: Annotated[ValidationRules, Depends(get_validation_rules)],
    claims: Annotated[AccessTokenClaims, Depends(get_current_claims)],
) -> None:
    """비밀번호 변경 — 변경 후 모든 세션 폐기.

    Change the caller's password and revoke all of its sessions.
    """
    rules.check_password_change(data)
    await service.change_password(claims.account_id, data.current_password, data.new_password)
    await commit(db, "auth.change_password")


@router.delete("/sessions/{session_id}", status_code=204)
async def revoke_session(
    session_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[AuthService, Depends(get_auth_service)],
    claims: Annotated[AccessTokenClaims, Depends(get_current_claims)],
) -> None:
    """세션 하나 폐기 (Revoke one of the caller's own sessions)."""
    await service.revoke_session(claims.account_id, session_id)
    await commit(db, "auth.revoke_session")


@router.post("/sessions/sweep", response_model=SweepResponse)
async def sweep_sessions(
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[AuthService, Depends(get_auth_service)],
    _admin: Annotated[AccessTokenClaims, Depends(require_admin)],
) -> SweepResponse:
    """만료 세션 즉시 정리 — 관리자 전용.

    Admin-only: run the expired-session sweep now.
    """
    deleted: int = await service.sweep_expired_sessions()
    await commit(db, "auth.sweep_sessions")
    return SweepResponse(deleted=deleted)

"""인증 관련 Pydantic 요청/응답 스키마 정의.

Authentication-related Pydantic request/response schema definitions.
Covers registration, login, token refresh, password change, token
validation and the account view returned to clients.
Wire format uses camelCase keys; snake_case names are accepted on input too.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from auth_server.models.user import User


class _CamelModel(BaseModel):
    """camelCase 직렬화 베이스 (camelCase wire names, snake_case attributes)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class RegisterRequest(_CamelModel):
    """회원가입 요청 스키마.

    Self-registration request schema. Creates an active ``user`` account.

    Attributes:
        email: 이메일 (Email address, unique)
        password: 비밀번호 (Plain text, will be bcrypt-hashed on server)
        first_name: 이름 (First name)
        last_name: 성 (Last name)
        accept_terms: 약관 동의 (Terms acceptance, enforced only when configured)
        confirm_password: 비밀번호 확인 (Enforced only when configured)
    """

    email: str
    password: str
    first_name: str
    last_name: str
    accept_terms: bool = False
    confirm_password: str | None = None


class LoginRequest(_CamelModel):
    """로그인 요청 스키마 (Login request schema)."""

    email: str
    password: str  # 비밀번호 — 평문, 서버에서 bcrypt 해시와 비교 (Plain text, compared to bcrypt hash)


class RefreshRequest(_CamelModel):
    """토큰 갱신 요청 스키마.

    Token refresh request schema.
    Exchanges a live refresh token for a new access token.
    """

    refresh_token: str


class ChangePasswordRequest(_CamelModel):
    """비밀번호 변경 요청 스키마 (Password change request schema)."""

    current_password: str
    new_password: str


class PreferencesResponse(_CamelModel):
    language: str
    theme: str
    notifications: bool


class AccountResponse(_CamelModel):
    """계정 응답 스키마 — 비밀번호 해시는 포함하지 않음.

    Account view returned to clients. Never carries the password digest.

    Attributes:
        id: 안정 식별자 (Stable identifier, ``usr_...``)
        email: 이메일 (Email address)
        first_name: 이름 (First name)
        last_name: 성 (Last name)
        avatar: 아바타 URI (Avatar URI)
        role: 역할 (``user`` | ``admin``)
        status: 상태 (``active`` | ``inactive`` | ``locked``)
        preferences: 환경설정 (Preferences)
        created_at: 생성 일시 (Creation timestamp)
        updated_at: 수정 일시 (Last update timestamp)
    """

    id: str
    email: str
    first_name: str
    last_name: str
    avatar: str
    role: str
    status: str
    preferences: PreferencesResponse
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "AccountResponse":
        return cls(
            id=user.user_id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            avatar=user.avatar,
            role=user.role,
            status=user.status,
            preferences=PreferencesResponse(
                language=user.language,
                theme=user.theme,
                notifications=user.notifications,
            ),
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class RegisterResponse(_CamelModel):
    """회원가입 응답 스키마 (Registration response: id, email, names, createdAt)."""

    id: str
    email: str
    first_name: str
    last_name: str
    created_at: datetime


class LoginResponse(_CamelModel):
    """로그인 응답 스키마.

    Login response schema.

    Attributes:
        access_token: JWT 액세스 토큰 (Short-lived access token)
        refresh_token: 불투명 리프레시 토큰 (Opaque refresh token)
        expires_in: 액세스 토큰 수명(초) (Access token TTL in seconds)
        token_type: 토큰 유형 (Always "Bearer")
        user: 계정 정보 (Authenticated account)
    """

    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "Bearer"
    user: AccountResponse


class RefreshResponse(_CamelModel):
    """토큰 갱신 응답 스키마 (New access token; the refresh token is not rotated)."""

    access_token: str
    expires_in: int
    token_type: str = "Bearer"


class TokenClaimsResponse(_CamelModel):
    """액세스 토큰 검증 결과 (Verified access token claims)."""

    account_id: str
    email: str
    role: str
    expires_at: datetime


class SweepResponse(_CamelModel):
    """만료 세션 정리 결과 (Number of expired sessions deleted)."""

    deleted: int

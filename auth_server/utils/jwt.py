"""JWT 액세스 토큰 및 불투명 리프레시 토큰 발급/검증 모듈.

Token issuing and verification module.
Access tokens are stateless HMAC-signed JWTs; refresh tokens are opaque,
high-entropy random strings whose validity lives in the session store.

JWT Payload Structure:
    {
        "sub": "usr_...",            # 계정 안정 식별자 (Account stable identifier)
        "email": "alice@example.com",
        "role": "user",              # "user" | "admin"
        "iat": 1234567890,           # 발급 시간 UNIX timestamp (Issued at)
        "exp": 1234654290,           # 만료 시간 UNIX timestamp (Expiration)
        "type": "access"             # 토큰 유형 (Token type discriminator)
    }
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from auth_server.config import settings
from auth_server.utils.exceptions import EntropyError, InvalidTokenError

# HMAC 계열 알고리즘만 허용 — Only symmetric HMAC algorithms are accepted
HMAC_ALGORITHMS: frozenset[str] = frozenset({"HS256", "HS384", "HS512"})

# 리프레시 토큰 난수 바이트 수 — Random bytes per refresh token
REFRESH_TOKEN_BYTES: int = 32


@dataclass(frozen=True)
class AccessTokenClaims:
    """검증된 액세스 토큰 클레임.

    Verified access token claims.

    Attributes:
        account_id: 계정 안정 식별자 (``sub`` claim)
        email: 이메일 (Account email)
        role: 역할 (Account role)
        issued_at: 발급 일시 (``iat`` claim)
        expires_at: 만료 일시 (``exp`` claim)
    """

    account_id: str
    email: str
    role: str
    issued_at: datetime
    expires_at: datetime


class TokenIssuer:
    """액세스/리프레시 토큰 발급기.

    Issues and verifies access tokens and mints refresh tokens.
    Immutable after construction.

    Args:
        secret_key: HMAC 서명 키 (Symmetric signing key, must not be empty)
        algorithm: 서명 알고리즘 (HS256, HS384 or HS512)
        access_ttl: 액세스 토큰 수명 (Access token lifetime)
        refresh_ttl: 리프레시 세션 수명 (Refresh session lifetime)

    Raises:
        ValueError: 서명 키가 비었거나 HMAC 이외의 알고리즘일 때
                    (Empty key or non-HMAC algorithm, a startup configuration error)
    """

    __slots__ = ("_secret_key", "_algorithm", "_access_ttl", "_refresh_ttl")

    def __init__(
        self,
        secret_key: str,
        algorithm: str,
        access_ttl: timedelta,
        refresh_ttl: timedelta,
    ) -> None:
        if not secret_key:
            raise ValueError("JWT signing key is not configured")
        if algorithm not in HMAC_ALGORITHMS:
            raise ValueError(f"Unsupported JWT algorithm: {algorithm}")
        object.__setattr__(self, "_secret_key", secret_key)
        object.__setattr__(self, "_algorithm", algorithm)
        object.__setattr__(self, "_access_ttl", access_ttl)
        object.__setattr__(self, "_refresh_ttl", refresh_ttl)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def access_ttl(self) -> timedelta:
        return self._access_ttl

    @property
    def refresh_ttl(self) -> timedelta:
        return self._refresh_ttl

    @property
    def access_ttl_seconds(self) -> int:
        return int(self._access_ttl.total_seconds())

    def issue_access_token(self, account_id: str, email: str, role: str) -> str:
        """JWT 액세스 토큰을 생성합니다.

        Generate a signed access token for the given account.

        Args:
            account_id: 계정 안정 식별자 (Account stable identifier, ``sub``)
            email: 이메일 (Account email)
            role: 역할 (Account role)

        Returns:
            str: 인코딩된 JWT 문자열 (Compact serialized JWT)
        """
        now: datetime = datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "sub": account_id,
            "email": email,
            "role": role,
            "iat": now,
            "exp": now + self._access_ttl,
            "type": "access",
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify_access_token(self, token: str) -> AccessTokenClaims:
        """JWT 액세스 토큰을 디코딩하고 검증합니다.

        Decode and verify an access token. Only the configured algorithm is
        accepted, so tokens declaring ``none`` or another algorithm fail.

        Args:
            token: JWT 토큰 문자열 (Encoded JWT token string)

        Returns:
            AccessTokenClaims: 검증된 클레임 (Verified claims)

        Raises:
            InvalidTokenError: 구조, 서명, 만료 중 어떤 이유로든 실패 시
                               (Any structural, signature or expiry failure)
        """
        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.PyJWTError as exc:
            raise InvalidTokenError() from exc

        if payload.get("type") != "access":
            raise InvalidTokenError()

        sub: Any = payload.get("sub")
        email: Any = payload.get("email")
        role: Any = payload.get("role")
        if not isinstance(sub, str) or not isinstance(email, str) or not isinstance(role, str):
            raise InvalidTokenError()

        return AccessTokenClaims(
            account_id=sub,
            email=email,
            role=role,
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    def issue_refresh_token(self) -> str:
        """불투명 리프레시 토큰을 생성합니다.

        Generate an opaque refresh token: 32 bytes from the OS CSPRNG,
        URL-safe base64 encoded.

        Raises:
            EntropyError: 난수 소스 실패 시 (Random source failure, not retryable)
        """
        try:
            return secrets.token_urlsafe(REFRESH_TOKEN_BYTES)
        except (OSError, NotImplementedError) as exc:
            raise EntropyError() from exc


# 싱글턴 인스턴스 — Singleton instance built from configuration
token_issuer: TokenIssuer = TokenIssuer(
    secret_key=settings.JWT_SECRET_KEY,
    algorithm=settings.JWT_ALGORITHM,
    access_ttl=timedelta(hours=settings.JWT_ACCESS_TOKEN_EXPIRE_HOURS),
    refresh_ttl=timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS),
)

"""인증 서비스 — 회원가입, 로그인, 토큰 갱신, 로그아웃 비즈니스 로직.

Auth Service — Business logic for registration, login, token refresh and logout.
Holds no mutable state of its own: accounts and sessions live in the injected
repositories, so concurrent calls (even for the same account) interleave safely.
Password hashing runs in a worker thread to keep the event loop free.
"""

import asyncio
from datetime import datetime, timezone

from auth_server.models.token import AuthSession, generate_session_id
from auth_server.models.user import ROLE_USER, STATUS_ACTIVE, User, generate_user_id
from auth_server.repositories.base import AccountRepository, SessionRepository
from auth_server.schemas.auth import AccountResponse, LoginResponse, RefreshResponse
from auth_server.utils.exceptions import (
    AccountExistsError,
    AccountNotActiveError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
)
from auth_server.utils.jwt import AccessTokenClaims, TokenIssuer
from auth_server.utils.logger import log
from auth_server.utils.password import PasswordHasher

# 기본 아바타 — Default avatar service, seeded by first name
DEFAULT_AVATAR_URL: str = "https://api.dicebear.com/7.x/avataaars/svg?seed={seed}"


class AuthService:
    """인증 관련 비즈니스 로직을 처리하는 서비스.

    Service handling authentication business logic.
    Accounts cycle through ``unregistered -> active -> {inactive, locked}``;
    this service reads the status but never transitions it.

    Args:
        accounts: 계정 저장소 (Account store)
        sessions: 세션 저장소 (Session store)
        hasher: 비밀번호 해셔 (Credential hasher)
        tokens: 토큰 발급기 (Token issuer)
    """

    def __init__(
        self,
        accounts: AccountRepository,
        sessions: SessionRepository,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
    ) -> None:
        self.accounts: AccountRepository = accounts
        self.sessions: SessionRepository = sessions
        self.hasher: PasswordHasher = hasher
        self.tokens: TokenIssuer = tokens

    async def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
    ) -> AccountResponse:
        """회원가입을 처리합니다.

        Register a new active ``user`` account.

        Args:
            email: 이메일 (Email, stored and compared exactly as given)
            password: 평문 비밀번호 (Plain text password)
            first_name: 이름 (First name)
            last_name: 성 (Last name)

        Returns:
            AccountResponse: 생성된 계정 — 비밀번호 해시 제외
                             (Created account, without the password digest)

        Raises:
            AccountExistsError: 이메일이 이미 등록되었을 때 (Email already registered,
                                including when a concurrent registration wins the race)
        """
        # 사전 중복 확인 — 원자적이지 않으므로 최종 판정은 저장소 고유 제약
        # (Early check; the store's unique constraint is the final word)
        if await self.accounts.exists_by_email(email):
            raise AccountExistsError()

        password_hash: str = await asyncio.to_thread(self.hasher.hash, password)

        now: datetime = datetime.now(timezone.utc)
        user: User = User(
            user_id=generate_user_id(),
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            avatar=DEFAULT_AVATAR_URL.format(seed=first_name),
            role=ROLE_USER,
            status=STATUS_ACTIVE,
            language="en",
            theme="light",
            notifications=True,
            created_at=now,
            updated_at=now,
        )
        user = await self.accounts.insert(user)
        log.info(f"Registered account {user.user_id}")
        return AccountResponse.from_user(user)

    async def login(
        self,
        email: str,
        password: str,
        user_agent: str = "",
        ip_address: str = "",
    ) -> LoginResponse:
        """로그인을 처리합니다.

        Verify credentials, then issue an access token and a new session.
        Earlier sessions of the account are left alone (multi-device use).

        Args:
            email: 이메일 (Email)
            password: 평문 비밀번호 (Plain text password)
            user_agent: 요청 User-Agent (Request user agent, informational)
            ip_address: 요청 IP (Request client IP, informational)

        Returns:
            LoginResponse: 토큰 및 계정 정보 (Tokens and account)

        Raises:
            InvalidCredentialsError: 이메일 없음 또는 비밀번호 불일치 — 구분하지 않음
                                     (Unknown email or wrong password, indistinguishable)
            AccountNotActiveError: 자격 증명은 맞지만 계정이 비활성 (Credentials match, account not active)
        """
        user: User | None = await self.accounts.find_by_email(email)
        if user is None:
            # 타이밍으로 이메일 존재 여부가 드러나지 않도록 동일 비용의 검증 수행
            await asyncio.to_thread(self.hasher.verify_dummy, password)
            raise InvalidCredentialsError()

        matches: bool = await asyncio.to_thread(self.hasher.verify, password, user.password_hash)
        if not matches:
            raise InvalidCredentialsError()

        if not user.is_active:
            raise AccountNotActiveError()

        access_token: str = self.tokens.issue_access_token(user.user_id, user.email, user.role)
        refresh_token: str = self.tokens.issue_refresh_token()

        now: datetime = datetime.now(timezone.utc)
        await self.sessions.insert(
            AuthSession(
                session_id=generate_session_id(),
                user_id=user.user_id,
                refresh_token=refresh_token,
                user_agent=user_agent[:512],
                ip_address=ip_address[:64],
                expires_at=now + self.tokens.refresh_ttl,
                created_at=now,
            )
        )
        log.info(f"Login succeeded for account {user.user_id}")

        return LoginResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self.tokens.access_ttl_seconds,
            user=AccountResponse.from_user(user),
        )

    async def refresh_token(self, refresh_token: str) -> RefreshResponse:
        """리프레시 토큰으로 새 액세스 토큰을 발급합니다.

        Issue a new access token for a live session. The refresh token and
        its session row are left untouched (no rotation).

        Raises:
            InvalidTokenError: 세션이 없거나 만료, 또는 계정이 사라졌을 때
                               (Unknown/expired session, or dangling session)
            AccountNotActiveError: 계정이 비활성 (Account not active)
        """
        auth_session: AuthSession | None = await self.sessions.find_by_refresh_token(refresh_token)
        if auth_session is None:
            raise InvalidTokenError()

        user: User | None = await self.accounts.find_by_id(auth_session.user_id)
        if user is None:
            raise InvalidTokenError()

        if not user.is_active:
            raise AccountNotActiveError()

        return RefreshResponse(
            access_token=self.tokens.issue_access_token(user.user_id, user.email, user.role),
            expires_in=self.tokens.access_ttl_seconds,
        )

    async def logout(self, account_id: str) -> int:
        """계정의 모든 세션을 삭제합니다 — 전체 기기 로그아웃.

        Delete every session of the account. Idempotent.

        Returns:
            int: 삭제된 세션 수 (Number of sessions removed)
        """
        removed: int = await self.sessions.delete_all_for_account(account_id)
        log.info(f"Logged out account {account_id} ({removed} sessions)")
        return removed

    async def revoke_session(self, account_id: str, session_id: str) -> None:
        """계정 소유의 세션 하나를 폐기합니다.

        Revoke a single session owned by the account.

        Raises:
            NotFoundError: 세션이 없거나 다른 계정 소유일 때 (Unknown or foreign session)
        """
        auth_session: AuthSession | None = await self.sessions.find_by_id(session_id)
        if auth_session is None or auth_session.user_id != account_id:
            raise NotFoundError("Session not found")
        await self.sessions.delete_by_id(session_id)

    def validate_access_token(self, token: str) -> AccessTokenClaims:
        """액세스 토큰을 검증합니다 — 저장소를 사용하지 않음.

        Verify an access token and return its claims. Never touches the stores.

        Raises:
            InvalidTokenError: 유효하지 않은 토큰 (Invalid token, reason withheld)
        """
        return self.tokens.verify_access_token(token)

    async def get_account(self, account_id: str) -> AccountResponse:
        """현재 계정 정보를 반환합니다 (Return the account behind a token subject).

        Raises:
            InvalidTokenError: 토큰 주체 계정이 없을 때 (Subject no longer exists)
        """
        user: User | None = await self.accounts.find_by_id(account_id)
        if user is None:
            raise InvalidTokenError()
        return AccountResponse.from_user(user)

    async def change_password(
        self,
        account_id: str,
        current_password: str,
        new_password: str,
    ) -> None:
        """비밀번호를 변경하고 모든 세션을 폐기합니다.

        Change the account password and revoke all of its sessions.

        Raises:
            InvalidTokenError: 계정이 없을 때 (Account no longer exists)
            InvalidCredentialsError: 현재 비밀번호 불일치 (Wrong current password)
        """
        user: User | None = await self.accounts.find_by_id(account_id)
        if user is None:
            raise InvalidTokenError()

        matches: bool = await asyncio.to_thread(
            self.hasher.verify, current_password, user.password_hash
        )
        if not matches:
            raise InvalidCredentialsError()

        password_hash: str = await asyncio.to_thread(self.hasher.hash, new_password)
        if not await self.accounts.update_fields(account_id, {"password_hash": password_hash}):
            raise InvalidTokenError()
        await self.sessions.delete_all_for_account(account_id)
        log.info(f"Password changed for account {account_id}")

    async def sweep_expired_sessions(self, now: datetime | None = None) -> int:
        """만료된 세션을 정리합니다.

        Delete all sessions with ``expires_at < now``. Storage hygiene only;
        expired sessions are already rejected at lookup.

        Returns:
            int: 삭제된 세션 수 (Number of sessions deleted)
        """
        removed: int = await self.sessions.delete_expired(now or datetime.now(timezone.utc))
        if removed:
            log.info(f"Swept {removed} expired sessions")
        return removed

"""인증 서비스 테스트 — 회원가입, 로그인, 갱신, 로그아웃, 세션 관리.

Auth service tests against the in-memory stores.
Covers the account/session lifecycle, error classification and concurrent
registration.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from auth_server.models.token import AuthSession, generate_session_id
from auth_server.models.user import STATUS_INACTIVE, STATUS_LOCKED
from auth_server.services.auth_service import AuthService
from auth_server.utils.exceptions import (
    AccountExistsError,
    AccountNotActiveError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    StoreUnavailableError,
)
from auth_server.utils.password import PasswordHasher
from tests.conftest import ALICE_PASSWORD, FAST_HASHER, TEST_ISSUER
from tests.fakes import InMemoryAccountRepository, UnavailableSessionRepository


async def register_alice(service: AuthService):
    return await service.register("alice@example.com", ALICE_PASSWORD, "Alice", "Smith")


class CountingHasher(PasswordHasher):
    """bcrypt 검증 횟수를 세는 해셔 (Counts verify calls)."""

    def __init__(self) -> None:
        super().__init__(rounds=4)
        self.verify_calls: int = 0

    def verify(self, password: str, hashed_password: str) -> bool:
        self.verify_calls += 1
        return super().verify(password, hashed_password)


# ===== Register =====

class TestRegister:
    """회원가입 테스트."""

    async def test_register_creates_active_user(self, service, accounts):
        """신규 계정은 active/user 상태로 생성."""
        account = await register_alice(service)
        assert account.id.startswith("usr_")
        assert account.email == "alice@example.com"
        assert account.role == "user"
        assert account.status == "active"
        assert account.preferences.language == "en"
        assert account.preferences.theme == "light"
        assert account.preferences.notifications is True
        assert account.avatar.endswith("seed=Alice")
        assert account.created_at == account.updated_at
        assert account.id in accounts.rows

    async def test_password_stored_as_digest(self, service, accounts):
        """비밀번호는 bcrypt 해시로만 저장."""
        account = await register_alice(service)
        stored = accounts.rows[account.id]
        assert stored.password_hash != ALICE_PASSWORD
        assert FAST_HASHER.verify(ALICE_PASSWORD, stored.password_hash)

    async def test_response_has_no_password(self, service):
        """응답에 비밀번호 정보 없음."""
        account = await register_alice(service)
        dumped = account.model_dump(by_alias=True)
        assert "password" not in dumped
        assert "passwordHash" not in dumped

    async def test_duplicate_email(self, service):
        """중복 이메일은 AccountExistsError(409)."""
        await register_alice(service)
        with pytest.raises(AccountExistsError) as exc_info:
            await register_alice(service)
        assert exc_info.value.status_code == 409

    async def test_email_is_case_sensitive(self, service):
        """이메일은 저장된 그대로 비교."""
        await register_alice(service)
        account = await service.register("Alice@example.com", ALICE_PASSWORD, "Alice", "Smith")
        assert account.email == "Alice@example.com"

    async def test_concurrent_registration_single_winner(self, service, accounts):
        """동시 가입 시 정확히 하나만 성공."""
        results = await asyncio.gather(
            *(register_alice(service) for _ in range(5)),
            return_exceptions=True,
        )
        created = [r for r in results if not isinstance(r, BaseException)]
        conflicts = [r for r in results if isinstance(r, AccountExistsError)]
        assert len(created) == 1
        assert len(conflicts) == 4
        assert len(accounts.rows) == 1


# ===== Login =====

class TestLogin:
    """로그인 테스트."""

    async def test_login_success(self, service, sessions):
        """로그인 성공 시 토큰과 세션 생성."""
        account = await register_alice(service)
        result = await service.login("alice@example.com", ALICE_PASSWORD, user_agent="pytest", ip_address="10.0.0.1")

        assert result.token_type == "Bearer"
        assert result.expires_in == 86400
        assert result.user.id == account.id

        claims = service.validate_access_token(result.access_token)
        assert claims.account_id == account.id
        assert claims.email == "alice@example.com"
        assert claims.role == "user"

        stored = sessions.for_account(account.id)
        assert len(stored) == 1
        assert stored[0].refresh_token == result.refresh_token
        assert stored[0].user_agent == "pytest"
        assert stored[0].ip_address == "10.0.0.1"
        assert stored[0].session_id.startswith("sess_")

    async def test_session_expiry_matches_refresh_ttl(self, service, sessions):
        """세션 만료 시각 = 생성 시각 + 리프레시 수명."""
        account = await register_alice(service)
        await service.login("alice@example.com", ALICE_PASSWORD)
        stored = sessions.for_account(account.id)[0]
        assert stored.expires_at - stored.created_at == timedelta(days=7)

    async def test_unknown_email_and_wrong_password_indistinguishable(self, service):
        """이메일 없음과 비밀번호 불일치는 같은 오류."""
        await register_alice(service)
        with pytest.raises(InvalidCredentialsError) as unknown:
            await service.login("bob@example.com", ALICE_PASSWORD)
        with pytest.raises(InvalidCredentialsError) as wrong:
            await service.login("alice@example.com", "Wr0ng!pass")
        assert unknown.value.status_code == wrong.value.status_code == 401
        assert unknown.value.detail == wrong.value.detail

    @pytest.mark.parametrize("status", [STATUS_INACTIVE, STATUS_LOCKED])
    async def test_inactive_account_rejected(self, service, accounts, sessions, status):
        """비활성/잠금 계정은 AccountNotActiveError(403), 세션 미생성."""
        account = await register_alice(service)
        await accounts.update_fields(account.id, {"status": status})
        with pytest.raises(AccountNotActiveError) as exc_info:
            await service.login("alice@example.com", ALICE_PASSWORD)
        assert exc_info.value.status_code == 403
        assert sessions.rows == {}

    async def test_inactive_account_wrong_password_is_credentials_error(self, service, accounts):
        """비활성 계정이라도 비밀번호가 틀리면 자격 증명 오류."""
        account = await register_alice(service)
        await accounts.update_fields(account.id, {"status": STATUS_LOCKED})
        with pytest.raises(InvalidCredentialsError):
            await service.login("alice@example.com", "Wr0ng!pass")

    async def test_multiple_logins_keep_sessions(self, service, sessions):
        """여러 기기 로그인 시 세션 누적."""
        account = await register_alice(service)
        first = await service.login("alice@example.com", ALICE_PASSWORD)
        second = await service.login("alice@example.com", ALICE_PASSWORD)
        assert first.refresh_token != second.refresh_token
        assert len(sessions.for_account(account.id)) == 2

    async def test_store_outage_propagates(self, accounts):
        """세션 저장소 장애는 StoreUnavailableError로 전파."""
        service = AuthService(
            accounts=accounts,
            sessions=UnavailableSessionRepository(retryable=True),
            hasher=FAST_HASHER,
            tokens=TEST_ISSUER,
        )
        await register_alice(service)
        with pytest.raises(StoreUnavailableError) as exc_info:
            await service.login("alice@example.com", ALICE_PASSWORD)
        assert exc_info.value.retryable is True
        assert exc_info.value.status_code == 503

    async def test_unknown_email_costs_one_verify(self, accounts, sessions):
        """존재하지 않는 이메일도 비밀번호 불일치와 같은 횟수의 bcrypt 검증."""
        hasher = CountingHasher()
        service = AuthService(accounts=accounts, sessions=sessions, hasher=hasher, tokens=TEST_ISSUER)
        await register_alice(service)

        hasher.verify_calls = 0
        with pytest.raises(InvalidCredentialsError):
            await service.login("alice@example.com", "Wr0ng!pass")
        assert hasher.verify_calls == 1

        hasher.verify_calls = 0
        with pytest.raises(InvalidCredentialsError):
            await service.login("bob@example.com", "Wr0ng!pass")
        assert hasher.verify_calls == 1
        assert sessions.rows == {}


# ===== Refresh =====

class TestRefresh:
    """토큰 갱신 테스트."""

    async def test_refresh_issues_new_access_token(self, service, sessions):
        """갱신 시 새 액세스 토큰, 리프레시 토큰은 유지."""
        account = await register_alice(service)
        login = await service.login("alice@example.com", ALICE_PASSWORD)

        result = await service.refresh_token(login.refresh_token)
        assert result.token_type == "Bearer"
        assert service.validate_access_token(result.access_token).account_id == account.id

        # 회전 없음 — the same refresh token keeps working
        again = await service.refresh_token(login.refresh_token)
        assert again.access_token
        assert len(sessions.for_account(account.id)) == 1

    async def test_unknown_refresh_token(self, service):
        """알 수 없는 리프레시 토큰은 InvalidTokenError."""
        with pytest.raises(InvalidTokenError):
            await service.refresh_token("does-not-exist")

    async def test_expired_session_rejected(self, service, sessions):
        """만료된 세션은 거부."""
        account = await register_alice(service)
        login = await service.login("alice@example.com", ALICE_PASSWORD)
        stored = sessions.for_account(account.id)[0]
        stored.expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
        with pytest.raises(InvalidTokenError):
            await service.refresh_token(login.refresh_token)

    async def test_dangling_session_rejected(self, service, sessions):
        """계정이 사라진 세션은 InvalidTokenError."""
        now = datetime.now(timezone.utc)
        await sessions.insert(
            AuthSession(
                session_id=generate_session_id(),
                user_id="usr_gone",
                refresh_token="orphan-token",
                user_agent="",
                ip_address="",
                expires_at=now + timedelta(days=1),
                created_at=now,
            )
        )
        with pytest.raises(InvalidTokenError):
            await service.refresh_token("orphan-token")

    async def test_refresh_after_deactivation(self, service, accounts):
        """로그인 후 비활성화된 계정은 갱신 불가."""
        account = await register_alice(service)
        login = await service.login("alice@example.com", ALICE_PASSWORD)
        await accounts.update_fields(account.id, {"status": STATUS_INACTIVE})
        with pytest.raises(AccountNotActiveError):
            await service.refresh_token(login.refresh_token)

    async def test_refresh_reflects_role_change(self, service, accounts):
        """갱신된 토큰은 현재 역할을 반영."""
        account = await register_alice(service)
        login = await service.login("alice@example.com", ALICE_PASSWORD)
        await accounts.update_fields(account.id, {"role": "admin"})
        result = await service.refresh_token(login.refresh_token)
        assert service.validate_access_token(result.access_token).role == "admin"


# ===== Logout / Sessions =====

class TestLogout:
    """로그아웃 및 세션 관리 테스트."""

    async def test_logout_revokes_all_sessions(self, service, sessions):
        """로그아웃 시 모든 세션 삭제, 이후 갱신 불가."""
        account = await register_alice(service)
        first = await service.login("alice@example.com", ALICE_PASSWORD)
        second = await service.login("alice@example.com", ALICE_PASSWORD)

        assert await service.logout(account.id) == 2
        assert sessions.for_account(account.id) == []
        for token in (first.refresh_token, second.refresh_token):
            with pytest.raises(InvalidTokenError):
                await service.refresh_token(token)

    async def test_logout_is_idempotent(self, service):
        """세션이 없어도 로그아웃 성공."""
        account = await register_alice(service)
        assert await service.logout(account.id) == 0
        assert await service.logout(account.id) == 0

    async def test_access_token_survives_logout(self, service):
        """액세스 토큰은 상태가 없으므로 만료 전까지 유효."""
        account = await register_alice(service)
        login = await service.login("alice@example.com", ALICE_PASSWORD)
        await service.logout(account.id)
        assert service.validate_access_token(login.access_token).account_id == account.id

    async def test_logout_leaves_other_accounts(self, service, sessions):
        """다른 계정의 세션은 유지."""
        alice = await register_alice(service)
        bob = await service.register("bob@example.com", ALICE_PASSWORD, "Bob", "Jones")
        await service.login("alice@example.com", ALICE_PASSWORD)
        await service.login("bob@example.com", ALICE_PASSWORD)
        await service.logout(alice.id)
        assert len(sessions.for_account(bob.id)) == 1

    async def test_revoke_single_session(self, service, sessions):
        """세션 하나만 폐기."""
        account = await register_alice(service)
        keep = await service.login("alice@example.com", ALICE_PASSWORD)
        drop = await service.login("alice@example.com", ALICE_PASSWORD)
        target = next(s for s in sessions.for_account(account.id) if s.refresh_token == drop.refresh_token)

        await service.revoke_session(account.id, target.session_id)
        assert await service.refresh_token(keep.refresh_token)
        with pytest.raises(InvalidTokenError):
            await service.refresh_token(drop.refresh_token)

    async def test_revoke_foreign_session_not_found(self, service, sessions):
        """다른 계정의 세션 폐기 시 404."""
        alice = await register_alice(service)
        await service.register("bob@example.com", ALICE_PASSWORD, "Bob", "Jones")
        await service.login("alice@example.com", ALICE_PASSWORD)
        alice_session = sessions.for_account(alice.id)[0]
        bob = await service.login("bob@example.com", ALICE_PASSWORD)

        with pytest.raises(NotFoundError):
            await service.revoke_session(bob.user.id, alice_session.session_id)
        assert alice_session.session_id in sessions.rows

    async def test_sweep_removes_only_expired(self, service, sessions):
        """만료 세션만 정리."""
        account = await register_alice(service)
        live = await service.login("alice@example.com", ALICE_PASSWORD)
        await service.login("alice@example.com", ALICE_PASSWORD)
        stale = next(s for s in sessions.for_account(account.id) if s.refresh_token != live.refresh_token)
        stale.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)

        assert await service.sweep_expired_sessions() == 1
        assert [s.refresh_token for s in sessions.for_account(account.id)] == [live.refresh_token]


# ===== Profile / Password =====

class TestAccount:
    """계정 조회 및 비밀번호 변경 테스트."""

    async def test_get_account(self, service):
        account = await register_alice(service)
        fetched = await service.get_account(account.id)
        assert fetched.id == account.id
        assert fetched.first_name == "Alice"

    async def test_get_missing_account(self, service):
        """토큰 주체 계정이 없으면 InvalidTokenError."""
        with pytest.raises(InvalidTokenError):
            await service.get_account("usr_missing")

    async def test_change_password(self, service, sessions):
        """비밀번호 변경 후 새 비밀번호로만 로그인, 기존 세션 폐기."""
        account = await register_alice(service)
        login = await service.login("alice@example.com", ALICE_PASSWORD)

        await service.change_password(account.id, ALICE_PASSWORD, "N3w!password")

        assert sessions.for_account(account.id) == []
        with pytest.raises(InvalidTokenError):
            await service.refresh_token(login.refresh_token)
        with pytest.raises(InvalidCredentialsError):
            await service.login("alice@example.com", ALICE_PASSWORD)
        assert await service.login("alice@example.com", "N3w!password")

    async def test_change_password_wrong_current(self, service, sessions):
        """현재 비밀번호가 틀리면 변경 거부, 세션 유지."""
        account = await register_alice(service)
        await service.login("alice@example.com", ALICE_PASSWORD)
        with pytest.raises(InvalidCredentialsError):
            await service.change_password(account.id, "Wr0ng!pass", "N3w!password")
        assert len(sessions.for_account(account.id)) == 1


# ===== Scenario =====

class TestAliceScenario:
    """가입부터 로그아웃까지 전체 흐름."""

    async def test_full_lifecycle(self, sessions):
        accounts = InMemoryAccountRepository()
        service = AuthService(accounts=accounts, sessions=sessions, hasher=FAST_HASHER, tokens=TEST_ISSUER)

        account = await service.register("alice@example.com", "Secure123!", "Alice", "Wonder")
        assert account.id.startswith("usr_")
        assert account.email == "alice@example.com"
        assert "password" not in account.model_dump()

        login = await service.login("alice@example.com", "Secure123!")
        assert login.user.role == "user"
        assert login.user.status == "active"
        refreshed = await service.refresh_token(login.refresh_token)
        assert service.validate_access_token(refreshed.access_token).account_id == account.id

        assert await service.logout(account.id) == 1
        with pytest.raises(InvalidTokenError):
            await service.refresh_token(login.refresh_token)

        relogin = await service.login("alice@example.com", "Secure123!")
        assert relogin.refresh_token != login.refresh_token

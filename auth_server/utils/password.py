"""비밀번호 해싱 및 검증 유틸리티 모듈.

Password hashing and verification utility module.
Uses bcrypt directly for secure password storage.
Passwords are never stored in plain text — always hashed with bcrypt.
The cost factor comes from configuration and is fixed per hasher instance.
"""

import re
import secrets

import bcrypt

from auth_server.config import settings
from auth_server.utils.exceptions import HashingError, MalformedDigestError

# bcrypt 입력 한계 — bcrypt only consumes the first 72 bytes of input
BCRYPT_MAX_PASSWORD_BYTES: int = 72

# bcrypt 산출물 형식 — "$2b$12$" + 22자 salt + 31자 hash
_BCRYPT_DIGEST = re.compile(r"^\$2[abxy]?\$\d{2}\$[./A-Za-z0-9]{53}$")


class PasswordHasher:
    """bcrypt 기반 자격 증명 해셔.

    Stateless bcrypt credential hasher with a fixed cost factor.

    Attributes:
        rounds: bcrypt 비용 인자 (bcrypt log2 cost factor)
    """

    def __init__(self, rounds: int) -> None:
        self.rounds: int = rounds
        self._dummy_digest: str | None = None

    def hash(self, password: str) -> str:
        """평문 비밀번호를 bcrypt 해시로 변환합니다.

        Hash a plain text password using bcrypt.
        The resulting hash includes a random salt, making each hash unique
        even for identical passwords.

        Args:
            password: 평문 비밀번호 (Plain text password to hash)

        Returns:
            str: bcrypt 해시 문자열 (Bcrypt hash string, ~60 chars)

        Raises:
            HashingError: 비용 인자가 잘못되었거나 난수 소스 실패 시
                          (Invalid cost factor or random source failure)

        Example:
            hashed = password_hasher.hash("my-secret-password")
            # "$2b$12$LJ3m4ys3..."
        """
        try:
            salt: bytes = bcrypt.gensalt(rounds=self.rounds)
            return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")
        except (ValueError, OSError, NotImplementedError) as exc:
            raise HashingError(f"Password hashing failed: {exc}") from exc

    def verify(self, password: str, hashed_password: str) -> bool:
        """평문 비밀번호와 bcrypt 해시를 비교 검증합니다.

        Verify a plain text password against a bcrypt hash.
        Uses constant-time comparison to prevent timing attacks.

        Args:
            password: 검증할 평문 비밀번호 (Plain text password to verify)
            hashed_password: 저장된 bcrypt 해시 (Stored bcrypt hash to compare against)

        Returns:
            bool: 일치하면 True, 불일치하면 False (True if password matches hash)

        Raises:
            MalformedDigestError: 해시가 bcrypt 형식이 아닐 때 (Digest is not a bcrypt digest)
        """
        if not hashed_password or not _BCRYPT_DIGEST.match(hashed_password):
            raise MalformedDigestError()

        encoded: bytes = password.encode("utf-8")
        # 72바이트 초과 비밀번호는 해싱 단계에서 거부되므로 일치할 수 없음
        if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
            return False

        try:
            return bcrypt.checkpw(encoded, hashed_password.encode("utf-8"))
        except ValueError as exc:
            raise MalformedDigestError() from exc

    def verify_dummy(self, password: str) -> bool:
        """존재하지 않는 계정에 대해 같은 비용의 검증을 수행합니다.

        Run one verify against a throwaway digest of the same cost, so an
        unknown email costs as much as a wrong password. Always False.
        """
        if self._dummy_digest is None:
            self._dummy_digest = self.hash(secrets.token_urlsafe(16))
        self.verify(password, self._dummy_digest)
        return False


# 싱글턴 인스턴스 — Singleton instance built from configuration
password_hasher: PasswordHasher = PasswordHasher(settings.BCRYPT_ROUNDS)


def hash_password(password: str) -> str:
    """설정된 해셔로 비밀번호를 해싱합니다 (Hash with the configured hasher)."""
    return password_hasher.hash(password)


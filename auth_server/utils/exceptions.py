"""커스텀 HTTP 예외 클래스 모듈.

Custom HTTP exception classes module.
Provides pre-configured HTTPException subclasses for common error patterns,
plus the authentication error taxonomy built on top of them. Services raise
these directly; FastAPI renders each one with its own status code, so the
request boundary needs no translation table.

Usage:
    from auth_server.utils.exceptions import AccountExistsError, InvalidTokenError
    raise AccountExistsError()
    raise InvalidTokenError()
"""

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """404 Not Found 예외 — 요청한 리소스를 찾을 수 없을 때 사용.

    404 Not Found exception.
    Raised when a requested resource (account, session) does not exist.

    Args:
        detail: 오류 메시지 (Error message, default: "Resource not found")
    """

    def __init__(self, detail: str = "Resource not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class DuplicateError(HTTPException):
    """409 Conflict 예외 — 중복 리소스 생성 시도 시 사용.

    409 Conflict exception.
    Raised when attempting to create a resource that violates a uniqueness constraint.

    Args:
        detail: 오류 메시지 (Error message, default: "Resource already exists")
    """

    def __init__(self, detail: str = "Resource already exists") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class ForbiddenError(HTTPException):
    """403 Forbidden 예외 — 권한 부족 시 사용.

    403 Forbidden exception.
    Raised when the authenticated account lacks the required role.

    Args:
        detail: 오류 메시지 (Error message, default: "Insufficient permissions")
    """

    def __init__(self, detail: str = "Insufficient permissions") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class UnauthorizedError(HTTPException):
    """401 Unauthorized 예외 — 인증 실패 시 사용.

    401 Unauthorized exception.
    Raised when authentication is missing, invalid, or expired.

    Args:
        detail: 오류 메시지 (Error message, default: "Authentication required")
    """

    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class BadRequestError(HTTPException):
    """400 Bad Request 예외 — 잘못된 요청 데이터 시 사용.

    400 Bad Request exception.
    Raised when request data breaks a validation rule beyond what Pydantic
    type validation catches (email format, password strength, terms).

    Args:
        detail: 오류 메시지 (Error message, default: "Bad request")
    """

    def __init__(self, detail: str = "Bad request") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


# ---------------------------------------------------------------------------
# 인증 도메인 예외 — Authentication error taxonomy
# ---------------------------------------------------------------------------
class AccountExistsError(DuplicateError):
    """이메일이 이미 등록됨 (Email already registered). 409."""

    def __init__(self) -> None:
        super().__init__("Email already registered")


class InvalidCredentialsError(UnauthorizedError):
    """이메일 또는 비밀번호 불일치. 401.

    Unknown email and wrong password are reported identically.
    """

    def __init__(self) -> None:
        super().__init__("Invalid email or password")


class AccountNotActiveError(ForbiddenError):
    """계정이 비활성 또는 잠김 상태 (Account inactive or locked). 403."""

    def __init__(self) -> None:
        super().__init__("Account is not active")


class InvalidTokenError(UnauthorizedError):
    """유효하지 않은 토큰. 401.

    Malformed, forged, expired and unknown tokens all share one detail string.
    """

    def __init__(self) -> None:
        super().__init__("Invalid or expired token")


class ValidationFailedError(BadRequestError):
    """검증 규칙 위반 (A validation rule rejected the request). 400."""


class HashingError(HTTPException):
    """비밀번호 해싱 실패 — 잘못된 비용 인자 또는 엔트로피 고갈. 500."""

    def __init__(self, detail: str = "Password hashing failed") -> None:
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


class MalformedDigestError(HTTPException):
    """저장된 해시가 이 해셔의 산출물이 아님 (Stored digest is not a bcrypt digest). 500."""

    def __init__(self, detail: str = "Stored password digest is malformed") -> None:
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


class EntropyError(HTTPException):
    """보안 난수 소스 고갈 — 재시도 불가 (Secure random source exhausted). 500."""

    def __init__(self, detail: str = "Secure random source unavailable") -> None:
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


class StoreUnavailableError(HTTPException):
    """저장소 계층 실패 래퍼.

    Wraps any store-layer failure not otherwise classified.
    ``retryable`` is True for timeouts and connection-level failures (503),
    False for everything else (500).

    Args:
        detail: 오류 메시지 (Error message)
        retryable: 재시도 가능 여부 (Whether the caller may retry)
    """

    def __init__(self, detail: str = "Data store unavailable", retryable: bool = False) -> None:
        self.retryable: bool = retryable
        super().__init__(
            status_code=(
                status.HTTP_503_SERVICE_UNAVAILABLE
                if retryable
                else status.HTTP_500_INTERNAL_SERVER_ERROR
            ),
            detail=detail,
        )

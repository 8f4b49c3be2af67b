"""요청 검증 규칙 모듈.

Request validation rules module.
The rule set is an immutable value built once at startup and handed to the
request boundary through ``app.state``; there is no module-level validator
that other code can mutate.
"""

import re

from pydantic import BaseModel, ConfigDict

from auth_server.config import Settings
from auth_server.models.user import EMAIL_MAX_LENGTH, NAME_MAX_LENGTH
from auth_server.schemas.auth import ChangePasswordRequest, RegisterRequest
from auth_server.utils.exceptions import ValidationFailedError
from auth_server.utils.password import BCRYPT_MAX_PASSWORD_BYTES

EMAIL_PATTERN: str = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"


class ValidationRules(BaseModel):
    """불변 검증 규칙 집합.

    Immutable validation rule set applied by the request boundary.

    Attributes:
        email_pattern: 이메일 정규식 (Email regular expression)
        password_min_length: 최소 비밀번호 길이 (Minimum password length)
        password_min_classes: 필요한 문자 종류 수 — 대문자/소문자/숫자/기호 중
                              (Required character classes out of upper/lower/digit/symbol)
        email_max_length: 이메일 최대 길이 (Matches the ``email`` column width)
        name_max_length: 이름 최대 길이 (Matches the name column width)
        require_accept_terms: 약관 동의 필수 (Registration must carry acceptTerms=true)
        require_password_confirmation: 비밀번호 확인 필수 (confirmPassword must match)
    """

    model_config = ConfigDict(frozen=True)

    email_pattern: str = EMAIL_PATTERN
    password_min_length: int = 8
    password_min_classes: int = 3
    email_max_length: int = EMAIL_MAX_LENGTH
    name_max_length: int = NAME_MAX_LENGTH
    require_accept_terms: bool = False
    require_password_confirmation: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "ValidationRules":
        return cls(
            password_min_length=settings.PASSWORD_MIN_LENGTH,
            require_accept_terms=settings.REQUIRE_ACCEPT_TERMS,
            require_password_confirmation=settings.REQUIRE_PASSWORD_CONFIRMATION,
        )

    def check_email(self, email: str) -> None:
        if len(email) > self.email_max_length:
            raise ValidationFailedError(
                f"Email must be at most {self.email_max_length} characters"
            )
        if not re.match(self.email_pattern, email):
            raise ValidationFailedError("Invalid email address")

    def check_password(self, password: str) -> None:
        """비밀번호 길이 및 강도를 검사합니다 (Check password length and strength)."""
        if len(password) < self.password_min_length:
            raise ValidationFailedError(
                f"Password must be at least {self.password_min_length} characters"
            )
        if len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValidationFailedError(
                f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes"
            )

        has_upper = any(ch.isupper() for ch in password)
        has_lower = any(ch.islower() for ch in password)
        has_digit = any(ch.isdigit() for ch in password)
        has_symbol = any(not ch.isalnum() and not ch.isspace() for ch in password)
        if sum((has_upper, has_lower, has_digit, has_symbol)) < self.password_min_classes:
            raise ValidationFailedError("Password is too weak")

    def check_registration(self, data: RegisterRequest) -> None:
        """회원가입 요청을 검증합니다.

        Validate a registration request against every rule in this set.

        Raises:
            ValidationFailedError: 규칙 위반 시 (When any rule is violated)
        """
        self.check_email(data.email)
        if not data.first_name.strip() or not data.last_name.strip():
            raise ValidationFailedError("First name and last name are required")
        if len(data.first_name) > self.name_max_length or len(data.last_name) > self.name_max_length:
            raise ValidationFailedError(
                f"Names must be at most {self.name_max_length} characters"
            )
        self.check_password(data.password)
        if self.require_accept_terms and not data.accept_terms:
            raise ValidationFailedError("Terms must be accepted")
        if self.require_password_confirmation and data.confirm_password != data.password:
            raise ValidationFailedError("Password confirmation does not match")

    def check_password_change(self, data: ChangePasswordRequest) -> None:
        self.check_password(data.new_password)
        if data.new_password == data.current_password:
            raise ValidationFailedError("New password must differ from the current password")

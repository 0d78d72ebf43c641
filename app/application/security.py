import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List


class Role(str, Enum):
    ADMIN = "ADMIN"
    CLIENT = "CLIENT"


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, resolved once per request."""
    account_id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def can_access(self, owner_id: str) -> bool:
        return self.is_admin or self.account_id == owner_id


@dataclass
class PasswordValidation:
    is_valid: bool
    errors: List[str] = field(default_factory=list)


SPECIAL_CHARACTERS = '!@#$%^&*(),.?":{}|<>'
COMMON_PREFIXES = re.compile(r"^(password|123456|qwerty|admin|welcome|login)", re.IGNORECASE)
SEQUENTIAL_LETTERS = re.compile(
    r"abc|bcd|cde|def|efg|fgh|ghi|hij|ijk|jkl|klm|lmn|mno|nop|opq|pqr|qrs|rst|stu|tuv|uvw|vwx|wxy|xyz",
    re.IGNORECASE,
)
SEQUENTIAL_DIGITS = re.compile(r"012|123|234|345|456|567|678|789")
REPEATED_CHARACTERS = re.compile(r"(.)\1{2,}")


def validate_password(password: str) -> PasswordValidation:
    errors: List[str] = []

    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")
    if len(password) > 128:
        errors.append("Password must be less than 128 characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")
    if not any(c in SPECIAL_CHARACTERS for c in password):
        errors.append(f"Password must contain at least one special character ({SPECIAL_CHARACTERS})")
    if COMMON_PREFIXES.search(password):
        errors.append("Password cannot contain common patterns like 'password', '123456', 'qwerty', etc.")
    if SEQUENTIAL_LETTERS.search(password) or SEQUENTIAL_DIGITS.search(password):
        errors.append("Password cannot contain sequential characters (abc, 123, etc.)")
    if REPEATED_CHARACTERS.search(password):
        errors.append("Password cannot contain more than 2 repeated characters in a row")

    return PasswordValidation(is_valid=not errors, errors=errors)

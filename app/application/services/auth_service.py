import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from ..ports.account_repo import AccountDto, AccountRepository
from ..security import Principal, Role
from ...exceptions import AuthError
from ...utils import create_jwt_token, decode_jwt_token, verify_password

logger = logging.getLogger(__name__)


@dataclass
class AuthService:
    account_repo: AccountRepository

    def login(self, email: str, password: str) -> Tuple[str, AccountDto]:
        if not email or not password:
            raise AuthError("Invalid email or password")
        account = self.account_repo.get_by_email(email.strip().lower())
        if not account or not verify_password(password, account.password_hash):
            logger.warning("Failed login attempt")
            raise AuthError("Invalid email or password")
        token = create_jwt_token({"sub": account.id, "role": account.role})
        return token, account

    def principal_from_token(self, token: Optional[str]) -> Principal:
        payload = decode_jwt_token(token) if token else None
        if not payload:
            raise AuthError("Invalid or expired token")
        account_id = payload.get("sub")
        if not account_id:
            raise AuthError("Invalid token: missing user ID")
        # Role is read from the database, not from the token
        account = self.account_repo.get_by_id(account_id)
        if not account:
            raise AuthError("Account no longer exists")
        return Principal(account_id=account.id, role=Role(account.role))

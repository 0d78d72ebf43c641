from typing import List, Optional, Protocol
from dataclasses import dataclass
from datetime import datetime


@dataclass
class AccountDto:
    id: str
    email: str
    role: str
    password_hash: str
    created_at: datetime
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"

    @property
    def is_client(self) -> bool:
        return self.role == "CLIENT"


class AccountRepository(Protocol):
    def get_by_id(self, account_id: str) -> Optional[AccountDto]:
        ...

    def get_by_email(self, email: str) -> Optional[AccountDto]:
        ...

    def create(self, email: str, password_hash: str, role: str, first_name: Optional[str] = None, last_name: Optional[str] = None) -> AccountDto:
        ...

    def list_by_role(self, role: str) -> List[AccountDto]:
        ...

    def set_password_hash(self, account_id: str, password_hash: str) -> None:
        ...

    def delete(self, account_id: str) -> bool:
        ...

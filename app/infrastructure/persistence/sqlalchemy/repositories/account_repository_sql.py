from typing import List, Optional
from datetime import datetime
from sqlmodel import Session, select

from .....db.models import Account, Role
from .....application.ports.account_repo import AccountRepository, AccountDto


class SqlAccountRepository(AccountRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, account: Account) -> AccountDto:
        return AccountDto(
            id=account.id,
            email=account.email,
            role=Role(account.role).value,
            password_hash=account.password_hash,
            created_at=account.created_at,
            first_name=account.first_name,
            last_name=account.last_name,
        )

    def get_by_id(self, account_id: str) -> Optional[AccountDto]:
        account = self.session.get(Account, account_id)
        return self._to_dto(account) if account else None

    def get_by_email(self, email: str) -> Optional[AccountDto]:
        account = self.session.exec(select(Account).where(Account.email == email.strip().lower())).first()
        return self._to_dto(account) if account else None

    def create(self, email: str, password_hash: str, role: str, first_name: Optional[str] = None, last_name: Optional[str] = None) -> AccountDto:
        account = Account(
            email=email.strip().lower(),
            password_hash=password_hash,
            role=Role(role),
            first_name=first_name,
            last_name=last_name,
        )
        self.session.add(account)
        self.session.commit()
        self.session.refresh(account)
        return self._to_dto(account)

    def list_by_role(self, role: str) -> List[AccountDto]:
        rows = self.session.exec(
            select(Account).where(Account.role == Role(role)).order_by(Account.created_at.desc())
        ).all()
        return [self._to_dto(a) for a in rows]

    def set_password_hash(self, account_id: str, password_hash: str) -> None:
        account = self.session.get(Account, account_id)
        if not account:
            return
        account.password_hash = password_hash
        account.updated_at = datetime.utcnow()
        self.session.add(account)
        self.session.commit()

    def delete(self, account_id: str) -> bool:
        account = self.session.get(Account, account_id)
        if not account:
            return False
        self.session.delete(account)
        self.session.commit()
        return True

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..ports.account_repo import AccountDto, AccountRepository
from ..ports.image_repo import ImageRecord, ImageRepository
from ..ports.storage_repo import StorageAdapter
from ..security import Role, validate_password
from .image_service import purge_objects
from ...exceptions import ConflictError, InvalidRoleError, NotFoundError, ValidationError
from ...utils import hash_password, verify_password

logger = logging.getLogger(__name__)


@dataclass
class AccountService:
    account_repo: AccountRepository
    image_repo: ImageRepository
    storage: StorageAdapter

    def create_account(self, email: str, password: str, role: Role = Role.CLIENT,
                       first_name: Optional[str] = None, last_name: Optional[str] = None) -> AccountDto:
        email = (email or "").strip().lower()
        if not email or not password:
            raise ValidationError("Email and password are required")
        if "@" not in email:
            raise ValidationError("Invalid email address")
        check = validate_password(password)
        if not check.is_valid:
            raise ValidationError("Password does not meet complexity requirements", details=check.errors)
        if self.account_repo.get_by_email(email):
            raise ConflictError("User with this email already exists")
        account = self.account_repo.create(
            email=email,
            password_hash=hash_password(password),
            role=Role(role).value,
            first_name=first_name or None,
            last_name=last_name or None,
        )
        logger.info(f"Created {account.role} account {account.id}")
        return account

    def list_clients(self) -> List[Tuple[AccountDto, int]]:
        clients = self.account_repo.list_by_role(Role.CLIENT.value)
        return [(c, self.image_repo.count_for_account(c.id)) for c in clients]

    def list_admins(self) -> List[AccountDto]:
        return self.account_repo.list_by_role(Role.ADMIN.value)

    def get_client(self, account_id: str) -> AccountDto:
        account = self.account_repo.get_by_id(account_id)
        if not account:
            raise NotFoundError("Client not found")
        if not account.is_client:
            raise InvalidRoleError("User is not a client")
        return account

    def client_images(self, account_id: str) -> Tuple[AccountDto, List[ImageRecord]]:
        account = self.get_client(account_id)
        return account, self.image_repo.list_for_account(account_id)

    def delete_client(self, account_id: str) -> int:
        """Removes the client, its image rows and, best-effort, their stored objects."""
        self.get_client(account_id)
        images = self.image_repo.list_for_account(account_id)
        leftovers: List[str] = []
        for image in images:
            self.image_repo.delete(image.id)
            leftovers.extend(purge_objects(self.storage, image.object_keys))
        self.account_repo.delete(account_id)
        if leftovers:
            logger.warning(f"Client {account_id} deleted; {len(leftovers)} stored objects could not be removed")
        logger.info(f"Deleted client {account_id} and {len(images)} images")
        return len(images)

    def change_password(self, account_id: str, current_password: str, new_password: str) -> None:
        if not current_password or not new_password:
            raise ValidationError("Current password and new password are required")
        check = validate_password(new_password)
        if not check.is_valid:
            raise ValidationError("New password does not meet complexity requirements", details=check.errors)
        account = self.account_repo.get_by_id(account_id)
        if not account:
            raise NotFoundError("User not found")
        if not verify_password(current_password, account.password_hash):
            raise ValidationError("Current password is incorrect")
        if verify_password(new_password, account.password_hash):
            raise ValidationError("New password must be different from current password")
        self.account_repo.set_password_hash(account_id, hash_password(new_password))

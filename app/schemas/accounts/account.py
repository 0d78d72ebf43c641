# app/schemas/accounts/account.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from ...application.ports.account_repo import AccountDto
from ..images.image import ImageOut


class AccountOut(BaseModel):
    id: str
    email: str
    role: str
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    createdAt: datetime

    @classmethod
    def from_dto(cls, account: AccountDto) -> "AccountOut":
        return cls(
            id=account.id,
            email=account.email,
            role=account.role,
            firstName=account.first_name,
            lastName=account.last_name,
            createdAt=account.created_at,
        )


class ClientOut(AccountOut):
    imageCount: int = 0


class CreateAccountRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str
    firstName: Optional[str] = Field(None, max_length=100)
    lastName: Optional[str] = Field(None, max_length=100)


class ChangePasswordRequest(BaseModel):
    currentPassword: Optional[str] = None
    newPassword: Optional[str] = None


class ClientResponse(BaseModel):
    success: bool = True
    client: ClientOut


class ClientListResponse(BaseModel):
    success: bool = True
    clients: List[ClientOut]


class AdminResponse(BaseModel):
    success: bool = True
    admin: AccountOut


class AdminListResponse(BaseModel):
    success: bool = True
    admins: List[AccountOut]


class ClientImagesResponse(BaseModel):
    success: bool = True
    clientEmail: str
    images: List[ImageOut]


class MessageResponse(BaseModel):
    success: bool = True
    message: str

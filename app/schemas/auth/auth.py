# app/schemas/auth/auth.py
from pydantic import BaseModel

from ..accounts.account import AccountOut


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"
    account: AccountOut


class MeResponse(BaseModel):
    success: bool = True
    account: AccountOut

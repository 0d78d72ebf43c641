from fastapi import APIRouter, Depends, Response
import logging

from ..application.security import Principal
from ..application.services.account_service import AccountService
from ..application.services.auth_service import AuthService
from ..config import settings
from ..dependencies import get_account_service, get_auth_service, get_current_principal
from ..exceptions import NotFoundError
from ..schemas.accounts.account import AccountOut, ChangePasswordRequest, MessageResponse
from ..schemas.auth.auth import LoginRequest, LoginResponse, MeResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])


@router.post("/api/auth/login", response_model=LoginResponse)
def login(body: LoginRequest, response: Response, auth: AuthService = Depends(get_auth_service)):
    token, account = auth.login(body.email, body.password)
    response.set_cookie(
        "access_token",
        token,
        httponly=True,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    logger.info(f"Account {account.id} logged in")
    return LoginResponse(access_token=token, account=AccountOut.from_dto(account))


@router.post("/api/auth/logout", response_model=MessageResponse)
def logout(response: Response):
    response.delete_cookie("access_token")
    return MessageResponse(message="Logged out")


@router.get("/api/auth/me", response_model=MeResponse)
def me(principal: Principal = Depends(get_current_principal), auth: AuthService = Depends(get_auth_service)):
    account = auth.account_repo.get_by_id(principal.account_id)
    if not account:
        raise NotFoundError("User not found")
    return MeResponse(account=AccountOut.from_dto(account))


@router.put("/api/user/password", response_model=MessageResponse)
def change_password(body: ChangePasswordRequest, principal: Principal = Depends(get_current_principal),
                    accounts: AccountService = Depends(get_account_service)):
    accounts.change_password(principal.account_id, body.currentPassword, body.newPassword)
    return MessageResponse(message="Password updated successfully")

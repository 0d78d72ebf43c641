from fastapi import APIRouter, Depends
import logging

from ..application.security import Principal, Role
from ..application.services.account_service import AccountService
from ..dependencies import get_account_service, require_admin
from ..schemas.accounts.account import (
    AccountOut,
    AdminListResponse,
    AdminResponse,
    ClientImagesResponse,
    ClientListResponse,
    ClientOut,
    ClientResponse,
    CreateAccountRequest,
    MessageResponse,
)
from ..schemas.images.image import ImageOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


def _client_out(account, image_count: int = 0) -> ClientOut:
    return ClientOut(**AccountOut.from_dto(account).model_dump(), imageCount=image_count)


@router.get("/clients", response_model=ClientListResponse)
def list_clients(principal: Principal = Depends(require_admin), accounts: AccountService = Depends(get_account_service)):
    return ClientListResponse(clients=[_client_out(c, n) for c, n in accounts.list_clients()])


@router.post("/clients", response_model=ClientResponse)
def create_client(body: CreateAccountRequest, principal: Principal = Depends(require_admin),
                  accounts: AccountService = Depends(get_account_service)):
    account = accounts.create_account(body.email, body.password, Role.CLIENT, body.firstName, body.lastName)
    return ClientResponse(client=_client_out(account))


@router.delete("/clients/{client_id}", response_model=MessageResponse)
def delete_client(client_id: str, principal: Principal = Depends(require_admin),
                  accounts: AccountService = Depends(get_account_service)):
    count = accounts.delete_client(client_id)
    logger.info(f"Admin {principal.account_id} deleted client {client_id}")
    return MessageResponse(message=f"Client and {count} associated images deleted successfully")


@router.get("/clients/{client_id}/images", response_model=ClientImagesResponse)
def client_images(client_id: str, principal: Principal = Depends(require_admin),
                  accounts: AccountService = Depends(get_account_service)):
    client, images = accounts.client_images(client_id)
    return ClientImagesResponse(
        clientEmail=client.email,
        images=[ImageOut.from_record(i, client_email=client.email) for i in images],
    )


@router.get("/admins", response_model=AdminListResponse)
def list_admins(principal: Principal = Depends(require_admin), accounts: AccountService = Depends(get_account_service)):
    return AdminListResponse(admins=[AccountOut.from_dto(a) for a in accounts.list_admins()])


@router.post("/admins", response_model=AdminResponse)
def create_admin(body: CreateAccountRequest, principal: Principal = Depends(require_admin),
                 accounts: AccountService = Depends(get_account_service)):
    account = accounts.create_account(body.email, body.password, Role.ADMIN, body.firstName, body.lastName)
    return AdminResponse(admin=AccountOut.from_dto(account))

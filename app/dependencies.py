import logging
from functools import lru_cache

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from .application.ports.storage_repo import StorageAdapter
from .application.security import Principal
from .application.services.account_service import AccountService
from .application.services.auth_service import AuthService
from .application.services.image_service import ImageService
from .application.services.ingestion_service import IngestionPipeline
from .config import settings
from .database import get_session
from .exceptions import AuthorizationError
from .infrastructure.imaging import PillowImageTransformer
from .infrastructure.persistence.sqlalchemy.repositories.account_repository_sql import SqlAccountRepository
from .infrastructure.persistence.sqlalchemy.repositories.image_repository_sql import SqlImageRepository
from .infrastructure.storage import build_storage

logger = logging.getLogger(__name__)

# Auth scheme
oauth2_scheme = HTTPBearer(auto_error=False)


@lru_cache()
def get_storage() -> StorageAdapter:
    return build_storage(settings)


def get_transformer() -> PillowImageTransformer:
    return PillowImageTransformer(
        thumbnail_size=settings.THUMBNAIL_SIZE,
        optimized_max_edge=settings.OPTIMIZED_MAX_EDGE,
    )


def get_account_repo(session: Session = Depends(get_session)) -> SqlAccountRepository:
    return SqlAccountRepository(session)


def get_image_repo(session: Session = Depends(get_session)) -> SqlImageRepository:
    return SqlImageRepository(session)


def get_auth_service(accounts: SqlAccountRepository = Depends(get_account_repo)) -> AuthService:
    return AuthService(account_repo=accounts)


def get_ingestion_pipeline(
    accounts: SqlAccountRepository = Depends(get_account_repo),
    images: SqlImageRepository = Depends(get_image_repo),
    storage: StorageAdapter = Depends(get_storage),
    transformer: PillowImageTransformer = Depends(get_transformer),
) -> IngestionPipeline:
    return IngestionPipeline(
        storage=storage,
        image_repo=images,
        account_repo=accounts,
        transformer=transformer,
        max_bytes=settings.MAX_FILE_SIZE,
        allowed_types=settings.ALLOWED_IMAGE_TYPES,
        allowed_extensions=settings.ALLOWED_EXTENSIONS,
    )


def get_image_service(
    accounts: SqlAccountRepository = Depends(get_account_repo),
    images: SqlImageRepository = Depends(get_image_repo),
    storage: StorageAdapter = Depends(get_storage),
) -> ImageService:
    return ImageService(image_repo=images, account_repo=accounts, storage=storage)


def get_account_service(
    accounts: SqlAccountRepository = Depends(get_account_repo),
    images: SqlImageRepository = Depends(get_image_repo),
    storage: StorageAdapter = Depends(get_storage),
) -> AccountService:
    return AccountService(account_repo=accounts, image_repo=images, storage=storage)


# Dependency to get the caller from a bearer token or the access_token cookie
def get_current_principal(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(oauth2_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> Principal:
    token = None
    if credentials and credentials.credentials:
        token = credentials.credentials
    else:
        token = request.cookies.get("access_token")
    principal = auth.principal_from_token(token)
    request.state.principal = principal
    return principal


def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if not principal.is_admin:
        logger.warning(f"Account {principal.account_id} attempted an admin operation")
        raise AuthorizationError("Admin access required")
    return principal

import logging

from ...application.ports.storage_repo import StorageAdapter
from .local_storage import DisabledStorageAdapter, LocalStorageAdapter
from .s3_storage import S3StorageAdapter

logger = logging.getLogger(__name__)


def build_storage(settings) -> StorageAdapter:
    """Pick the storage backend from settings.

    Missing object-store credentials degrade to local storage (``auto``) or
    to a disabled adapter (``s3``) instead of failing at startup.
    """
    backend = (settings.STORAGE_BACKEND or "auto").lower()

    if backend in ("auto", "s3"):
        if settings.spaces_configured:
            logger.info(f"Using S3 storage bucket {settings.DO_SPACES_BUCKET} at {settings.DO_SPACES_ENDPOINT}")
            return S3StorageAdapter(
                bucket=settings.DO_SPACES_BUCKET,
                endpoint=settings.DO_SPACES_ENDPOINT,
                region=settings.DO_SPACES_REGION,
                access_key=settings.DO_SPACES_ACCESS_KEY,
                secret_key=settings.DO_SPACES_SECRET_KEY,
            )
        if backend == "s3":
            logger.error("STORAGE_BACKEND=s3 but object storage credentials are incomplete; uploads are disabled")
            return DisabledStorageAdapter()
        logger.warning(f"Object storage credentials not configured; falling back to local storage in {settings.UPLOAD_DIR}")
        backend = "local"

    if backend == "local":
        return LocalStorageAdapter(
            upload_dir=settings.UPLOAD_DIR,
            base_url=settings.BASE_URL,
            secret_key=settings.SECRET_KEY,
            algorithm=settings.ALGORITHM,
        )

    if backend != "disabled":
        logger.error(f"Unknown STORAGE_BACKEND {backend!r}; uploads are disabled")
    return DisabledStorageAdapter()


__all__ = [
    "build_storage",
    "S3StorageAdapter",
    "LocalStorageAdapter",
    "DisabledStorageAdapter",
]

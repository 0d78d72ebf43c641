import logging
from dataclasses import dataclass
from typing import List, Optional

from ..ports.account_repo import AccountRepository
from ..ports.image_repo import ImageRecord, ImageRepository
from ..ports.storage_repo import StorageAdapter
from ..security import Principal
from ...exceptions import AuthorizationError, NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)

IMAGE_TYPES = ("NDVI", "NDRE", "GNDVI", "OSAVI", "CIred-edge", "CIgreen")


def purge_objects(storage: StorageAdapter, keys: List[str]) -> List[str]:
    """Best-effort object removal. Returns the keys that could not be deleted."""
    failed: List[str] = []
    for key in keys:
        try:
            storage.delete(key)
        except StorageError as e:
            logger.warning(f"Could not delete stored object {key}: {e}")
            failed.append(key)
    return failed


@dataclass
class ImageService:
    image_repo: ImageRepository
    account_repo: AccountRepository
    storage: StorageAdapter

    def list_images(self, principal: Principal, client_id: Optional[str] = None, limit: int = 50, offset: int = 0) -> List[ImageRecord]:
        if not principal.is_admin:
            return self.image_repo.list_for_account(principal.account_id, limit=limit, offset=offset)
        if client_id:
            return self.image_repo.list_for_account(client_id, limit=limit, offset=offset)
        return self.image_repo.list_all(limit=limit, offset=offset)

    def get_image(self, principal: Principal, image_id: str) -> ImageRecord:
        image = self.image_repo.get(image_id)
        if not image:
            raise NotFoundError("Image not found")
        if not principal.can_access(image.account_id):
            raise AuthorizationError("Permission denied")
        return image

    def update_image(self, principal: Principal, image_id: str, title: Optional[str] = None,
                     company_name: Optional[str] = None, location: Optional[str] = None,
                     image_type: Optional[str] = None) -> ImageRecord:
        self.get_image(principal, image_id)
        if image_type is not None and image_type not in IMAGE_TYPES:
            raise ValidationError("Invalid image type")
        updated = self.image_repo.update_details(image_id, title, company_name, location, image_type)
        if not updated:
            raise NotFoundError("Image not found")
        return updated

    def delete_image(self, principal: Principal, image_id: str) -> ImageRecord:
        image = self.get_image(principal, image_id)
        self.image_repo.delete(image_id)
        failed = purge_objects(self.storage, image.object_keys)
        if failed:
            logger.warning(f"Image {image_id} deleted but {len(failed)} stored objects remain: {failed}")
        return image

    def signed_url(self, principal: Principal, url: str, ttl_seconds: int) -> str:
        if not url:
            raise ValidationError("URL is required")
        if not principal.is_admin:
            image = self.image_repo.find_by_url(url)
            if not image:
                raise NotFoundError("Image not found")
            if not principal.can_access(image.account_id):
                raise AuthorizationError("Permission denied")
        return self.storage.signed_get(url, ttl_seconds)

    def local_download_path(self, token: str) -> str:
        resolve = getattr(self.storage, "resolve_signed_token", None)
        if resolve is None:
            raise NotFoundError("File not found")
        return resolve(token)

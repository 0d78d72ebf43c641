import logging
import mimetypes
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from ..ports.account_repo import AccountDto, AccountRepository
from ..ports.image_repo import ImageRecord, ImageRepository, NewImage
from ..ports.image_transform import ImageTransformer, ImageValidation, TransformResult
from ..ports.storage_repo import StorageAdapter, build_object_key
from ...exceptions import AppError, InvalidRoleError, NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_TYPES = ("image/tiff", "image/tif", "image/png", "image/jpeg", "image/jpg")
DEFAULT_ALLOWED_EXTENSIONS = (".tif", ".tiff", ".png", ".jpg", ".jpeg")
GENERIC_TYPES = ("", "application/octet-stream")
CANONICAL_TYPES = {"image/tif": "image/tiff", "image/jpg": "image/jpeg"}

INVALID_TYPE_MESSAGE = "Invalid file type. Only TIFF, PNG, and JPEG files are allowed."


class IngestionOutcome(str, Enum):
    STORED = "stored"
    STORED_WITHOUT_METADATA = "stored_without_metadata"
    FAILED = "failed"


@dataclass
class OwnerRef:
    """Target account, given either by id or by email."""
    account_id: Optional[str] = None
    email: Optional[str] = None


@dataclass
class IngestionResult:
    outcome: IngestionOutcome
    owner: AccountDto
    image: Optional[ImageRecord] = None
    stored_keys: List[str] = field(default_factory=list)
    transform: Optional[TransformResult] = None
    error: Optional[AppError] = None

    @property
    def ok(self) -> bool:
        return self.outcome == IngestionOutcome.STORED

    @property
    def validation(self) -> Optional[ImageValidation]:
        return self.transform.validation if self.transform else None


@dataclass
class IngestionPipeline:
    """validate -> transform -> store bytes -> store metadata.

    Best-effort, not transactional: objects already written stay in the store
    when a later step fails. The result lists them under ``stored_keys``.
    """
    storage: StorageAdapter
    image_repo: ImageRepository
    account_repo: AccountRepository
    transformer: ImageTransformer
    max_bytes: int = 500 * 1024 * 1024
    allowed_types: Sequence[str] = DEFAULT_ALLOWED_TYPES
    allowed_extensions: Sequence[str] = DEFAULT_ALLOWED_EXTENSIONS

    def ingest(self, data: Optional[bytes], filename: Optional[str], content_type: Optional[str],
               owner: OwnerRef, *, transform: bool = True, max_bytes: Optional[int] = None) -> IngestionResult:
        filename = os.path.basename(filename or "")
        content_type = self.validate(data, filename, content_type, max_bytes or self.max_bytes)
        account = self.resolve_owner(owner)

        transform_result: Optional[TransformResult] = None
        if transform:
            transform_result = self.transformer.process(data)

        original_key = build_object_key("originals", account.id, self._extension_for(filename, content_type))
        try:
            url = self.storage.put(data, original_key, content_type)
        except StorageError as e:
            logger.error(f"Storing original {filename!r} for account {account.id} failed: {e}")
            return IngestionResult(IngestionOutcome.FAILED, account, transform=transform_result, error=e)
        stored_keys = [original_key]

        thumbnail_url = thumbnail_key = None
        optimized_url = optimized_key = None
        derived_failed = False
        if transform_result and transform_result.thumbnail:
            thumbnail_key = build_object_key("thumbnails", account.id, "jpg")
            thumbnail_url = self._put_derived(transform_result.thumbnail, thumbnail_key)
            if thumbnail_url:
                stored_keys.append(thumbnail_key)
            else:
                thumbnail_key = None
                derived_failed = True
        if transform_result and transform_result.optimized:
            optimized_key = build_object_key("optimized", account.id, "jpg")
            optimized_url = self._put_derived(transform_result.optimized, optimized_key)
            if optimized_url:
                stored_keys.append(optimized_key)
            else:
                optimized_key = None
                derived_failed = True

        status = "completed"
        if transform_result is not None and (transform_result.failed or derived_failed):
            status = "failed"

        metadata = transform_result.metadata if transform_result else None
        new_image = NewImage(
            account_id=account.id,
            url=url,
            storage_key=original_key,
            thumbnail_url=thumbnail_url,
            thumbnail_key=thumbnail_key,
            optimized_url=optimized_url,
            optimized_key=optimized_key,
            original_filename=filename or None,
            file_name=original_key.rsplit("/", 1)[-1],
            file_size=len(data),
            mime_type=content_type,
            width=metadata.width if metadata else None,
            height=metadata.height if metadata else None,
            format=metadata.format if metadata else None,
            color_space=metadata.colorspace if metadata else None,
            channels=metadata.channels if metadata else None,
            has_alpha=metadata.has_alpha if metadata else None,
            compression_ratio=transform_result.compression_ratio if optimized_url else None,
            processing_status=status,
        )

        try:
            record = self.image_repo.create(new_image)
        except Exception:
            logger.exception(f"Metadata write failed after storing objects; orphaned keys: {stored_keys}")
            return IngestionResult(
                IngestionOutcome.STORED_WITHOUT_METADATA,
                account,
                stored_keys=stored_keys,
                transform=transform_result,
                error=AppError("Failed to save image record"),
            )

        logger.info(f"Image {record.id} stored for account {account.id} ({len(stored_keys)} objects, status {status})")
        return IngestionResult(
            IngestionOutcome.STORED,
            account,
            image=record,
            stored_keys=stored_keys,
            transform=transform_result,
        )

    def validate(self, data: Optional[bytes], filename: str, content_type: Optional[str], max_bytes: int) -> str:
        """Returns the canonical content type to store the original with."""
        if not data:
            raise ValidationError("No file uploaded")

        declared = (content_type or "").split(";")[0].strip().lower()
        ext = os.path.splitext(filename)[1].lower()
        if declared in self.allowed_types:
            resolved = CANONICAL_TYPES.get(declared, declared)
        elif declared in GENERIC_TYPES and ext in self.allowed_extensions:
            guessed, _ = mimetypes.guess_type(filename)
            resolved = CANONICAL_TYPES.get(guessed, guessed) or "application/octet-stream"
        else:
            logger.info(f"Rejected upload {filename!r} with type {declared!r}")
            raise ValidationError(INVALID_TYPE_MESSAGE)

        if len(data) > max_bytes:
            raise ValidationError(f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB.")
        return resolved

    def resolve_owner(self, owner: OwnerRef) -> AccountDto:
        if owner.account_id:
            account = self.account_repo.get_by_id(owner.account_id)
        elif owner.email:
            account = self.account_repo.get_by_email(owner.email)
        else:
            raise ValidationError("Client email or client ID is required")
        if not account:
            raise NotFoundError("Client not found")
        if not account.is_client:
            raise InvalidRoleError("User is not a client")
        return account

    def _extension_for(self, filename: str, content_type: str) -> str:
        ext = os.path.splitext(filename)[1].lower()
        if ext in self.allowed_extensions:
            return ext
        return mimetypes.guess_extension(content_type) or ".bin"

    def _put_derived(self, data: bytes, key: str) -> Optional[str]:
        try:
            return self.storage.put(data, key, "image/jpeg")
        except StorageError as e:
            logger.warning(f"Storing derived variant {key} failed, continuing without it: {e}")
            return None

from typing import Optional
from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse
import logging

from ..application.security import Principal
from ..application.services.image_service import ImageService
from ..application.services.ingestion_service import IngestionPipeline, IngestionResult, OwnerRef
from ..config import settings
from ..dependencies import (
    get_current_principal,
    get_image_service,
    get_ingestion_pipeline,
    require_admin,
)
from ..schemas.images.image import (
    DeleteImageResponse,
    ImageListResponse,
    ImageOut,
    ImageResponse,
    SignedUrlRequest,
    SignedUrlResponse,
    UpdateImageRequest,
    UploadResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/images", tags=["Images"])


def _read_upload(file: Optional[UploadFile], limit: int) -> Optional[bytes]:
    if file is None:
        return None
    # One byte past the limit is enough to reject oversized files
    return file.file.read(limit + 1)


def _upload_response(result: IngestionResult) -> UploadResponse:
    if not result.ok:
        raise result.error
    return UploadResponse(
        image=ImageOut.from_record(result.image, client_email=result.owner.email, validation=result.validation)
    )


@router.post("/upload", response_model=UploadResponse)
def upload_image(
    file: Optional[UploadFile] = File(None),
    clientEmail: Optional[str] = Form(None),
    clientId: Optional[str] = Form(None),
    principal: Principal = Depends(require_admin),
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline),
):
    """Full ingestion: original plus thumbnail and optimized variants."""
    logger.info(f"Admin {principal.account_id} uploading {file.filename if file else None!r} for {clientEmail or clientId}")
    data = _read_upload(file, settings.MAX_FILE_SIZE)
    result = pipeline.ingest(
        data,
        file.filename if file else None,
        file.content_type if file else None,
        OwnerRef(account_id=clientId, email=clientEmail),
    )
    return _upload_response(result)


@router.post("", response_model=UploadResponse)
def upload_image_direct(
    file: Optional[UploadFile] = File(None),
    clientId: Optional[str] = Form(None),
    principal: Principal = Depends(require_admin),
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline),
):
    """Form upload that stores the original only."""
    data = _read_upload(file, settings.MAX_FORM_UPLOAD_SIZE)
    result = pipeline.ingest(
        data,
        file.filename if file else None,
        file.content_type if file else None,
        OwnerRef(account_id=clientId),
        transform=False,
        max_bytes=settings.MAX_FORM_UPLOAD_SIZE,
    )
    return _upload_response(result)


@router.get("", response_model=ImageListResponse)
def list_images(
    clientId: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    principal: Principal = Depends(get_current_principal),
    images: ImageService = Depends(get_image_service),
):
    limit = max(1, min(limit, 100))
    records = images.list_images(principal, client_id=clientId, limit=limit, offset=max(0, offset))
    return ImageListResponse(images=[ImageOut.from_record(r) for r in records])


@router.post("/signed-url", response_model=SignedUrlResponse)
def create_signed_url(
    body: SignedUrlRequest,
    principal: Principal = Depends(get_current_principal),
    images: ImageService = Depends(get_image_service),
):
    signed = images.signed_url(principal, body.url, settings.SIGNED_URL_TTL)
    return SignedUrlResponse(signedUrl=signed, expiresIn=settings.SIGNED_URL_TTL)


@router.get("/local/{token}")
def download_local(token: str, images: ImageService = Depends(get_image_service)):
    return FileResponse(images.local_download_path(token))


@router.get("/{image_id}", response_model=ImageResponse)
def get_image(
    image_id: str,
    principal: Principal = Depends(get_current_principal),
    images: ImageService = Depends(get_image_service),
):
    return ImageResponse(image=ImageOut.from_record(images.get_image(principal, image_id)))


@router.put("/{image_id}", response_model=ImageResponse)
def update_image(
    image_id: str,
    body: UpdateImageRequest,
    principal: Principal = Depends(get_current_principal),
    images: ImageService = Depends(get_image_service),
):
    record = images.update_image(
        principal,
        image_id,
        title=body.title,
        company_name=body.companyName,
        location=body.location,
        image_type=body.imageType,
    )
    return ImageResponse(image=ImageOut.from_record(record))


@router.delete("/{image_id}", response_model=DeleteImageResponse)
def delete_image(
    image_id: str,
    principal: Principal = Depends(get_current_principal),
    images: ImageService = Depends(get_image_service),
):
    images.delete_image(principal, image_id)
    return DeleteImageResponse(deletedImageId=image_id)

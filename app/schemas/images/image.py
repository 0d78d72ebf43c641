# app/schemas/images/image.py
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from ...application.ports.image_repo import ImageRecord
from ...application.ports.image_transform import ImageValidation


class ValidationReport(BaseModel):
    isValid: bool
    issues: List[str] = []
    recommendations: List[str] = []

    @classmethod
    def from_validation(cls, validation: Optional[ImageValidation]) -> Optional["ValidationReport"]:
        if validation is None:
            return None
        return cls(
            isValid=validation.is_valid,
            issues=list(validation.issues),
            recommendations=list(validation.recommendations),
        )


class ImageMetadataOut(BaseModel):
    originalFileName: Optional[str] = None
    fileName: Optional[str] = None
    fileSize: Optional[int] = None
    mimeType: Optional[str] = None
    dimensions: Optional[str] = None
    format: Optional[str] = None
    colorSpace: Optional[str] = None
    channels: Optional[int] = None
    hasAlpha: Optional[bool] = None
    compressionRatio: Optional[float] = None
    processingStatus: str = "completed"


class ImageOut(BaseModel):
    id: str
    url: str
    thumbnailUrl: Optional[str] = None
    optimizedUrl: Optional[str] = None
    clientId: str
    clientEmail: Optional[str] = None
    imageType: str = "NDVI"
    title: Optional[str] = None
    companyName: Optional[str] = None
    location: Optional[str] = None
    createdAt: datetime
    metadata: ImageMetadataOut
    validation: Optional[ValidationReport] = None

    @classmethod
    def from_record(cls, record: ImageRecord, client_email: Optional[str] = None,
                    validation: Optional[ImageValidation] = None) -> "ImageOut":
        return cls(
            id=record.id,
            url=record.url,
            thumbnailUrl=record.thumbnail_url,
            optimizedUrl=record.optimized_url,
            clientId=record.account_id,
            clientEmail=client_email,
            imageType=record.image_type,
            title=record.title,
            companyName=record.company_name,
            location=record.location,
            createdAt=record.created_at,
            metadata=ImageMetadataOut(
                originalFileName=record.original_filename,
                fileName=record.file_name,
                fileSize=record.file_size,
                mimeType=record.mime_type,
                dimensions=record.dimensions,
                format=record.format,
                colorSpace=record.color_space,
                channels=record.channels,
                hasAlpha=record.has_alpha,
                compressionRatio=record.compression_ratio,
                processingStatus=record.processing_status,
            ),
            validation=ValidationReport.from_validation(validation),
        )


class UploadResponse(BaseModel):
    success: bool = True
    message: str = "Image uploaded successfully"
    image: ImageOut


class ImageResponse(BaseModel):
    success: bool = True
    image: ImageOut


class ImageListResponse(BaseModel):
    success: bool = True
    images: List[ImageOut]


class UpdateImageRequest(BaseModel):
    title: Optional[str] = None
    companyName: Optional[str] = None
    location: Optional[str] = None
    imageType: Optional[str] = None


class DeleteImageResponse(BaseModel):
    success: bool = True
    message: str = "Image deleted successfully"
    deletedImageId: str


class SignedUrlRequest(BaseModel):
    url: Optional[str] = None


class SignedUrlResponse(BaseModel):
    success: bool = True
    signedUrl: str
    expiresIn: int

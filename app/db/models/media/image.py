# app/db/models/media/image.py
from typing import Optional, TYPE_CHECKING
from enum import Enum
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime
import uuid

if TYPE_CHECKING:
    from ..users.account import Account


class ProcessingStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Image(SQLModel, table=True):
    __tablename__ = "images"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    account_id: str = Field(foreign_key="accounts.id", index=True)

    # Stored variants; url (original) is always set
    url: str = Field(max_length=1024)
    thumbnail_url: Optional[str] = Field(max_length=1024, default=None)
    optimized_url: Optional[str] = Field(max_length=1024, default=None)
    storage_key: Optional[str] = Field(max_length=512, default=None)
    thumbnail_key: Optional[str] = Field(max_length=512, default=None)
    optimized_key: Optional[str] = Field(max_length=512, default=None)

    original_filename: Optional[str] = Field(max_length=255, default=None)
    file_name: Optional[str] = Field(max_length=255, default=None)
    file_size: Optional[int] = None
    mime_type: Optional[str] = Field(max_length=100, default=None)

    width: Optional[int] = None
    height: Optional[int] = None
    format: Optional[str] = Field(max_length=20, default=None)
    color_space: Optional[str] = Field(max_length=20, default=None)
    channels: Optional[int] = None
    has_alpha: Optional[bool] = None
    compression_ratio: Optional[float] = None
    processing_status: ProcessingStatus = Field(default=ProcessingStatus.COMPLETED)

    image_type: str = Field(max_length=20, default="NDVI")
    title: Optional[str] = Field(max_length=255, default=None)
    company_name: Optional[str] = Field(max_length=255, default=None)
    location: Optional[str] = Field(max_length=255, default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)

    account: Optional["Account"] = Relationship(back_populates="images")

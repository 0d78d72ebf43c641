from typing import List, Optional
from dataclasses import dataclass
from datetime import datetime


@dataclass
class ImageRecord:
    id: str
    account_id: str
    url: str
    created_at: datetime
    thumbnail_url: Optional[str] = None
    optimized_url: Optional[str] = None
    storage_key: Optional[str] = None
    thumbnail_key: Optional[str] = None
    optimized_key: Optional[str] = None
    original_filename: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    format: Optional[str] = None
    color_space: Optional[str] = None
    channels: Optional[int] = None
    has_alpha: Optional[bool] = None
    compression_ratio: Optional[float] = None
    processing_status: str = "completed"
    image_type: str = "NDVI"
    title: Optional[str] = None
    company_name: Optional[str] = None
    location: Optional[str] = None

    @property
    def dimensions(self) -> Optional[str]:
        if self.width is None or self.height is None:
            return None
        return f"{self.width}x{self.height}"

    @property
    def object_keys(self) -> List[str]:
        return [k for k in (self.storage_key, self.thumbnail_key, self.optimized_key) if k]


@dataclass
class NewImage:
    account_id: str
    url: str
    storage_key: str
    thumbnail_url: Optional[str] = None
    optimized_url: Optional[str] = None
    thumbnail_key: Optional[str] = None
    optimized_key: Optional[str] = None
    original_filename: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    format: Optional[str] = None
    color_space: Optional[str] = None
    channels: Optional[int] = None
    has_alpha: Optional[bool] = None
    compression_ratio: Optional[float] = None
    processing_status: str = "completed"


class ImageRepository:
    def create(self, image: NewImage) -> ImageRecord:
        ...

    def get(self, image_id: str) -> Optional[ImageRecord]:
        ...

    def find_by_url(self, url: str) -> Optional[ImageRecord]:
        ...

    def list_for_account(self, account_id: str, limit: Optional[int] = None, offset: int = 0) -> List[ImageRecord]:
        ...

    def list_all(self, limit: int = 50, offset: int = 0) -> List[ImageRecord]:
        ...

    def update_details(self, image_id: str, title: Optional[str], company_name: Optional[str], location: Optional[str], image_type: Optional[str]) -> Optional[ImageRecord]:
        ...

    def delete(self, image_id: str) -> bool:
        ...

    def count_for_account(self, account_id: str) -> int:
        ...

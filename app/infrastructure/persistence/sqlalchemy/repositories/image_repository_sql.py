from typing import List, Optional
from sqlalchemy import func
from sqlmodel import Session, select

from .....db.models import Image, ProcessingStatus
from .....application.ports.image_repo import ImageRepository, ImageRecord, NewImage


class SqlImageRepository(ImageRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_record(self, image: Image) -> ImageRecord:
        return ImageRecord(
            id=image.id,
            account_id=image.account_id,
            url=image.url,
            created_at=image.created_at,
            thumbnail_url=image.thumbnail_url,
            optimized_url=image.optimized_url,
            storage_key=image.storage_key,
            thumbnail_key=image.thumbnail_key,
            optimized_key=image.optimized_key,
            original_filename=image.original_filename,
            file_name=image.file_name,
            file_size=image.file_size,
            mime_type=image.mime_type,
            width=image.width,
            height=image.height,
            format=image.format,
            color_space=image.color_space,
            channels=image.channels,
            has_alpha=image.has_alpha,
            compression_ratio=image.compression_ratio,
            processing_status=ProcessingStatus(image.processing_status).value,
            image_type=image.image_type,
            title=image.title,
            company_name=image.company_name,
            location=image.location,
        )

    def create(self, image: NewImage) -> ImageRecord:
        row = Image(
            account_id=image.account_id,
            url=image.url,
            storage_key=image.storage_key,
            thumbnail_url=image.thumbnail_url,
            optimized_url=image.optimized_url,
            thumbnail_key=image.thumbnail_key,
            optimized_key=image.optimized_key,
            original_filename=image.original_filename,
            file_name=image.file_name,
            file_size=image.file_size,
            mime_type=image.mime_type,
            width=image.width,
            height=image.height,
            format=image.format,
            color_space=image.color_space,
            channels=image.channels,
            has_alpha=image.has_alpha,
            compression_ratio=image.compression_ratio,
            processing_status=ProcessingStatus(image.processing_status),
        )
        try:
            self.session.add(row)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(row)
        return self._to_record(row)

    def get(self, image_id: str) -> Optional[ImageRecord]:
        row = self.session.get(Image, image_id)
        return self._to_record(row) if row else None

    def find_by_url(self, url: str) -> Optional[ImageRecord]:
        row = self.session.exec(
            select(Image).where(
                (Image.url == url) | (Image.thumbnail_url == url) | (Image.optimized_url == url)
            )
        ).first()
        return self._to_record(row) if row else None

    def list_for_account(self, account_id: str, limit: Optional[int] = None, offset: int = 0) -> List[ImageRecord]:
        query = select(Image).where(Image.account_id == account_id).order_by(Image.created_at.desc()).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        rows = self.session.exec(query).all()
        return [self._to_record(r) for r in rows]

    def list_all(self, limit: int = 50, offset: int = 0) -> List[ImageRecord]:
        rows = self.session.exec(
            select(Image).order_by(Image.created_at.desc()).offset(offset).limit(limit)
        ).all()
        return [self._to_record(r) for r in rows]

    def update_details(self, image_id: str, title: Optional[str], company_name: Optional[str], location: Optional[str], image_type: Optional[str]) -> Optional[ImageRecord]:
        row = self.session.get(Image, image_id)
        if not row:
            return None
        if title is not None:
            row.title = title
        if company_name is not None:
            row.company_name = company_name
        if location is not None:
            row.location = location
        if image_type is not None:
            row.image_type = image_type
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return self._to_record(row)

    def delete(self, image_id: str) -> bool:
        row = self.session.get(Image, image_id)
        if not row:
            return False
        self.session.delete(row)
        self.session.commit()
        return True

    def count_for_account(self, account_id: str) -> int:
        return self.session.exec(
            select(func.count()).select_from(Image).where(Image.account_id == account_id)
        ).one()

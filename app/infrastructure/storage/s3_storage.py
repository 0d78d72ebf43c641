# app/infrastructure/storage/s3_storage.py
import logging
from typing import Optional
from urllib.parse import unquote, urlparse

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ...application.ports.storage_repo import StorageAdapter
from ...exceptions import StorageError

logger = logging.getLogger(__name__)


class S3StorageAdapter(StorageAdapter):
    """S3-compatible object store (DigitalOcean Spaces, MinIO, AWS S3)."""

    backend_name = "s3"

    def __init__(self, bucket: str, endpoint: str, region: str, access_key: str, secret_key: str,
                 client=None, cache_control: str = "max-age=31536000") -> None:
        self.bucket = bucket
        self.endpoint = endpoint.rstrip("/")
        self.cache_control = cache_control
        self.client = client or boto3.client(
            "s3",
            endpoint_url=self.endpoint,
            region_name=region,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            config=Config(signature_version="s3v4", s3={"addressing_style": "virtual"}),
        )

    def public_url(self, key: str) -> str:
        return f"{self.endpoint}/{self.bucket}/{key}"

    def put(self, data: bytes, key: str, content_type: str) -> str:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                ACL="public-read",
                CacheControl=self.cache_control,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Upload of {key} to bucket {self.bucket} failed: {e}")
            raise StorageError("Failed to upload file to storage") from e
        url = self.public_url(key)
        logger.info(f"Uploaded {len(data)} bytes to {url}")
        return url

    def signed_get(self, url: str, ttl_seconds: int) -> str:
        key = self.key_from_url(url)
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=ttl_seconds,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error generating signed URL for {key}: {e}")
            raise StorageError("Failed to generate signed URL") from e

    def delete(self, key: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error deleting {key} from bucket {self.bucket}: {e}")
            raise StorageError("Failed to delete file from storage") from e

    def key_from_url(self, url: str) -> str:
        """Accepts both ``{endpoint}/{bucket}/{key}`` and ``https://{bucket}.{host}/{key}``."""
        parsed = urlparse(url)
        path = unquote(parsed.path).lstrip("/")
        key: Optional[str] = None
        if path.startswith(f"{self.bucket}/"):
            key = path[len(self.bucket) + 1:]
        elif (parsed.hostname or "").startswith(f"{self.bucket}."):
            key = path
        if not key:
            raise StorageError(f"Unable to extract key from URL: {url}")
        return key

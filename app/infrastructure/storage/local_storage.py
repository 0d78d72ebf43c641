import os
import logging
from datetime import datetime, timedelta
from urllib.parse import unquote, urlparse

import jwt

from ...application.ports.storage_repo import StorageAdapter
from ...exceptions import AuthError, NotFoundError, StorageError

logger = logging.getLogger(__name__)


class LocalStorageAdapter(StorageAdapter):
    """Filesystem fallback used when no object store is configured.

    Files land under ``upload_dir`` and are served from ``/uploads``. Signed
    URLs are short-lived JWTs resolved by ``/api/images/local/{token}``.
    """

    backend_name = "local"

    def __init__(self, upload_dir: str, base_url: str, secret_key: str, algorithm: str = "HS256") -> None:
        self.upload_dir = upload_dir
        self.base_url = base_url.rstrip("/")
        self.secret_key = secret_key
        self.algorithm = algorithm
        try:
            os.makedirs(self.upload_dir, exist_ok=True)
        except PermissionError:
            # Fallback to temp dir in restricted environments
            self.upload_dir = "/tmp/uploads"
            os.makedirs(self.upload_dir, exist_ok=True)

    def path_for(self, key: str) -> str:
        root = os.path.abspath(self.upload_dir)
        path = os.path.abspath(os.path.join(root, key))
        if not path.startswith(root + os.sep):
            raise StorageError(f"Invalid storage key: {key}")
        return path

    def put(self, data: bytes, key: str, content_type: str) -> str:
        path = self.path_for(key)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            logger.error(f"Error saving {key} locally: {e}")
            raise StorageError("Failed to save file to local storage") from e
        return f"{self.base_url}/uploads/{key}"

    def signed_get(self, url: str, ttl_seconds: int) -> str:
        key = self.key_from_url(url)
        payload = {
            "key": key,
            "type": "download",
            "exp": datetime.utcnow() + timedelta(seconds=ttl_seconds),
        }
        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        return f"{self.base_url}/api/images/local/{token}"

    def resolve_signed_token(self, token: str) -> str:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.InvalidTokenError:
            raise AuthError("Invalid or expired link")
        if payload.get("type") != "download" or not payload.get("key"):
            raise AuthError("Invalid or expired link")
        path = self.path_for(payload["key"])
        if not os.path.exists(path):
            raise NotFoundError("File not found")
        return path

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            if os.path.exists(path):
                os.remove(path)
        except OSError as e:
            logger.error(f"Error deleting {key}: {e}")
            raise StorageError("Failed to delete file from local storage") from e

    def key_from_url(self, url: str) -> str:
        path = unquote(urlparse(url).path)
        marker = "/uploads/"
        idx = path.find(marker)
        if idx < 0 or not path[idx + len(marker):]:
            raise StorageError(f"Unable to extract key from URL: {url}")
        return path[idx + len(marker):]


class DisabledStorageAdapter(StorageAdapter):
    backend_name = "disabled"

    def _fail(self, *args, **kwargs):
        raise StorageError("Object storage is not configured")

    put = _fail
    signed_get = _fail
    delete = _fail
    key_from_url = _fail

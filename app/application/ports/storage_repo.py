from typing import Protocol
import uuid


class StorageAdapter(Protocol):
    backend_name: str

    def put(self, data: bytes, key: str, content_type: str) -> str:
        ...

    def signed_get(self, url: str, ttl_seconds: int) -> str:
        ...

    def delete(self, key: str) -> None:
        ...

    def key_from_url(self, url: str) -> str:
        ...


def build_object_key(purpose: str, account_id: str, ext: str) -> str:
    """Keys look like ``{purpose}/{accountId}/{randomId}.{ext}``."""
    ext = ext.lower().lstrip(".") or "bin"
    return f"{purpose}/{account_id}/{uuid.uuid4().hex}.{ext}"

"""In-memory blob store for development and tests."""

from uuid import uuid4

from storefront.storage.port import BlobStore


class FakeBlobStore(BlobStore):
    base_url = "https://blobs.local"

    def __init__(self):
        self.objects: dict[str, bytes] = {}

    def put(self, content: bytes, filename: str, folder: str) -> dict:
        key = f"{folder.strip('/')}/{uuid4().hex[:12]}-{filename}"
        self.objects[key] = content
        return {"url": f"{self.base_url}/{key}", "key": key}

    def delete(self, key: str) -> None:
        self.objects.pop(key, None)

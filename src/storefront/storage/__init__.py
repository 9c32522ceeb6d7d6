"""Blob store registry: file storage behind a port.

Uses the in-memory adapter unless ``BLOB_STORE_ADAPTER`` names another one.
"""

import base64
import binascii
import os

from protean.exceptions import ValidationError

from storefront.storage.port import BlobStore

_blob_store: BlobStore | None = None


def get_blob_store() -> BlobStore:
    """Return the configured blob store (singleton)."""
    global _blob_store
    if _blob_store is None:
        adapter = os.environ.get("BLOB_STORE_ADAPTER", "fake")
        if adapter == "fake":
            from storefront.storage.fake import FakeBlobStore

            _blob_store = FakeBlobStore()
        else:
            raise ValueError(f"Unknown blob store adapter: {adapter}")
    return _blob_store


def reset_blob_store() -> None:
    """Drop the singleton (useful for testing)."""
    global _blob_store
    _blob_store = None


def decode_upload(content: str, field: str = "content") -> bytes:
    """Decode a base64 upload body, reporting bad input against ``field``."""
    try:
        return base64.b64decode(content, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError({field: ["Image content must be base64 encoded"]}) from None

"""Blob store port: abstract interface for file storage."""

from abc import ABC, abstractmethod


class BlobStore(ABC):
    @abstractmethod
    def put(self, content: bytes, filename: str, folder: str) -> dict:
        """Store a file.

        Returns:
            dict with keys: url, key
        """
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a stored file. Deleting an unknown key is not an error."""
        ...

from typing import Protocol


class BlobStorePort(Protocol):
    def upload(self, bucket: str, path: str, data: bytes) -> str:
        """Store bytes and return the stored path."""
        ...

    def public_url(self, bucket: str, path: str) -> str:
        """Publicly fetchable URL for a stored path."""
        ...

    def delete(self, bucket: str, path: str) -> bool:
        """Remove a stored path. Returns False if it was not there."""
        ...

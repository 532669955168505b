import os
from pathlib import Path


class LocalBlobStore:
    """Filesystem-backed blob store; buckets are sub-directories of base_path."""

    def __init__(self, base_path: str, base_url: str = "/media"):
        self.base_path = Path(base_path).resolve()
        self.base_url = base_url.rstrip("/")
        if not self.base_path.exists():
            os.makedirs(self.base_path, exist_ok=True)

    def _safe_path(self, bucket: str, path: str) -> Path:
        root = (self.base_path / bucket).resolve()
        target = (root / path).resolve()
        # Prevent traversal out of the bucket
        if not target.is_relative_to(root):
            raise ValueError(f"Path traversal attempt detected: {path}")
        return target

    def upload(self, bucket: str, path: str, data: bytes) -> str:
        target = self._safe_path(bucket, path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "wb") as f:
            f.write(data)
        return str(target.relative_to(self.base_path / bucket))

    def read(self, bucket: str, path: str) -> bytes:
        """Raises FileNotFoundError."""
        target = self._safe_path(bucket, path)
        if not target.exists():
            raise FileNotFoundError(f"File not found: {bucket}/{path}")
        with open(target, "rb") as f:
            return f.read()

    def delete(self, bucket: str, path: str) -> bool:
        target = self._safe_path(bucket, path)
        if not target.exists():
            return False
        target.unlink()
        return True

    def public_url(self, bucket: str, path: str) -> str:
        self._safe_path(bucket, path)
        return f"{self.base_url}/{bucket}/{path}"

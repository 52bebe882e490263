from pathlib import Path, PurePosixPath
from typing import Optional

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


class BlobStorage:
    """Key/value blob store on the local filesystem.

    Keys are slash-separated relative paths (``profile-pictures/<user id>``).
    Download URLs point at the ``/files`` route of this service.
    """

    def __init__(self, root: Optional[str] = None, public_base_url: Optional[str] = None):
        self.root = Path(root or settings.blob_storage_dir).resolve()
        self.public_base_url = (public_base_url or settings.public_base_url).rstrip("/")

    def _path_for(self, key: str) -> Path:
        parts = PurePosixPath(key).parts
        if not parts or any(part in ("..", "/") for part in parts):
            raise ValueError(f"Invalid blob key: {key!r}")
        path = self.root.joinpath(*parts)
        if self.root not in path.resolve().parents:
            raise ValueError(f"Invalid blob key: {key!r}")
        return path

    def upload(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        path = self._path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        path.with_name(path.name + ".content-type").write_text(content_type, encoding="utf-8")
        logger.info("Blob stored", key=key, size=len(data))

    def download_url(self, key: str) -> str:
        self._path_for(key)
        return f"{self.public_base_url}/files/{key}"

    def open(self, key: str) -> Optional[tuple]:
        """Return (path, content type) for a stored blob, or None"""
        path = self._path_for(key)
        if not path.is_file():
            return None
        type_file = path.with_name(path.name + ".content-type")
        content_type = type_file.read_text(encoding="utf-8") if type_file.exists() else "application/octet-stream"
        return path, content_type


def get_blob_storage() -> BlobStorage:
    return BlobStorage()

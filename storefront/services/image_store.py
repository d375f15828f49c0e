"""Product image storage on the local filesystem, served as static files."""

import logging
import re
import time
from pathlib import Path

from storefront.config import IMAGE_BASE_URL, IMAGE_DIR

logger = logging.getLogger(__name__)


class ImageStore:
    def __init__(self, directory: str = IMAGE_DIR, base_url: str = IMAGE_BASE_URL):
        self.directory = Path(directory)
        self.base_url = base_url.rstrip("/")

    def _file_name(self, original_name: str, prefix: str) -> str:
        safe_name = re.sub(r"[^A-Za-z0-9._-]", "_", Path(original_name or "image").name)
        return f"{prefix}_{int(time.time() * 1000)}_{safe_name}"

    def save(self, original_name: str, data: bytes, prefix: str = "prod") -> str:
        """Store image bytes and return the public URL."""
        self.directory.mkdir(parents=True, exist_ok=True)
        file_name = self._file_name(original_name, prefix)
        (self.directory / file_name).write_bytes(data)
        logger.info(f"Stored image {file_name}")
        return f"{self.base_url}/{file_name}"

    def remove(self, url: str | None) -> bool:
        if not url:
            return False
        path = self.directory / url.rsplit("/", 1)[-1]
        if not path.is_file():
            return False
        path.unlink()
        logger.info(f"Removed image {path.name}")
        return True

"""
Local filesystem photo storage.

Writes uploaded photos below a configurable directory, grouped by category,
and returns a URL-style reference under a configurable prefix. Remote object
stores plug in by implementing the same PhotoUploader interface.

Write protocol:
1. Write bytes to {name}.tmp in the category directory
2. Atomic rename to the final name
3. Return {base_url}/{category}/{name}
"""

import os
import re
import secrets
from pathlib import Path
from typing import Union

from backend.src.services.collaborators import PhotoFile, PhotoUploader
from backend.src.services.exceptions import UploadFailedError
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")

# Categories become directory names
CATEGORY_PATTERN = re.compile(r"^[a-z0-9_-]{1,50}$")

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".heic"}
MAX_PHOTO_BYTES = 10 * 1024 * 1024  # 10MB


class PhotoStorageService(PhotoUploader):
    """
    PhotoUploader backed by a local directory.

    Usage:
        >>> storage = PhotoStorageService("data/photos", "/media/photos")
        >>> storage.upload(PhotoFile("a.jpg", b"..."), "event_photo")
        '/media/photos/event_photo/3f9c...e1.jpg'
    """

    def __init__(self, base_dir: Union[str, Path], base_url: str):
        """
        Initialize photo storage.

        Args:
            base_dir: Root directory for stored photos
            base_url: Prefix of the references handed back to callers
        """
        self.base_dir = Path(base_dir)
        self.base_url = base_url.rstrip("/")

    def upload(self, file: PhotoFile, category: str) -> str:
        """
        Store a photo and return its reference.

        Raises:
            UploadFailedError: If the file is rejected or cannot be written
        """
        if not CATEGORY_PATTERN.match(category):
            raise UploadFailedError(f"Invalid photo category '{category}'")
        if not file.content:
            raise UploadFailedError(f"Photo '{file.filename}' is empty")
        if len(file.content) > MAX_PHOTO_BYTES:
            raise UploadFailedError(
                f"Photo '{file.filename}' exceeds {MAX_PHOTO_BYTES // (1024 * 1024)}MB"
            )
        if file.extension not in ALLOWED_EXTENSIONS:
            raise UploadFailedError(
                f"Unsupported photo type '{file.extension or file.filename}'"
            )

        name = f"{secrets.token_hex(16)}{file.extension}"
        target_dir = self.base_dir / category
        target = target_dir / name
        temp_path = target_dir / f"{name}.tmp"

        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "wb") as f:
                f.write(file.content)
            os.replace(temp_path, target)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            logger.error(
                "Photo upload failed",
                extra={"photo_filename": file.filename, "category": category, "error": str(e)},
            )
            raise UploadFailedError(f"Could not store photo '{file.filename}': {e}") from e

        stored_ref = f"{self.base_url}/{category}/{name}"
        logger.debug(f"Stored photo {file.filename} as {stored_ref}")
        return stored_ref

    def delete(self, stored_ref: str) -> None:
        """Remove a stored photo; unknown references are ignored."""
        prefix = f"{self.base_url}/"
        if not stored_ref.startswith(prefix):
            logger.warning(f"Ignoring delete of foreign photo reference {stored_ref}")
            return

        path = (self.base_dir / stored_ref[len(prefix):]).resolve()
        if self.base_dir.resolve() not in path.parents:
            logger.warning(f"Ignoring delete outside photo storage: {stored_ref}")
            return

        path.unlink(missing_ok=True)
        logger.info(f"Deleted photo {stored_ref}")

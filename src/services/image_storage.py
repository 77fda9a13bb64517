"""Image validation and upload to Supabase storage buckets."""

import logging
import os
import uuid
from typing import Any

from fastapi import UploadFile

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
}
ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}


class ImageRejectedError(Exception):
    """Raised when an uploaded image is not accepted."""


class ImageStore:
    """Uploads images to one storage bucket.

    A batch upload is all or nothing: if any upload fails, the images
    already stored for that batch are removed again.
    """

    def __init__(self, client: Any, bucket: str, max_bytes: int, prefix: str) -> None:
        self.client = client
        self.bucket_name = bucket
        self.max_bytes = max_bytes
        self.prefix = prefix

    @property
    def bucket(self) -> Any:
        return self.client.storage.from_(self.bucket_name)

    async def validate(self, file: UploadFile) -> bytes:
        """Validate one uploaded image and return its content.

        Raises:
            ImageRejectedError: If type, extension or size is not allowed.
        """
        extension = os.path.splitext(file.filename or "")[1].lower()
        if file.content_type not in ALLOWED_IMAGE_TYPES or extension not in ALLOWED_EXTENSIONS:
            raise ImageRejectedError("Only image files are allowed (jpeg, jpg, png, gif)")

        content = await file.read()
        if len(content) > self.max_bytes:
            raise ImageRejectedError(
                f"Image too large: {len(content) / (1024 * 1024):.1f} MB. "
                f"Maximum size: {self.max_bytes / (1024 * 1024):.0f} MB"
            )
        return content

    def upload(self, content: bytes, file: UploadFile) -> str:
        """Upload one image and return its storage path."""
        extension = os.path.splitext(file.filename or "")[1].lower() or ALLOWED_IMAGE_TYPES[file.content_type]
        storage_path = f"{self.prefix}-{uuid.uuid4().hex}{extension}"
        self.bucket.upload(
            path=storage_path,
            file=content,
            file_options={"content-type": file.content_type},
        )
        return storage_path

    def upload_all(self, contents: list[bytes], files: list[UploadFile]) -> list[str]:
        """Upload a batch of validated images.

        Returns:
            list[str]: Storage paths, in the order given.

        Raises:
            Exception: Whatever the storage client raised, after the images
                uploaded earlier in the batch were removed.
        """
        paths: list[str] = []
        try:
            for content, file in zip(contents, files):
                paths.append(self.upload(content, file))
        except Exception:
            logger.error("Upload to %s failed after %d of %d images", self.bucket_name, len(paths), len(files))
            self.remove(paths)
            raise
        return paths

    def public_url(self, path: str) -> str:
        return self.bucket.get_public_url(path)

    def remove(self, paths: list[str]) -> None:
        """Delete stored images. Failures are logged, not raised."""
        if not paths:
            return
        try:
            self.bucket.remove(paths)
            logger.info("Removed %d orphaned images from %s", len(paths), self.bucket_name)
        except Exception as e:
            logger.error("Could not remove images %s from %s: %s", paths, self.bucket_name, str(e))

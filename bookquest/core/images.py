import logging
import os
import uuid
from typing import Optional

from fastapi import Request
from starlette.datastructures import UploadFile

from ..config import settings

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}


class ImageStore:
    """
    Saves uploaded book covers to disk and hands back the URL they are served from.

    Any failure is logged and reported as "no image" so the surrounding
    book write still goes through.
    """

    def __init__(self, upload_dir: str, base_url: str):
        self.upload_dir = upload_dir
        self.base_url = base_url.rstrip("/")

    async def save(self, file: UploadFile) -> Optional[str]:
        file_ext = os.path.splitext(file.filename or "")[1].lower()
        if file_ext not in IMAGE_EXTENSIONS:
            logger.warning("Ignoring upload %r: unsupported image type", file.filename)
            return None

        saved_filename = f"{uuid.uuid4()}{file_ext}"
        file_path = os.path.join(self.upload_dir, saved_filename)
        try:
            os.makedirs(self.upload_dir, exist_ok=True)
            content = await file.read()
            with open(file_path, "wb") as f:
                f.write(content)
        except OSError as e:
            logger.error("Error saving image %r: %s", file.filename, e)
            return None
        return f"{self.base_url}/{saved_filename}"

    def discard(self, url: str):
        """Remove a cover saved by this store, e.g. when the book write is rejected."""
        file_path = os.path.join(self.upload_dir, url.rsplit("/", 1)[-1])
        try:
            os.remove(file_path)
        except OSError as e:
            logger.warning("Could not remove image %s: %s", file_path, e)


def get_image_store(request: Request) -> ImageStore:
    base_url = str(request.base_url).rstrip("/") + settings.MEDIA_URL
    return ImageStore(settings.UPLOAD_DIR, base_url)

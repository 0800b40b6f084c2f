# wasatext/services/storage_service.py
import logging
import os
from pathlib import Path

from fastapi import UploadFile

from wasatext.config import get_settings
from wasatext.errors import InternalError, InvalidInputError
from wasatext.models.mixins import generate_uuid

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}
CHUNK_SIZE = 64 * 1024


class StorageService:
    """Stores uploaded photos on disk and hands back their public URL.

    The rest of the application only ever sees the returned URL.
    """

    def __init__(self, upload_dir: str = None, url_prefix: str = None, max_bytes: int = None):
        settings = get_settings()
        self.upload_dir = Path(upload_dir or settings.UPLOAD_DIR)
        self.url_prefix = (url_prefix or settings.UPLOAD_URL_PREFIX).rstrip("/")
        self.max_bytes = max_bytes or settings.MAX_UPLOAD_MB * 1024 * 1024

    def ensure_directories(self) -> None:
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def save_image(self, upload: UploadFile, category: str) -> str:
        """
        Validate and write an uploaded image under <upload_dir>/<category>/.

        Returns:
            The URL the stored file is served from.
        """
        extension = ALLOWED_IMAGE_TYPES.get(upload.content_type or "")
        if not extension:
            raise InvalidInputError("Photo must be a JPEG, PNG, GIF or WebP image")

        target_dir = self.upload_dir / category
        target_dir.mkdir(parents=True, exist_ok=True)
        filename = f"{generate_uuid()}{extension}"
        target = target_dir / filename

        written = 0
        try:
            with open(target, "wb") as out:
                while True:
                    chunk = upload.file.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_bytes:
                        break
                    out.write(chunk)
        except OSError as e:
            logger.error(f"Failed to save upload {filename}: {str(e)}")
            target.unlink(missing_ok=True)
            raise InternalError("Failed to save photo")

        if written > self.max_bytes or written == 0:
            os.remove(target)
            if written == 0:
                raise InvalidInputError("Photo is empty")
            raise InvalidInputError(f"Photo exceeds {self.max_bytes // (1024 * 1024)} MB")

        logger.info(f"Stored {category} photo {filename} ({written} bytes)")
        return f"{self.url_prefix}/{category}/{filename}"

    def delete(self, url: str) -> bool:
        """Remove a file previously returned by save_image. Returns False if it is not ours or already gone."""
        prefix = f"{self.url_prefix}/"
        if not url or not url.startswith(prefix):
            return False
        target = (self.upload_dir / url[len(prefix):]).resolve()
        if self.upload_dir.resolve() not in target.parents:
            return False
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Failed to remove stored photo {url}: {str(e)}")
            return False
        logger.info(f"Removed stored photo {url}")
        return True

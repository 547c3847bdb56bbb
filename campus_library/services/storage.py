from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path
from typing import Optional

from fastapi import Depends, HTTPException, UploadFile, status

from campus_library.core.errors import validation_error
from campus_library.core.settings import AppSettings, get_app_settings

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


class CoverStorage:
    """Stores uploaded book covers on local disk and hands back public URLs."""

    def __init__(self, settings: AppSettings) -> None:
        self.root = Path(settings.cover_storage_dir)
        self.url_prefix = settings.cover_url_prefix
        self.max_bytes = settings.cover_max_bytes

    def save(self, upload: UploadFile) -> str:
        extension = _EXTENSIONS.get((upload.content_type or "").lower())
        if extension is None:
            raise validation_error(image="The image must be a JPEG, PNG, GIF or WebP file.")

        content = upload.file.read(self.max_bytes + 1)
        if len(content) > self.max_bytes:
            raise validation_error(image=f"The image may not be larger than {self.max_bytes} bytes.")
        if not content:
            raise validation_error(image="The image file is empty.")

        filename = f"{uuid.uuid4().hex}{extension}"
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            (self.root / filename).write_bytes(content)
        except OSError as exc:
            logger.error("Could not store cover %s: %s", filename, exc)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Unable to store the uploaded image.",
            ) from exc
        return f"{self.url_prefix}/{filename}"

    def delete(self, url: Optional[str]) -> bool:
        """Remove a cover previously returned by :meth:`save`; other URLs are left alone."""
        if not url or not url.startswith(f"{self.url_prefix}/"):
            return False
        name = os.path.basename(url)
        path = self.root / name
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.warning("Could not delete cover %s: %s", path, exc)
            return False
        return True


def get_cover_storage(settings: AppSettings = Depends(get_app_settings)) -> CoverStorage:
    return CoverStorage(settings)

"""
Media store client - uploads receipts, lesson videos and profile images.

Files are POSTed as multipart form data to an upload endpoint (a
Cloudinary-style `.../upload` URL). The endpoint answers with JSON holding
the public URL of the stored file, which is all the rest of the system
keeps.
"""

import os
from typing import Optional

import httpx

from myanedu.config import (
    MEDIA_UPLOAD_URL, MEDIA_API_KEY, MEDIA_UPLOAD_PRESET,
    MEDIA_FOLDER, MEDIA_TIMEOUT_SECONDS,
)
from myanedu.errors import StorageError, ValidationError
from myanedu.logging_config import get_logger, log_with_context

logger = get_logger("media")

ALLOWED_EXTENSIONS = {".mp4", ".mkv", ".mov", ".avi", ".jpg", ".jpeg", ".png"}
MAX_UPLOAD_BYTES = 100 * 1024 * 1024


class MediaStore:
    """Thin httpx client for the media host's upload endpoint."""

    def __init__(self, upload_url: str = MEDIA_UPLOAD_URL, api_key: str = MEDIA_API_KEY,
                 upload_preset: str = MEDIA_UPLOAD_PRESET, folder: str = MEDIA_FOLDER,
                 timeout: float = MEDIA_TIMEOUT_SECONDS,
                 transport: Optional[httpx.BaseTransport] = None):
        self.upload_url = upload_url
        self.api_key = api_key
        self.upload_preset = upload_preset
        self.folder = folder
        self.timeout = timeout
        self.transport = transport

    def upload(self, content: bytes, filename: str,
               content_type: str = "application/octet-stream") -> str:
        """
        Upload a file and return its public URL.

        Raises:
            ValidationError: empty file, disallowed extension or too large
            StorageError: media host unreachable, error status, or no URL returned
        """
        extension = os.path.splitext(filename or "")[1].lower()
        if not content:
            raise ValidationError("Uploaded file is empty", filename=filename)
        if extension not in ALLOWED_EXTENSIONS:
            raise ValidationError("File type {} is not allowed".format(extension or "(none)"),
                                  filename=filename)
        if len(content) > MAX_UPLOAD_BYTES:
            raise ValidationError("File exceeds the 100MB upload limit", filename=filename)
        if not self.upload_url:
            raise StorageError("Media store is not configured")

        data = {"folder": self.folder}
        if self.upload_preset:
            data["upload_preset"] = self.upload_preset
        if self.api_key:
            data["api_key"] = self.api_key

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.post(self.upload_url, data=data,
                                   files={"file": (filename, content, content_type)})
                resp.raise_for_status()
                body = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            log_with_context(logger, "ERROR", "Media upload failed: {}".format(str(e)),
                             extra_data={"filename": filename, "size": len(content)})
            raise StorageError("Media upload failed", filename=filename) from e

        url = body.get("secure_url") or body.get("url")
        if not url:
            raise StorageError("Media store response did not include a URL", filename=filename)

        log_with_context(logger, "INFO", "Uploaded {} to media store".format(filename),
                         extra_data={"size": len(content), "url": url})
        return url


def get_media_store() -> MediaStore:
    """FastAPI dependency returning the configured media store."""
    return MediaStore()

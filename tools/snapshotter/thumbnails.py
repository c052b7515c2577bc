"""Attachment thumbnails – download, shrink and inline images as data URIs."""

from __future__ import annotations

import asyncio
import base64
import io
import logging
import os

from PIL import Image

from .api import ClickUpAPI
from .config import ThumbnailConfig

logger = logging.getLogger("snapshotter.thumbnails")

# Map file extension → MIME type
MIME_MAP: dict[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".jpe": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".ico": "image/x-icon",
    ".heic": "image/heic",
    ".svg": "image/svg+xml",
    ".webm": "video/webm",
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".csv": "text/csv",
    ".zip": "application/zip",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def guess_mime(file_name: str | None) -> str | None:
    """Infer a MIME type from a file name's extension, or None if unknown."""
    if not isinstance(file_name, str) or not file_name:
        return None
    ext = os.path.splitext(file_name)[1].lower()
    if not ext and "." not in file_name:
        # bare extension such as ClickUp's ``"extension": "png"``
        ext = f".{file_name.lower()}"
    return MIME_MAP.get(ext)


def is_image(file_name: str | None) -> bool:
    mime = guess_mime(file_name)
    return mime is not None and mime.startswith("image/")


def attachment_file_name(attachment: dict) -> str | None:
    """The declared name used for classification: title, else extension."""
    title = attachment.get("title")
    if not isinstance(title, str):
        title = None
    if title and os.path.splitext(title)[1]:
        return title
    extension = attachment.get("extension")
    return extension if isinstance(extension, str) and extension else title


class Thumbnailer:
    """Turn image attachments into bounded-size JPEG data URIs."""

    def __init__(self, api: ClickUpAPI, cfg: ThumbnailConfig | None = None) -> None:
        self.api = api
        self.cfg = cfg or ThumbnailConfig()

    # ── encoding ────────────────────────────────────────────────

    def make_thumbnail(self, data: bytes) -> bytes | None:
        """Shrink ``data`` to fit inside max_size×max_size and re-encode.

        Returns the encoded bytes, or None if the image cannot be decoded.
        Never upscales and never crops.
        """
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.thumbnail((self.cfg.max_size, self.cfg.max_size), Image.Resampling.LANCZOS)
                if img.mode != "RGB":
                    img = img.convert("RGB")
                buf = io.BytesIO()
                img.save(buf, format=self.cfg.codec.upper(), quality=self.cfg.quality)
                return buf.getvalue()
        except Exception as exc:
            logger.warning("Thumbnail generation failed: %s", exc)
            return None

    def to_data_uri(self, payload: bytes) -> str:
        encoded = base64.b64encode(payload).decode("ascii")
        return f"data:image/{self.cfg.codec};base64,{encoded}"

    # ── attachments ─────────────────────────────────────────────

    async def thumbnail(self, attachment: dict) -> str | None:
        """Return a data URI for an image attachment, or None.

        Non-image attachments are rejected before any download is attempted.
        """
        file_name = attachment_file_name(attachment)
        if not is_image(file_name):
            logger.debug("Skipping non-image attachment %s (%s)", attachment.get("id"), file_name)
            return None
        url = attachment.get("url")
        if not url:
            return None

        try:
            data = await self.api.download_attachment(url)
            if not data:
                logger.warning("Failed to download attachment %s", attachment.get("id"))
                return None
            payload = await asyncio.to_thread(self.make_thumbnail, data)
        except Exception as exc:
            logger.warning("Error processing attachment %s: %s", attachment.get("id"), exc)
            return None
        if payload is None:
            logger.warning("Could not thumbnail attachment %s (%s)", attachment.get("id"), file_name)
            return None
        return self.to_data_uri(payload)

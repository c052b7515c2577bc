"""Task inclusion rule and the allow-listed task shape written to snapshots."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, TypedDict

from .clock import MonthWindow
from .thumbnails import Thumbnailer, attachment_file_name, is_image

logger = logging.getLogger("snapshotter.tasks")

TERMINAL_STATUS = "complete"


class Attachment(TypedDict):
    id: str
    fileName: str
    thumbnail: str


class Task(TypedDict):
    id: str
    name: str
    status: str
    date_created: str | None
    date_updated: str | None
    date_status_changed: str | None
    listName: str
    attachments: list[Attachment]


TASK_FIELDS: tuple[str, ...] = tuple(Task.__annotations__)


def normalize_status(label: Any) -> str:
    """Status identity: trimmed and lower-cased."""
    return str(label or "").strip().lower()


def status_label(raw_task: dict) -> str:
    """The display label of a raw task's status (``{"status": {"status": ...}}``)."""
    status = raw_task.get("status")
    if isinstance(status, dict):
        status = status.get("status")
    return str(status or "")


def parse_ms(value: Any) -> int | None:
    """Parse a ClickUp millisecond timestamp string; None if absent or garbage."""
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def is_included(status: str, updated_at: int | None, window: MonthWindow) -> bool:
    """Decide whether a task belongs in the snapshot for ``window``.

    Completed tasks are kept only when they were last updated inside the
    month; every other status is always kept regardless of its dates.
    """
    if normalize_status(status) != TERMINAL_STATUS:
        return True
    return updated_at is not None and window.contains_ms(updated_at)


def include_raw_task(raw_task: dict, window: MonthWindow) -> bool:
    return is_included(status_label(raw_task), parse_ms(raw_task.get("date_updated")), window)


def sanitize_task(raw_task: dict, list_name: str, attachments: list[Attachment] | None = None) -> Task:
    """Project a raw API task onto the allow-listed snapshot shape.

    ``attachments`` are the already-thumbnailed images; when omitted the
    task's own ``attachments`` entries are kept only if they already have
    the sanitized shape.
    """
    if attachments is None:
        attachments = [
            Attachment(id=a["id"], fileName=a["fileName"], thumbnail=a["thumbnail"])
            for a in raw_task.get("attachments") or []
            if isinstance(a, dict) and {"id", "fileName", "thumbnail"} <= a.keys()
        ]
    return Task(
        id=raw_task.get("id"),
        name=raw_task.get("name"),
        status=status_label(raw_task),
        date_created=raw_task.get("date_created"),
        date_updated=raw_task.get("date_updated"),
        date_status_changed=raw_task.get("date_status_changed") or None,
        listName=list_name,
        attachments=list(attachments),
    )


def attachment_title(attachment: dict) -> str | None:
    title = attachment.get("title")
    return title if isinstance(title, str) and title else attachment_file_name(attachment)


async def select_attachments(raw_attachments: list[dict], thumbnailer: Thumbnailer) -> list[Attachment]:
    """Thumbnail the image attachments of a task, preserving source order.

    Non-image entries never reach the thumbnailer; images that fail to
    download or decode are dropped.
    """
    images = [
        a for a in raw_attachments
        if isinstance(a, dict) and is_image(attachment_file_name(a))
    ]
    thumbs = await asyncio.gather(*(thumbnailer.thumbnail(a) for a in images))
    kept = [
        Attachment(id=a.get("id"), fileName=attachment_title(a), thumbnail=thumb)
        for a, thumb in zip(images, thumbs)
        if thumb
    ]
    if len(kept) < len(images):
        logger.debug("Dropped %d of %d image attachments", len(images) - len(kept), len(images))
    return kept

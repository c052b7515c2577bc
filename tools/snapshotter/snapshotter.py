"""Core snapshot logic – orchestrates Backfill → API → Filter → Thumbnails → Store."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from rich.progress import Progress, SpinnerColumn, BarColumn, TextColumn, TimeElapsedColumn

from .api import ClickUpAPI
from .assembler import ListSection, Snapshot, SnapshotAssembler, build_section
from .backfill import Backfiller
from .clock import Clock, MonthWindow, utc_now
from .config import SnapshotterConfig
from .storage import SnapshotStore
from .tasks import Task, include_raw_task, sanitize_task, select_attachments
from .thumbnails import Thumbnailer

logger = logging.getLogger("snapshotter.core")


class Snapshotter:
    """Builds the current month's snapshot of a ClickUp space."""

    def __init__(
        self,
        cfg: SnapshotterConfig | None = None,
        *,
        clock: Clock = utc_now,
        api: ClickUpAPI | None = None,
        backfiller: Backfiller | None = None,
    ) -> None:
        self.cfg = cfg or SnapshotterConfig()
        self.clock = clock
        self.api = api or ClickUpAPI(self.cfg.clickup)
        self.store = SnapshotStore(self.cfg.snapshots_dir)
        self.thumbnailer = Thumbnailer(self.api, self.cfg.thumbnails)
        self.backfiller = backfiller or Backfiller(self.store, self.cfg.mirror, clock=clock)
        # Stats
        self.stats = {
            "lists": 0, "tasks": 0, "skipped": 0, "attachments": 0,
            "errors": 0, "restored": 0, "missing": 0,
        }

    # ── tasks ────────────────────────────────────────────────────

    async def process_task(self, raw_task: dict, list_name: str) -> Task | None:
        """Fetch a task's detail, thumbnail its images and sanitize it.

        Returns None when the detail cannot be fetched.
        """
        task_id = raw_task.get("id")
        details = await self.api.fetch_task_details(task_id)
        if details is None:
            logger.warning("Skipping task %s in %s: no task details", task_id, list_name)
            self.stats["skipped"] += 1
            return None

        attachments = []
        if self.cfg.generate_thumbnails:
            attachments = await select_attachments(details.get("attachments") or [], self.thumbnailer)
            self.stats["attachments"] += len(attachments)
        return sanitize_task(raw_task, list_name, attachments)

    # ── lists ────────────────────────────────────────────────────

    async def build_list(self, lst: dict, window: MonthWindow) -> ListSection | None:
        """Fetch one list's statuses and tasks and fold them into a section.

        Tasks are processed concurrently but the section keeps API order.
        """
        list_id, list_name = lst.get("id"), lst.get("name")
        details = await self.api.fetch_list_details(list_id)
        if details is None:
            logger.warning("Skipping list %s (%s): no list details", list_name, list_id)
            return None
        statuses = details.get("statuses") or []

        raw_tasks = await self.api.fetch_tasks_for_list_raw(list_id)
        included = [t for t in raw_tasks if include_raw_task(t, window)]
        self.stats["skipped"] += len(raw_tasks) - len(included)
        logger.debug("List %s: %d/%d tasks pass the %s window", list_name, len(included), len(raw_tasks), window.key)

        semaphore = asyncio.Semaphore(self.cfg.concurrency)

        async def bounded(raw_task: dict) -> Task | None:
            async with semaphore:
                try:
                    return await self.process_task(raw_task, list_name)
                except Exception as exc:
                    logger.error("Error processing task %s in %s: %s", raw_task.get("id"), list_name, exc)
                    self.stats["errors"] += 1
                    return None

        results = await asyncio.gather(*(bounded(t) for t in included))
        tasks = [t for t in results if t is not None]
        return build_section(list_id, list_name, statuses, tasks)

    # ── snapshot ─────────────────────────────────────────────────

    async def build_snapshot(self) -> Snapshot:
        """Assemble the in-memory snapshot for the month containing ``clock()``."""
        window = MonthWindow.containing(self.clock())
        assembler = SnapshotAssembler(window.key)
        lists = await self.api.fetch_lists()
        if lists and isinstance(lists[0].get("space"), dict):
            logger.info("Space %s: %d lists", lists[0]["space"].get("name", "?"), len(lists))

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            disable=not self.cfg.show_progress,
        ) as progress:
            bar = progress.add_task(f"{window.key} lists", total=len(lists))
            for lst in lists:
                try:
                    section = await self.build_list(lst, window)
                except Exception as exc:
                    logger.error("Error processing list %s: %s", lst.get("name"), exc)
                    self.stats["errors"] += 1
                    section = None
                if section is not None and assembler.add_section(section):
                    self.stats["lists"] += 1
                    self.stats["tasks"] += len(section.tasks)
                progress.advance(bar)

        return assembler.build()

    async def backfill(self) -> list[str]:
        """Best-effort recovery of missing past months; never raises."""
        try:
            restored = await self.backfiller.run()
        except Exception as exc:
            logger.error("Backfill aborted: %s", exc)
            self.stats["errors"] += 1
            restored = []
        self.stats["restored"] = self.backfiller.stats["restored"]
        self.stats["missing"] = self.backfiller.stats["missing"]
        return restored

    async def run(self) -> Path:
        """Full pipeline: provision the directory, backfill, build and write.

        Raises OSError if the snapshot directory cannot be created.
        """
        self.store.ensure_directory()
        if self.cfg.backfill:
            await self.backfill()
        snapshot = await self.build_snapshot()
        path = self.store.write_snapshot(snapshot["date"], snapshot)
        logger.info(
            "Snapshot %s: %d lists, %d tasks", snapshot["date"], self.stats["lists"], self.stats["tasks"]
        )
        return path

    # ── lifecycle ────────────────────────────────────────────────

    async def close(self) -> None:
        await self.api.close()
        await self.backfiller.close()

    async def __aenter__(self) -> Snapshotter:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

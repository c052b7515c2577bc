"""Recover missing past-month snapshots from a published mirror."""

from __future__ import annotations

import logging

import httpx

from .api import USER_AGENT, fetch
from .clock import Clock, MonthWindow, trailing_months, utc_now
from .config import MirrorConfig
from .storage import SnapshotStore

logger = logging.getLogger("snapshotter.backfill")


class Backfiller:
    """Fill gaps in the trailing window of months before the current one.

    Past-month files are write-once: a month that already exists locally is
    never fetched again, let alone overwritten.
    """

    def __init__(
        self,
        store: SnapshotStore,
        cfg: MirrorConfig | None = None,
        *,
        clock: Clock = utc_now,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.store = store
        self.cfg = cfg or MirrorConfig.from_env()
        self.clock = clock
        self._client = client or httpx.AsyncClient(
            timeout=self.cfg.timeout,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        )
        self.stats = {"present": 0, "restored": 0, "missing": 0, "errors": 0}

    def target_months(self) -> list[MonthWindow]:
        return trailing_months(self.clock(), self.cfg.months)

    async def backfill_month(self, month: MonthWindow) -> bool:
        """Try to restore one month.  Returns True if a file was written."""
        if self.store.exists(month.key):
            logger.debug("Snapshot %s already present, skipping", month.key)
            self.stats["present"] += 1
            return False

        url = self.cfg.url_for(month.year, month.month)
        result = await fetch(self._client, url)
        if result.not_found:
            logger.debug("No published snapshot for %s", month.key)
            self.stats["missing"] += 1
            return False
        if not result.ok:
            logger.warning("Backfill of %s from %s failed: %s", month.key, url, result.reason)
            self.stats["errors"] += 1
            return False
        if not isinstance(result.value, dict):
            logger.warning("Backfill of %s: unexpected body from %s", month.key, url)
            self.stats["errors"] += 1
            return False

        try:
            self.store.write_snapshot(month.key, result.value)
        except OSError as exc:
            logger.warning("Could not write backfilled snapshot %s: %s", month.key, exc)
            self.stats["errors"] += 1
            return False
        logger.info("Restored snapshot %s from mirror", month.key)
        self.stats["restored"] += 1
        return True

    async def run(self) -> list[str]:
        """Backfill every month in the window; returns the months restored."""
        restored = []
        for month in self.target_months():
            if await self.backfill_month(month):
                restored.append(month.key)
        return restored

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> Backfiller:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

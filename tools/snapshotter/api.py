"""ClickUp API client – single-attempt, never-raising async HTTP fetcher."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from .config import ClickUpConfig

logger = logging.getLogger("snapshotter.api")

USER_AGENT = "clickup-snapshotter/1.0"


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one HTTP call: either a value or the reason it failed."""
    ok: bool
    value: Any = None
    status_code: int | None = None
    reason: str | None = None

    @classmethod
    def success(cls, value: Any, status_code: int = 200) -> FetchResult:
        return cls(ok=True, value=value, status_code=status_code)

    @classmethod
    def failure(cls, reason: str, status_code: int | None = None) -> FetchResult:
        return cls(ok=False, status_code=status_code, reason=reason)

    @property
    def not_found(self) -> bool:
        return self.status_code == 404


async def fetch(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    as_json: bool = True,
) -> FetchResult:
    """GET ``url`` once.  Bad URLs, transport errors, timeouts and non-2xx become failures."""
    try:
        resp = await client.get(url, params=params, headers=headers)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        return FetchResult.failure(f"{type(exc).__name__}: {exc}")
    if not resp.is_success:
        return FetchResult.failure(f"HTTP {resp.status_code}", resp.status_code)
    if not as_json:
        return FetchResult.success(resp.content, resp.status_code)
    try:
        return FetchResult.success(resp.json(), resp.status_code)
    except ValueError as exc:
        return FetchResult.failure(f"malformed JSON: {exc}", resp.status_code)


class ClickUpAPI:
    """Thin wrapper around the ClickUp v2 REST API.

    Every public method returns an empty/None sentinel instead of raising, and
    does not touch the network at all when the token or space id is missing.
    """

    def __init__(self, cfg: ClickUpConfig | None = None, client: httpx.AsyncClient | None = None) -> None:
        self.cfg = cfg or ClickUpConfig.from_env()
        self._client = client or httpx.AsyncClient(
            timeout=self.cfg.timeout,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        )
        if not self.cfg.is_configured:
            logger.warning("PERSONAL_ACCESS_TOKEN or CLICKUP_SPACE_ID not set; API calls return no data")

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        if not self.cfg.is_configured:
            return None
        url = f"{self.cfg.api_base}{path}"
        result = await fetch(self._client, url, params=params, headers=self.cfg.headers)
        if not result.ok:
            logger.warning("GET %s failed: %s", url, result.reason)
            return None
        return result.value

    # ── public API ───────────────────────────────────────────────

    async def fetch_lists(self) -> list[dict]:
        """Fetch all (folderless) lists of the configured space."""
        data = await self._get_json(f"/space/{self.cfg.space_id}/list")
        if not isinstance(data, dict):
            return []
        return [lst for lst in data.get("lists") or [] if isinstance(lst, dict)]

    async def fetch_list_details(self, list_id: str) -> dict | None:
        """Fetch a list including its ordered status definitions."""
        data = await self._get_json(f"/list/{list_id}")
        return data if isinstance(data, dict) else None

    async def fetch_tasks_for_list_raw(self, list_id: str) -> list[dict]:
        """Fetch every task of a list, closed ones included, with status-change dates."""
        data = await self._get_json(
            f"/list/{list_id}/task",
            params={"include": "date_status_changed", "include_closed": "true"},
        )
        if not isinstance(data, dict):
            return []
        return [task for task in data.get("tasks") or [] if isinstance(task, dict)]

    async def fetch_task_details(self, task_id: str) -> dict | None:
        """Fetch one task including its attachments."""
        data = await self._get_json(f"/task/{task_id}", params={"include": "attachments"})
        return data if isinstance(data, dict) else None

    async def download_attachment(self, url: str) -> bytes | None:
        """Download an attachment's raw bytes with the same credential header."""
        result = await fetch(self._client, url, headers=self.cfg.headers, as_json=False)
        if not result.ok:
            logger.warning("Attachment download %s failed: %s", url, result.reason)
            return None
        return result.value

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ClickUpAPI:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

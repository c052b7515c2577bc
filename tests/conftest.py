"""Shared fixtures – fake ClickUp/mirror servers, fixed clock, in-memory images."""

from __future__ import annotations

import io
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest
from PIL import Image

from snapshotter.api import ClickUpAPI
from snapshotter.backfill import Backfiller
from snapshotter.config import ClickUpConfig, MirrorConfig, SnapshotterConfig
from snapshotter.snapshotter import Snapshotter
from snapshotter.storage import SnapshotStore

API_BASE = "https://api.clickup.test/api/v2"
MIRROR_BASE = "https://mirror.test"
NOW = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)


def ms(year: int, month: int, day: int = 1, hour: int = 0) -> str:
    """ClickUp-style millisecond timestamp string."""
    return str(int(datetime(year, month, day, hour, tzinfo=timezone.utc).timestamp() * 1000))


def make_image(width: int = 400, height: int = 200, mode: str = "RGB", fmt: str = "PNG") -> bytes:
    color: Any = (200, 30, 30, 128) if mode == "RGBA" else (200, 30, 30) if mode == "RGB" else 1
    buf = io.BytesIO()
    Image.new(mode, (width, height), color).save(buf, format=fmt)
    return buf.getvalue()


class FakeServer:
    """Route table keyed by URL path, served through httpx.MockTransport.

    A route value may be JSON data, an ``httpx.Response``, an exception to
    raise, or a callable taking the request.  Unknown paths answer 404.
    """

    def __init__(self) -> None:
        self.routes: dict[str, Any] = {}
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"err": "not found"})
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(request)
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(200, json=route)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def mirror() -> FakeServer:
    return FakeServer()


@pytest.fixture
def clickup_cfg() -> ClickUpConfig:
    return ClickUpConfig(api_base=API_BASE, token="pk_test", space_id="S1", timeout=5)


@pytest.fixture
def mirror_cfg() -> MirrorConfig:
    return MirrorConfig(base_url=MIRROR_BASE)


@pytest.fixture
def api(server: FakeServer, clickup_cfg: ClickUpConfig) -> ClickUpAPI:
    return ClickUpAPI(clickup_cfg, client=server.client())


@pytest.fixture
def store(tmp_path: Path) -> SnapshotStore:
    s = SnapshotStore(tmp_path / "snapshots")
    s.ensure_directory()
    return s


@pytest.fixture
def make_snapshotter(
    tmp_path: Path,
    server: FakeServer,
    mirror: FakeServer,
    clickup_cfg: ClickUpConfig,
    mirror_cfg: MirrorConfig,
) -> Callable[..., Snapshotter]:
    def factory(**overrides: Any) -> Snapshotter:
        overrides.setdefault("clickup", clickup_cfg)
        overrides.setdefault("mirror", mirror_cfg)
        overrides.setdefault("snapshots_dir", tmp_path / "snapshots")
        overrides.setdefault("backfill", False)
        cfg = SnapshotterConfig(**overrides)
        clock = lambda: NOW  # noqa: E731
        return Snapshotter(
            cfg,
            clock=clock,
            api=ClickUpAPI(cfg.clickup, client=server.client()),
            backfiller=Backfiller(
                SnapshotStore(cfg.snapshots_dir), cfg.mirror, clock=clock, client=mirror.client()
            ),
        )

    return factory

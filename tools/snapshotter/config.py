"""Configuration and environment settings for the snapshotter."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class ClickUpConfig:
    """ClickUp API configuration.  A missing token or space id disables fetching."""
    api_base: str = "https://api.clickup.com/api/v2"
    token: str = ""
    space_id: str = ""
    timeout: float = 30.0

    @property
    def is_configured(self) -> bool:
        return bool(self.token) and bool(self.space_id)

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": self.token}

    @classmethod
    def from_env(cls) -> ClickUpConfig:
        return cls(
            api_base=os.getenv("CLICKUP_API_BASE", "https://api.clickup.com/api/v2"),
            token=os.getenv("PERSONAL_ACCESS_TOKEN", ""),
            space_id=os.getenv("CLICKUP_SPACE_ID", ""),
            timeout=float(os.getenv("CLICKUP_TIMEOUT", "30")),
        )


@dataclass(frozen=True)
class MirrorConfig:
    """Where previously published snapshots can be recovered from."""
    base_url: str = "http://localhost:3000"
    months: int = 12
    timeout: float = 30.0

    def url_for(self, year: int, month: int) -> str:
        return f"{self.base_url.rstrip('/')}/data/snapshots/{year:04d}-{month:02d}.json"

    @classmethod
    def from_env(cls) -> MirrorConfig:
        return cls(base_url=os.getenv("SNAPSHOT_MIRROR_URL", "http://localhost:3000"))


@dataclass(frozen=True)
class ThumbnailConfig:
    max_size: int = 100  # longest edge, px
    quality: int = 60
    codec: str = "jpeg"


@dataclass
class SnapshotterConfig:
    clickup: ClickUpConfig = field(default_factory=ClickUpConfig.from_env)
    mirror: MirrorConfig = field(default_factory=MirrorConfig.from_env)
    thumbnails: ThumbnailConfig = field(default_factory=ThumbnailConfig)
    snapshots_dir: Path = field(
        default_factory=lambda: Path(os.getenv("SNAPSHOTS_DIR", "src/data/snapshots"))
    )
    backfill: bool = True
    generate_thumbnails: bool = True
    concurrency: int = 4
    show_progress: bool = False

"""Local snapshot directory – one pretty-printed JSON file per month."""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any

logger = logging.getLogger("snapshotter.storage")

MONTH_RE = re.compile(r"^\d{4}-\d{2}$")


class SnapshotStore:
    """Read and write ``{YYYY-MM}.json`` files under a single directory."""

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def ensure_directory(self) -> None:
        """Create the directory tree.  Any failure other than "exists" propagates."""
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, date: str) -> Path:
        return self.directory / f"{date}.json"

    def exists(self, date: str) -> bool:
        return self.path_for(date).is_file()

    def write_snapshot(self, date: str, document: Any) -> Path:
        """Serialize ``document`` with 2-space indentation, replacing any existing file.

        The file is written beside the target and renamed into place, so a
        reader never sees a partial snapshot.
        """
        path = self.path_for(date)
        tmp = path.with_name(f".{path.name}.tmp")
        tmp.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, path)
        logger.info("Snapshot saved to %s", path)
        return path

    def read_snapshot(self, date: str) -> dict:
        return json.loads(self.path_for(date).read_text(encoding="utf-8"))

    def months(self) -> list[str]:
        """Months with a local snapshot file, oldest first."""
        if not self.directory.is_dir():
            return []
        return sorted(
            p.stem for p in self.directory.glob("*.json")
            if p.is_file() and MONTH_RE.match(p.stem)
        )

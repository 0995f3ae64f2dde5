from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path

from transit_fusion.app.ports.output import IScheduleSource
from transit_fusion.app.ports.output.schedule_source import SCHEDULE_FILES


@dataclass(slots=True)
class LocalScheduleSource(IScheduleSource):
    """Reads the static schedule files from a directory.

    Env vars:
      - GTFS_PATH: directory containing stops.txt, routes.txt, trips.txt,
        shapes.txt and route_stops.json (default: data/gtfs)
    """

    base_path: str | Path | None = None

    def _base(self) -> Path:
        value = self.base_path or os.getenv("GTFS_PATH") or "data/gtfs"
        return Path(value)

    async def fetch(self, name: str) -> str:
        if name not in SCHEDULE_FILES:
            raise ValueError(f"Unknown schedule file: {name}")
        path = self._base() / name
        return await asyncio.to_thread(path.read_text, encoding="utf-8")

from __future__ import annotations

import os
from dataclasses import dataclass

import httpx

from transit_fusion.app.ports.output import IScheduleSource


@dataclass(slots=True)
class HttpScheduleSource(IScheduleSource):
    """Fetches the static schedule files relative to a base URL.

    Env vars:
      - GTFS_BASE_URL: URL prefix the file names are appended to
    """

    base_url: str | None = None
    timeout_s: float = 30.0
    transport: httpx.AsyncBaseTransport | None = None

    def __post_init__(self) -> None:
        if self.base_url is None:
            self.base_url = os.getenv("GTFS_BASE_URL")

    async def fetch(self, name: str) -> str:
        if not self.base_url:
            raise RuntimeError("Missing GTFS_BASE_URL")

        url = self.base_url.rstrip("/") + "/" + name
        async with httpx.AsyncClient(
            timeout=self.timeout_s, transport=self.transport
        ) as client:
            resp = await client.get(url)
            resp.raise_for_status()
            resp.encoding = "utf-8"
            return resp.text

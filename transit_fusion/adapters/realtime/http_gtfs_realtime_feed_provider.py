from __future__ import annotations

import os
from dataclasses import dataclass

import httpx

from transit_fusion.adapters.realtime.gtfs_realtime_decoder import decode_feed_message
from transit_fusion.app.ports.output import IRealtimeFeedProvider
from transit_fusion.domain.exceptions import FeedFetchError
from transit_fusion.domain.models.realtime import FeedMessage


def parse_headers(raw: str | None) -> dict[str, str]:
    """Parse 'Key:Value;Key2:Value2' into a header dict, skipping junk parts."""

    raw = (raw or "").strip()
    if not raw:
        return {}
    headers: dict[str, str] = {}
    for part in raw.split(";"):
        part = part.strip()
        if not part or ":" not in part:
            continue
        k, v = part.split(":", 1)
        k = k.strip()
        if k:
            headers[k] = v.strip()
    return headers


@dataclass(slots=True)
class HttpGtfsRealtimeFeedProvider(IRealtimeFeedProvider):
    """Fetches the GTFS-Realtime VehiclePositions and TripUpdates feeds over HTTP.

    Env vars:
      - GTFS_RT_VEHICLE_POSITIONS_URL: URL of the VehiclePositions feed
      - GTFS_RT_TRIP_UPDATES_URL: URL of the TripUpdates feed
      - GTFS_RT_HEADERS: optional headers, as 'Key:Value;Key2:Value2'
      - GTFS_RT_TIMEOUT_S: request timeout (default 10)

    Notes:
      - Each call downloads fresh bytes; there is no cache, the refresh
        interval already bounds upstream traffic.
      - `transport` lets tests plug in `httpx.MockTransport`.
    """

    vehicle_positions_url: str | None = None
    trip_updates_url: str | None = None
    headers_raw: str | None = None
    timeout_s: float = 10.0
    transport: httpx.AsyncBaseTransport | None = None

    def __post_init__(self) -> None:
        if self.vehicle_positions_url is None:
            self.vehicle_positions_url = os.getenv("GTFS_RT_VEHICLE_POSITIONS_URL")
        if self.trip_updates_url is None:
            self.trip_updates_url = os.getenv("GTFS_RT_TRIP_UPDATES_URL")
        if self.headers_raw is None:
            self.headers_raw = os.getenv("GTFS_RT_HEADERS")
        if os.getenv("GTFS_RT_TIMEOUT_S"):
            self.timeout_s = float(os.environ["GTFS_RT_TIMEOUT_S"])

    async def _download(self, url: str | None, label: str) -> bytes:
        if not url:
            raise FeedFetchError(f"{label} feed URL not configured")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_s, transport=self.transport
            ) as client:
                resp = await client.get(url, headers=parse_headers(self.headers_raw))
                resp.raise_for_status()
                return resp.content
        except httpx.HTTPStatusError as exc:
            raise FeedFetchError(
                f"{label} feed returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise FeedFetchError(f"{label} feed download failed: {exc}") from exc

    async def vehicle_positions(self) -> FeedMessage:
        content = await self._download(self.vehicle_positions_url, "Vehicle positions")
        return decode_feed_message(content)

    async def trip_updates(self) -> FeedMessage:
        content = await self._download(self.trip_updates_url, "Trip updates")
        return decode_feed_message(content)

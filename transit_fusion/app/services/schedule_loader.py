from __future__ import annotations

import asyncio
import csv
import io
import json
import logging
from dataclasses import dataclass
from typing import Iterator, Mapping

from transit_fusion.app.ports.output import IScheduleSource
from transit_fusion.app.ports.output.schedule_source import (
    ROUTE_STOPS_FILE,
    ROUTES_FILE,
    SCHEDULE_FILES,
    SHAPES_FILE,
    STOPS_FILE,
    TRIPS_FILE,
)
from transit_fusion.domain.exceptions import ScheduleLoadError
from transit_fusion.domain.models import GeoPoint, Stop
from transit_fusion.domain.models.gtfs import (
    GtfsRoute,
    GtfsTrip,
    SchedulePayloads,
    ScheduleStore,
    ShapePoint,
)
from transit_fusion.domain.models.stop import UNKNOWN_STOP_CODE

logger = logging.getLogger(__name__)


def _field(row: Mapping[str, str | None], name: str) -> str:
    return (row.get(name) or "").strip()


def _iter_rows(text: str) -> Iterator[dict[str, str | None]]:
    # csv.DictReader skips fully blank lines on its own.
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff"), newline=""))
    yield from reader


def _parse_point(raw_lat: str, raw_lon: str) -> GeoPoint | None:
    if not raw_lat or not raw_lon:
        return None
    try:
        return GeoPoint(lat=float(raw_lat), lon=float(raw_lon))
    except ValueError:
        return None


def parse_stop_row(row: Mapping[str, str | None]) -> Stop | None:
    stop_id = _field(row, "stop_id")
    if not stop_id:
        return None
    location = _parse_point(_field(row, "stop_lat"), _field(row, "stop_lon"))
    if location is None:
        return None
    return Stop(
        id=stop_id,
        name=_field(row, "stop_name"),
        location=location,
        code=_field(row, "stop_code") or UNKNOWN_STOP_CODE,
    )


def parse_route_row(row: Mapping[str, str | None]) -> GtfsRoute | None:
    route_id = _field(row, "route_id")
    if not route_id:
        return None
    return GtfsRoute(
        route_id=route_id,
        short_name=_field(row, "route_short_name") or None,
        long_name=_field(row, "route_long_name") or None,
    )


def parse_trip_row(row: Mapping[str, str | None]) -> GtfsTrip | None:
    trip_id = _field(row, "trip_id")
    if not trip_id:
        return None
    return GtfsTrip(
        trip_id=trip_id,
        route_id=_field(row, "route_id") or None,
        headsign=_field(row, "trip_headsign") or None,
        shape_id=_field(row, "shape_id") or None,
    )


def parse_shape_row(
    row: Mapping[str, str | None],
) -> tuple[str, ShapePoint] | None:
    shape_id = _field(row, "shape_id")
    if not shape_id:
        return None
    location = _parse_point(_field(row, "shape_pt_lat"), _field(row, "shape_pt_lon"))
    if location is None:
        return None
    try:
        seq = int(_field(row, "shape_pt_sequence") or 0)
    except ValueError:
        return None
    return shape_id, ShapePoint(sequence=seq, location=location)


def parse_route_stops(text: str) -> dict[str, frozenset[str]]:
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ScheduleLoadError(f"{ROUTE_STOPS_FILE} is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise ScheduleLoadError(f"{ROUTE_STOPS_FILE} must be a JSON object")

    out: dict[str, frozenset[str]] = {}
    for route_name, stop_ids in raw.items():
        if not isinstance(stop_ids, list):
            continue
        out[str(route_name)] = frozenset(str(s) for s in stop_ids)
    return out


def build_schedule_store(payloads: SchedulePayloads) -> ScheduleStore:
    """Parse the five static payloads into a `ScheduleStore`.

    Malformed rows are skipped one by one; only a broken route -> stops JSON
    aborts the whole build.
    """

    stops_by_id: dict[str, Stop] = {}
    for row in _iter_rows(payloads.stops):
        stop = parse_stop_row(row)
        if stop is not None:
            stops_by_id[stop.id] = stop

    routes_by_id: dict[str, GtfsRoute] = {}
    names: set[str] = set()
    for row in _iter_rows(payloads.routes):
        route = parse_route_row(row)
        if route is None:
            continue
        routes_by_id[route.route_id] = route
        if route.short_name:
            names.add(route.short_name)

    trips_by_id: dict[str, GtfsTrip] = {}
    route_destinations: dict[str, str] = {}
    for row in _iter_rows(payloads.trips):
        trip = parse_trip_row(row)
        if trip is None:
            continue
        trips_by_id[trip.trip_id] = trip

        route = routes_by_id.get(trip.route_id or "")
        if route is None or not route.short_name or not trip.headsign:
            continue
        # First trip seen for a line decides its destination.
        route_destinations.setdefault(route.short_name, trip.headsign)

    points_by_shape: dict[str, list[ShapePoint]] = {}
    for row in _iter_rows(payloads.shapes):
        parsed = parse_shape_row(row)
        if parsed is None:
            continue
        shape_id, point = parsed
        points_by_shape.setdefault(shape_id, []).append(point)

    shapes_by_id: dict[str, tuple[ShapePoint, ...]] = {}
    for shape_id, pts in points_by_shape.items():
        pts.sort(key=lambda p: p.sequence)
        shapes_by_id[shape_id] = tuple(pts)

    return ScheduleStore(
        stops_by_id=stops_by_id,
        routes_by_id=routes_by_id,
        trips_by_id=trips_by_id,
        shapes_by_id=shapes_by_id,
        route_stops=parse_route_stops(payloads.route_stops),
        route_destinations=route_destinations,
        route_names=tuple(sorted(names)),
    )


@dataclass(slots=True)
class ScheduleLoader:
    """Fetches all static files concurrently and builds the store.

    Either every file arrives and a complete store is returned, or
    `ScheduleLoadError` is raised and nothing is kept.
    """

    source: IScheduleSource

    async def fetch_payloads(self) -> SchedulePayloads:
        results = await asyncio.gather(
            *(self.source.fetch(name) for name in SCHEDULE_FILES),
            return_exceptions=True,
        )

        missing: list[str] = []
        for name, r in zip(SCHEDULE_FILES, results):
            if isinstance(r, BaseException) and not isinstance(r, Exception):
                raise r
            if isinstance(r, Exception):
                logger.warning("Schedule file %s unavailable: %s", name, r)
                missing.append(name)
        if missing:
            raise ScheduleLoadError(f"Missing GTFS files: {', '.join(missing)}")

        texts = dict(zip(SCHEDULE_FILES, results))
        return SchedulePayloads(
            stops=texts[STOPS_FILE],
            routes=texts[ROUTES_FILE],
            trips=texts[TRIPS_FILE],
            shapes=texts[SHAPES_FILE],
            route_stops=texts[ROUTE_STOPS_FILE],
        )

    async def load(self) -> ScheduleStore:
        payloads = await self.fetch_payloads()
        try:
            store = build_schedule_store(payloads)
        except csv.Error as exc:
            raise ScheduleLoadError(f"Malformed GTFS table: {exc}") from exc
        logger.info(
            "Schedule loaded: %d stops, %d routes, %d trips, %d shapes",
            len(store.stops_by_id),
            len(store.route_names),
            len(store.trips_by_id),
            len(store.shapes_by_id),
        )
        return store

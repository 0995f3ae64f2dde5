from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable

from transit_fusion.app.services.realtime_state import RealtimeState
from transit_fusion.domain.algorithms.route_names import (
    natural_sort_key,
    normalize_route_filter,
    route_name_equals,
    route_name_startswith,
)
from transit_fusion.domain.models.arrivals import LineArrival, StopArrivalsSummary
from transit_fusion.domain.models.geo import BoundingBox
from transit_fusion.domain.models.gtfs import ScheduleStore, ShapePoint
from transit_fusion.domain.models.realtime import ArrivalPrediction, VehicleSnapshot
from transit_fusion.domain.models.stop import Stop

ARRIVAL_WINDOW_MIN = 60
AUTOCOMPLETE_LIMIT = 10


def minutes_until(arrival_at: datetime, now: datetime) -> int:
    # Half-up rounding, matching what riders see on stop displays.
    return math.floor((arrival_at - now).total_seconds() / 60.0 + 0.5)


def _prediction_route_name(
    prediction: ArrivalPrediction, store: ScheduleStore
) -> str | None:
    route = store.find_route(prediction.route_id)
    if route is not None and route.short_name:
        return route.short_name
    return prediction.route_id


def _line_sort_key(line: LineArrival) -> tuple:
    if line.minutes is None:
        return (1, 0, natural_sort_key(line.route_name))
    return (0, line.minutes, natural_sort_key(line.route_name))


@dataclass(slots=True)
class RealtimeViewService:
    """Read-only queries backing the realtime map view.

    Every query reads the current schedule store and snapshot once and is a
    pure function of them. Before the schedule is loaded all queries return
    empty results instead of raising.
    """

    state: RealtimeState

    def route_names(self) -> tuple[str, ...]:
        store = self.state.schedule
        return store.route_names if store is not None else ()

    def autocomplete(
        self, prefix: str, *, limit: int = AUTOCOMPLETE_LIMIT
    ) -> tuple[str, ...]:
        prefix = normalize_route_filter(prefix)
        if not prefix or limit <= 0:
            return ()
        matches = [n for n in self.route_names() if route_name_startswith(n, prefix)]
        return tuple(matches[:limit])

    def vehicles_by_route(self, route_filter: str = "") -> tuple[VehicleSnapshot, ...]:
        vehicles = self.state.snapshot.vehicles
        route_filter = normalize_route_filter(route_filter)
        if not route_filter:
            return vehicles
        return tuple(v for v in vehicles if route_name_equals(v.route_name, route_filter))

    def stops_for(
        self, route_filter: str = "", viewport: BoundingBox | None = None
    ) -> tuple[Stop, ...]:
        """Stops to draw: inside the viewport, on a line, or all of them.

        A viewport takes precedence over the route filter. An unknown line
        yields no stops.
        """

        store = self.state.schedule
        if store is None:
            return ()

        stops = store.stops_by_id.values()
        if viewport is not None:
            return tuple(s for s in stops if viewport.contains(s.location))

        route_filter = normalize_route_filter(route_filter)
        if not route_filter:
            return tuple(stops)

        stop_ids = store.find_route_stops(route_filter)
        if stop_ids is None:
            return ()
        return tuple(s for s in stops if s.id in stop_ids)

    def shapes_for_vehicles(
        self, vehicles: Iterable[VehicleSnapshot]
    ) -> tuple[tuple[str, tuple[ShapePoint, ...]], ...]:
        store = self.state.schedule
        if store is None:
            return ()

        out: list[tuple[str, tuple[ShapePoint, ...]]] = []
        seen: set[str] = set()
        for v in vehicles:
            if not v.shape_id or v.shape_id in seen:
                continue
            seen.add(v.shape_id)
            pts = store.shapes_by_id.get(v.shape_id)
            if pts:
                out.append((v.shape_id, pts))
        return tuple(out)

    def lines_for_stop(self, stop_id: str) -> tuple[str, ...]:
        store = self.state.schedule
        if store is None:
            return ()
        return tuple(
            name for name, stop_ids in store.route_stops.items() if stop_id in stop_ids
        )

    def arrivals_and_lines_for_stop(
        self, stop_id: str, *, now: datetime | None = None
    ) -> StopArrivalsSummary:
        store = self.state.schedule
        if store is None:
            return StopArrivalsSummary(stop_id=stop_id)

        now = now or datetime.now(timezone.utc)
        stop = store.find_stop(stop_id)
        predictions = self.state.snapshot.predictions_by_stop.get(stop_id, ())

        best_minutes: dict[str, int] = {}
        live_headsign: dict[str, str] = {}
        for p in predictions:
            name = _prediction_route_name(p, store)
            if not name:
                continue

            trip = store.find_trip(p.trip_id)
            if trip is not None and trip.headsign and name not in live_headsign:
                live_headsign[name] = trip.headsign

            if p.arrival_at is None:
                continue
            minutes = minutes_until(p.arrival_at, now)
            if not (0 <= minutes < ARRIVAL_WINDOW_MIN):
                continue
            if name not in best_minutes or minutes < best_minutes[name]:
                best_minutes[name] = minutes
                if trip is not None and trip.headsign:
                    live_headsign[name] = trip.headsign

        lines = [
            LineArrival(
                route_name=name,
                minutes=best_minutes.get(name),
                destination=live_headsign.get(name) or store.route_destinations.get(name),
            )
            for name in self.lines_for_stop(stop_id)
        ]
        lines.sort(key=_line_sort_key)

        return StopArrivalsSummary(
            stop_id=stop_id,
            name=stop.name if stop is not None else None,
            code=stop.code if stop is not None else None,
            lines=tuple(lines),
        )

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from .geo import GeoPoint
from .stop import Stop


@dataclass(frozen=True, slots=True)
class GtfsRoute:
    route_id: str
    short_name: str | None = None
    long_name: str | None = None


@dataclass(frozen=True, slots=True)
class GtfsTrip:
    trip_id: str
    route_id: str | None = None
    headsign: str | None = None
    shape_id: str | None = None


@dataclass(frozen=True, slots=True)
class ShapePoint:
    sequence: int
    location: GeoPoint


@dataclass(frozen=True, slots=True)
class SchedulePayloads:
    """Raw static files as fetched, before any parsing."""

    stops: str
    routes: str
    trips: str
    shapes: str
    route_stops: str


@dataclass(frozen=True, slots=True)
class ScheduleStore:
    """In-memory indices over the static schedule.

    Built once per session and never mutated afterwards. Route short names are
    stored with their original case; callers do case-insensitive matching.
    """

    stops_by_id: Mapping[str, Stop]
    routes_by_id: Mapping[str, GtfsRoute]
    trips_by_id: Mapping[str, GtfsTrip]
    shapes_by_id: Mapping[str, tuple[ShapePoint, ...]]
    route_stops: Mapping[str, frozenset[str]]
    route_destinations: Mapping[str, str]
    route_names: tuple[str, ...] = field(default_factory=tuple)

    def find_stop(self, stop_id: str | None) -> Stop | None:
        if not stop_id:
            return None
        return self.stops_by_id.get(stop_id)

    def find_route(self, route_id: str | None) -> GtfsRoute | None:
        if not route_id:
            return None
        return self.routes_by_id.get(route_id)

    def find_trip(self, trip_id: str | None) -> GtfsTrip | None:
        if not trip_id:
            return None
        return self.trips_by_id.get(trip_id)

    def find_route_stops(self, route_name: str) -> frozenset[str] | None:
        """Case-insensitive exact lookup in the route -> stops index."""

        exact = self.route_stops.get(route_name)
        if exact is not None:
            return exact
        key = route_name.casefold()
        for name, stop_ids in self.route_stops.items():
            if name.casefold() == key:
                return stop_ids
        return None

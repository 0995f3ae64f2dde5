from __future__ import annotations

from abc import ABC, abstractmethod

STOPS_FILE = "stops.txt"
ROUTES_FILE = "routes.txt"
TRIPS_FILE = "trips.txt"
SHAPES_FILE = "shapes.txt"
ROUTE_STOPS_FILE = "route_stops.json"

SCHEDULE_FILES = (STOPS_FILE, ROUTES_FILE, TRIPS_FILE, SHAPES_FILE, ROUTE_STOPS_FILE)


class IScheduleSource(ABC):
    """Port for fetching the raw static schedule files."""

    @abstractmethod
    async def fetch(self, name: str) -> str:
        """Return the UTF-8 text of one schedule file, raising if unavailable."""

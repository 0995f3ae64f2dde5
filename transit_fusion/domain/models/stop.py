from __future__ import annotations

from dataclasses import dataclass

from .geo import GeoPoint

UNKNOWN_STOP_CODE = "N/D"


@dataclass(frozen=True, slots=True)
class Stop:
    id: str
    name: str
    location: GeoPoint
    code: str = UNKNOWN_STOP_CODE

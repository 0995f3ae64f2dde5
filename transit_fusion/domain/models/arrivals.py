from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LineArrival:
    """One line serving a stop, as shown in the stop popup.

    `minutes` is None when no usable realtime estimate exists; 0 means the
    vehicle is arriving now.
    """

    route_name: str
    minutes: int | None = None
    destination: str | None = None


@dataclass(frozen=True, slots=True)
class StopArrivalsSummary:
    stop_id: str
    name: str | None = None
    code: str | None = None
    lines: tuple[LineArrival, ...] = ()

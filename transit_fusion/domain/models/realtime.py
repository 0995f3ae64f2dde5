from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Mapping

# Applied by the fusion step when a feed record does not resolve against the
# static schedule.
UNKNOWN_ROUTE_ID = "N/D"
UNKNOWN_ROUTE_NAME = "N/D"
UNKNOWN_HEADSIGN = "Unknown destination"


def epoch_to_datetime(seconds: int | None) -> datetime | None:
    """UTC datetime for epoch seconds, or None when datetime cannot hold it.

    Feeds occasionally send milliseconds where seconds are expected.
    """

    if seconds is None:
        return None
    try:
        return datetime.fromtimestamp(int(seconds), tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


# Decoded GTFS-Realtime records. Timestamps are epoch seconds as plain ints
# (uint64/int64 on the wire).


@dataclass(frozen=True, slots=True)
class FeedHeader:
    gtfs_realtime_version: str
    timestamp: int | None = None


@dataclass(frozen=True, slots=True)
class TripDescriptor:
    trip_id: str | None = None
    route_id: str | None = None


@dataclass(frozen=True, slots=True)
class VehicleDescriptor:
    id: str | None = None
    label: str | None = None


@dataclass(frozen=True, slots=True)
class Position:
    latitude: float
    longitude: float
    bearing: float | None = None


@dataclass(frozen=True, slots=True)
class VehiclePosition:
    trip: TripDescriptor | None = None
    vehicle: VehicleDescriptor | None = None
    position: Position | None = None
    timestamp: int | None = None


@dataclass(frozen=True, slots=True)
class StopTimeEvent:
    time: int | None = None


@dataclass(frozen=True, slots=True)
class StopTimeUpdate:
    stop_id: str | None = None
    arrival: StopTimeEvent | None = None


@dataclass(frozen=True, slots=True)
class TripUpdate:
    trip: TripDescriptor | None = None
    stop_time_updates: tuple[StopTimeUpdate, ...] = ()


@dataclass(frozen=True, slots=True)
class FeedEntity:
    id: str
    trip_update: TripUpdate | None = None
    vehicle: VehiclePosition | None = None


@dataclass(frozen=True, slots=True)
class FeedMessage:
    header: FeedHeader
    entities: tuple[FeedEntity, ...] = ()


# Fused, display-ready records.


@dataclass(frozen=True, slots=True)
class VehicleSnapshot:
    id: str
    route_id: str
    route_name: str
    headsign: str
    lat: float
    lon: float
    timestamp: int | None = None  # epoch seconds
    shape_id: str | None = None
    trip_id: str | None = None
    bearing: float | None = None

    @property
    def updated_at(self) -> datetime | None:
        return epoch_to_datetime(self.timestamp)


@dataclass(frozen=True, slots=True)
class ArrivalPrediction:
    stop_id: str
    trip_id: str | None
    route_id: str | None
    arrival_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class RealtimeSnapshot:
    """Latest fused state of both realtime feeds.

    The two halves are committed independently and may come from different
    refresh cycles.
    """

    vehicles: tuple[VehicleSnapshot, ...] = ()
    predictions_by_stop: Mapping[str, tuple[ArrivalPrediction, ...]] = field(
        default_factory=dict
    )
    vehicles_updated_at: datetime | None = None
    predictions_updated_at: datetime | None = None
    vehicles_feed_timestamp: int | None = None
    predictions_feed_timestamp: int | None = None

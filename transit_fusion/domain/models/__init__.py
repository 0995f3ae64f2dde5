from .arrivals import LineArrival, StopArrivalsSummary
from .geo import BoundingBox, GeoPoint
from .gtfs import GtfsRoute, GtfsTrip, SchedulePayloads, ScheduleStore, ShapePoint
from .realtime import ArrivalPrediction, RealtimeSnapshot, VehicleSnapshot
from .status import LoadState, LoadStatus
from .stop import Stop

__all__ = [
    "ArrivalPrediction",
    "BoundingBox",
    "GeoPoint",
    "GtfsRoute",
    "GtfsTrip",
    "LineArrival",
    "LoadState",
    "LoadStatus",
    "RealtimeSnapshot",
    "SchedulePayloads",
    "ScheduleStore",
    "ShapePoint",
    "Stop",
    "StopArrivalsSummary",
    "VehicleSnapshot",
]

from __future__ import annotations

from google.protobuf.message import DecodeError
from google.transit import gtfs_realtime_pb2

from transit_fusion.domain.exceptions import FeedDecodeError
from transit_fusion.domain.models.realtime import (
    FeedEntity,
    FeedHeader,
    FeedMessage,
    Position,
    StopTimeEvent,
    StopTimeUpdate,
    TripDescriptor,
    TripUpdate,
    VehicleDescriptor,
    VehiclePosition,
)


def _optional_str(msg, name: str) -> str | None:
    if not msg.HasField(name):
        return None
    return getattr(msg, name) or None


def _optional_int(msg, name: str) -> int | None:
    if not msg.HasField(name):
        return None
    return int(getattr(msg, name))


def _trip_descriptor(msg) -> TripDescriptor:
    return TripDescriptor(
        trip_id=_optional_str(msg, "trip_id"),
        route_id=_optional_str(msg, "route_id"),
    )


def _vehicle_position(msg) -> VehiclePosition:
    position = None
    if msg.HasField("position"):
        pos = msg.position
        position = Position(
            latitude=float(pos.latitude),
            longitude=float(pos.longitude),
            bearing=float(pos.bearing) if pos.HasField("bearing") else None,
        )

    vehicle = None
    if msg.HasField("vehicle"):
        vehicle = VehicleDescriptor(
            id=_optional_str(msg.vehicle, "id"),
            label=_optional_str(msg.vehicle, "label"),
        )

    return VehiclePosition(
        trip=_trip_descriptor(msg.trip) if msg.HasField("trip") else None,
        vehicle=vehicle,
        position=position,
        timestamp=_optional_int(msg, "timestamp"),
    )


def _trip_update(msg) -> TripUpdate:
    updates = tuple(
        StopTimeUpdate(
            stop_id=_optional_str(stu, "stop_id"),
            arrival=(
                StopTimeEvent(time=_optional_int(stu.arrival, "time"))
                if stu.HasField("arrival")
                else None
            ),
        )
        for stu in msg.stop_time_update
    )
    return TripUpdate(
        trip=_trip_descriptor(msg.trip) if msg.HasField("trip") else None,
        stop_time_updates=updates,
    )


def decode_feed_message(content: bytes) -> FeedMessage:
    """Decode a GTFS-Realtime `FeedMessage` into domain records.

    Optional fields missing from an entity come back as None; only a
    structurally broken buffer raises `FeedDecodeError`. The header version is
    carried through untouched.
    """

    feed = gtfs_realtime_pb2.FeedMessage()
    try:
        feed.ParseFromString(content)
    except DecodeError as exc:
        raise FeedDecodeError(f"Malformed GTFS-Realtime payload: {exc}") from exc

    header = FeedHeader(
        gtfs_realtime_version=feed.header.gtfs_realtime_version,
        timestamp=_optional_int(feed.header, "timestamp"),
    )

    entities = tuple(
        FeedEntity(
            id=ent.id,
            trip_update=_trip_update(ent.trip_update)
            if ent.HasField("trip_update")
            else None,
            vehicle=_vehicle_position(ent.vehicle) if ent.HasField("vehicle") else None,
        )
        for ent in feed.entity
    )

    return FeedMessage(header=header, entities=entities)

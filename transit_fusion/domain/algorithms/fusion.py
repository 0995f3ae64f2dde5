from __future__ import annotations

from transit_fusion.domain.models.gtfs import ScheduleStore
from transit_fusion.domain.models.realtime import (
    UNKNOWN_HEADSIGN,
    UNKNOWN_ROUTE_ID,
    UNKNOWN_ROUTE_NAME,
    ArrivalPrediction,
    FeedMessage,
    TripDescriptor,
    VehicleSnapshot,
    epoch_to_datetime,
)


def resolve_route_id(
    descriptor: TripDescriptor | None, store: ScheduleStore
) -> str | None:
    """Route id from the trip descriptor, else from the static trip."""

    if descriptor is None:
        return None
    if descriptor.route_id:
        return descriptor.route_id
    trip = store.find_trip(descriptor.trip_id)
    return trip.route_id if trip is not None else None


def resolve_route_name(route_id: str | None, store: ScheduleStore) -> str | None:
    route = store.find_route(route_id)
    if route is None:
        return None
    return route.short_name or None


def fuse_vehicle_positions(
    feed: FeedMessage, store: ScheduleStore
) -> tuple[VehicleSnapshot, ...]:
    """Attach static trip/route data to every positioned vehicle in the feed.

    Vehicles whose trip or route is unknown are kept with sentinel values.
    The vehicle timestamp wins over the feed header timestamp.
    """

    out: list[VehicleSnapshot] = []
    for entity in feed.entities:
        v = entity.vehicle
        if v is None or v.position is None:
            continue

        trip_id = v.trip.trip_id if v.trip is not None else None
        trip = store.find_trip(trip_id)
        route_id = resolve_route_id(v.trip, store)

        timestamp = v.timestamp if v.timestamp is not None else feed.header.timestamp

        out.append(
            VehicleSnapshot(
                id=entity.id,
                route_id=route_id or UNKNOWN_ROUTE_ID,
                route_name=resolve_route_name(route_id, store) or UNKNOWN_ROUTE_NAME,
                headsign=(trip.headsign if trip is not None else None)
                or UNKNOWN_HEADSIGN,
                lat=v.position.latitude,
                lon=v.position.longitude,
                timestamp=timestamp,
                shape_id=trip.shape_id if trip is not None else None,
                trip_id=trip_id,
                bearing=v.position.bearing,
            )
        )

    return tuple(out)


def fuse_arrival_predictions(
    feed: FeedMessage, store: ScheduleStore
) -> dict[str, tuple[ArrivalPrediction, ...]]:
    """Group stop-time updates by stop id.

    Updates without an arrival time are kept with `arrival_at=None`. No
    ordering is imposed within a stop's list.
    """

    grouped: dict[str, list[ArrivalPrediction]] = {}
    for entity in feed.entities:
        tu = entity.trip_update
        if tu is None:
            continue

        trip_id = tu.trip.trip_id if tu.trip is not None else None
        route_id = resolve_route_id(tu.trip, store)

        for stu in tu.stop_time_updates:
            if not stu.stop_id:
                continue
            arrival_s = stu.arrival.time if stu.arrival is not None else None
            grouped.setdefault(stu.stop_id, []).append(
                ArrivalPrediction(
                    stop_id=stu.stop_id,
                    trip_id=trip_id,
                    route_id=route_id,
                    arrival_at=epoch_to_datetime(arrival_s),
                )
            )

    return {stop_id: tuple(preds) for stop_id, preds in grouped.items()}

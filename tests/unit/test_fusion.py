from __future__ import annotations

from datetime import datetime, timezone

from transit_fusion.domain.algorithms.fusion import (
    fuse_arrival_predictions,
    fuse_vehicle_positions,
)
from transit_fusion.domain.models.gtfs import ScheduleStore
from transit_fusion.domain.models.realtime import (
    UNKNOWN_HEADSIGN,
    UNKNOWN_ROUTE_ID,
    UNKNOWN_ROUTE_NAME,
    FeedEntity,
    FeedHeader,
    FeedMessage,
    Position,
    StopTimeEvent,
    StopTimeUpdate,
    TripDescriptor,
    TripUpdate,
    VehiclePosition,
    epoch_to_datetime,
)

HEADER = FeedHeader(gtfs_realtime_version="2.0", timestamp=1767859200)


def _vehicle(
    entity_id: str,
    *,
    trip_id: str | None = None,
    route_id: str | None = None,
    timestamp: int | None = None,
    positioned: bool = True,
) -> FeedEntity:
    trip = None
    if trip_id is not None or route_id is not None:
        trip = TripDescriptor(trip_id=trip_id, route_id=route_id)
    return FeedEntity(
        id=entity_id,
        vehicle=VehiclePosition(
            trip=trip,
            position=Position(latitude=41.9, longitude=12.5) if positioned else None,
            timestamp=timestamp,
        ),
    )


def test_vehicle_resolves_route_name_headsign_and_shape(store: ScheduleStore) -> None:
    feed = FeedMessage(
        header=HEADER,
        entities=(_vehicle("V1", trip_id="T1", route_id="R42", timestamp=1767859190),),
    )

    (v,) = fuse_vehicle_positions(feed, store)

    assert v.id == "V1"
    assert v.route_id == "R42"
    assert v.route_name == "42"
    assert v.headsign == "Termini"
    assert v.shape_id == "SH1"
    assert v.timestamp == 1767859190
    assert v.updated_at == datetime.fromtimestamp(1767859190, tz=timezone.utc)


def test_vehicle_timestamp_falls_back_to_header(store: ScheduleStore) -> None:
    feed = FeedMessage(header=HEADER, entities=(_vehicle("V1", trip_id="T1"),))
    (v,) = fuse_vehicle_positions(feed, store)
    assert v.timestamp == HEADER.timestamp


def test_route_id_falls_back_to_static_trip(store: ScheduleStore) -> None:
    feed = FeedMessage(header=HEADER, entities=(_vehicle("V1", trip_id="T3"),))
    (v,) = fuse_vehicle_positions(feed, store)
    assert v.route_id == "R2"
    assert v.route_name == "2"


def test_unknown_trip_and_route_are_kept_with_sentinels(store: ScheduleStore) -> None:
    feed = FeedMessage(
        header=HEADER,
        entities=(
            _vehicle("V-ghost", trip_id="NOPE", route_id="R404"),
            _vehicle("V-bare"),
        ),
    )

    ghost, bare = fuse_vehicle_positions(feed, store)

    assert ghost.route_id == "R404"
    assert ghost.route_name == UNKNOWN_ROUTE_NAME
    assert ghost.headsign == UNKNOWN_HEADSIGN
    assert ghost.shape_id is None
    assert bare.route_id == UNKNOWN_ROUTE_ID
    assert bare.route_name == UNKNOWN_ROUTE_NAME


def test_entities_without_position_are_skipped(store: ScheduleStore) -> None:
    feed = FeedMessage(
        header=HEADER,
        entities=(
            _vehicle("V1", trip_id="T1", positioned=False),
            FeedEntity(id="TU-only", trip_update=TripUpdate()),
            _vehicle("V2", trip_id="T2"),
        ),
    )
    assert [v.id for v in fuse_vehicle_positions(feed, store)] == ["V2"]


def test_predictions_grouped_by_stop(store: ScheduleStore) -> None:
    feed = FeedMessage(
        header=HEADER,
        entities=(
            FeedEntity(
                id="TU1",
                trip_update=TripUpdate(
                    trip=TripDescriptor(trip_id="T2", route_id="R42"),
                    stop_time_updates=(
                        StopTimeUpdate(
                            stop_id="S2", arrival=StopTimeEvent(time=1767859500)
                        ),
                        StopTimeUpdate(stop_id="S1", arrival=StopTimeEvent(time=None)),
                        StopTimeUpdate(stop_id="S3"),
                        StopTimeUpdate(stop_id=None, arrival=StopTimeEvent(time=1)),
                        StopTimeUpdate(stop_id="", arrival=StopTimeEvent(time=1)),
                    ),
                ),
            ),
            FeedEntity(
                id="TU2",
                trip_update=TripUpdate(
                    trip=TripDescriptor(trip_id="T3"),
                    stop_time_updates=(
                        StopTimeUpdate(
                            stop_id="S2", arrival=StopTimeEvent(time=1767859800)
                        ),
                    ),
                ),
            ),
        ),
    )

    by_stop = fuse_arrival_predictions(feed, store)

    assert set(by_stop) == {"S1", "S2", "S3"}
    assert len(by_stop["S2"]) == 2
    first = by_stop["S2"][0]
    assert first.trip_id == "T2"
    assert first.route_id == "R42"
    assert first.arrival_at == datetime.fromtimestamp(1767859500, tz=timezone.utc)
    # Route id comes from the static trip when the descriptor lacks it.
    assert by_stop["S2"][1].route_id == "R2"
    # Missing arrival times are kept as null predictions.
    assert by_stop["S1"][0].arrival_at is None
    assert by_stop["S3"][0].arrival_at is None


def test_unrepresentable_timestamps_become_none(store: ScheduleStore) -> None:
    millis = 1767859500000
    feed = FeedMessage(
        header=HEADER,
        entities=(
            _vehicle("V1", trip_id="T1", timestamp=millis),
            _vehicle("V2", trip_id="T1", timestamp=1767859190),
            FeedEntity(
                id="TU1",
                trip_update=TripUpdate(
                    trip=TripDescriptor(trip_id="T2"),
                    stop_time_updates=(
                        StopTimeUpdate(stop_id="S2", arrival=StopTimeEvent(time=millis)),
                        StopTimeUpdate(
                            stop_id="S3", arrival=StopTimeEvent(time=1767859500)
                        ),
                    ),
                ),
            ),
        ),
    )

    vehicles = fuse_vehicle_positions(feed, store)
    by_stop = fuse_arrival_predictions(feed, store)

    assert [v.id for v in vehicles] == ["V1", "V2"]
    assert vehicles[0].updated_at is None
    assert vehicles[1].updated_at is not None
    assert by_stop["S2"][0].arrival_at is None
    assert by_stop["S3"][0].arrival_at is not None


def test_epoch_to_datetime_handles_out_of_range_values() -> None:
    assert epoch_to_datetime(None) is None
    assert epoch_to_datetime(2**63 - 1) is None
    assert epoch_to_datetime(1767859500000) is None
    assert epoch_to_datetime(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

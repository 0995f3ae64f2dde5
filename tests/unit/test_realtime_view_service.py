from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

from transit_fusion.app.services.realtime_state import RealtimeState
from transit_fusion.app.services.realtime_view_service import (
    RealtimeViewService,
    minutes_until,
)
from transit_fusion.domain.models.geo import BoundingBox
from transit_fusion.domain.models.gtfs import ScheduleStore
from transit_fusion.domain.models.realtime import (
    ArrivalPrediction,
    RealtimeSnapshot,
    VehicleSnapshot,
)

NOW = datetime(2026, 1, 8, 8, 0, 0, tzinfo=timezone.utc)


def _vehicle(vid: str, route_name: str, shape_id: str | None = None) -> VehicleSnapshot:
    return VehicleSnapshot(
        id=vid,
        route_id=f"R{route_name}",
        route_name=route_name,
        headsign="Somewhere",
        lat=41.9,
        lon=12.5,
        shape_id=shape_id,
    )


def _prediction(
    stop_id: str, trip_id: str | None, route_id: str | None, minutes: float | None
) -> ArrivalPrediction:
    return ArrivalPrediction(
        stop_id=stop_id,
        trip_id=trip_id,
        route_id=route_id,
        arrival_at=None if minutes is None else NOW + timedelta(minutes=minutes),
    )


def _service(
    store: ScheduleStore | None,
    *,
    vehicles: tuple[VehicleSnapshot, ...] = (),
    predictions: dict[str, tuple[ArrivalPrediction, ...]] | None = None,
) -> RealtimeViewService:
    state = RealtimeState(
        schedule=store,
        snapshot=RealtimeSnapshot(vehicles=vehicles, predictions_by_stop=predictions or {}),
    )
    return RealtimeViewService(state=state)


def test_vehicles_by_route_filters_case_insensitively(store: ScheduleStore) -> None:
    vehicles = (_vehicle("a", "42"), _vehicle("b", "nMB"), _vehicle("c", "420"))
    svc = _service(store, vehicles=vehicles)

    assert svc.vehicles_by_route("") == vehicles
    assert [v.id for v in svc.vehicles_by_route("42")] == ["a"]
    assert [v.id for v in svc.vehicles_by_route(" NMB ")] == ["b"]
    assert svc.vehicles_by_route("7") == ()


def test_stops_for_route_mode(store: ScheduleStore) -> None:
    svc = _service(store)

    assert {s.id for s in svc.stops_for("42")} == {"S1", "S2"}
    assert {s.id for s in svc.stops_for("")} == {"S1", "S2", "S3"}


def test_stops_for_route_matches_case_insensitively_not_by_prefix(
    store: ScheduleStore,
) -> None:
    store = replace(store, route_stops={**store.route_stops, "nMB": frozenset({"S3"})})
    svc = _service(store)

    assert [s.id for s in svc.stops_for("NMB")] == ["S3"]
    assert [s.id for s in svc.stops_for("nmb")] == ["S3"]
    assert svc.stops_for("4") == ()


def test_stops_for_unknown_route_is_empty_not_everything(store: ScheduleStore) -> None:
    assert _service(store).stops_for("404") == ()


def test_stops_for_viewport_mode_ignores_route_filter(store: ScheduleStore) -> None:
    box = BoundingBox(min_lat=41.889, min_lon=12.48, max_lat=41.897, max_lon=12.50)
    stops = _service(store).stops_for("85", viewport=box)
    assert {s.id for s in stops} == {"S2", "S3"}


def test_queries_are_empty_before_schedule_loads() -> None:
    svc = _service(None)

    assert svc.stops_for("") == ()
    assert svc.route_names() == ()
    assert svc.autocomplete("4") == ()
    summary = svc.arrivals_and_lines_for_stop("S1", now=NOW)
    assert summary.lines == ()
    assert summary.name is None


def test_autocomplete_is_prefix_match(store: ScheduleStore) -> None:
    svc = _service(store)

    assert svc.autocomplete("4") == ("42",)
    assert svc.autocomplete("") == ()
    assert svc.autocomplete("1", limit=1) == ("12",)


def test_shapes_for_vehicles_are_distinct(store: ScheduleStore) -> None:
    vehicles = (
        _vehicle("a", "42", shape_id="SH1"),
        _vehicle("b", "42", shape_id="SH1"),
        _vehicle("c", "2", shape_id="SH2"),
        _vehicle("d", "85", shape_id="MISSING"),
        _vehicle("e", "N/D"),
    )
    shapes = _service(store).shapes_for_vehicles(vehicles)

    assert [shape_id for shape_id, _ in shapes] == ["SH1", "SH2"]
    assert [p.sequence for p in shapes[0][1]] == [1, 2, 3]


def test_arrivals_sorted_known_times_first(store: ScheduleStore) -> None:
    predictions = {
        "S2": (
            _prediction("S2", "T4", "R12", 10),
            _prediction("S2", "T1", "R42", 3),
            _prediction("S2", "T1", "R42", 7),
        )
    }
    summary = _service(store, predictions=predictions).arrivals_and_lines_for_stop(
        "S2", now=NOW
    )

    assert summary.name == "Piazza Venezia"
    assert [(line.route_name, line.minutes) for line in summary.lines] == [
        ("42", 3),
        ("12", 10),
        ("2", None),
    ]


def test_routes_without_time_use_natural_order(store: ScheduleStore) -> None:
    summary = _service(store).arrivals_and_lines_for_stop("S2", now=NOW)
    assert [line.route_name for line in summary.lines] == ["2", "12", "42"]
    assert all(line.minutes is None for line in summary.lines)


def test_prediction_outside_window_excluded_but_line_kept(store: ScheduleStore) -> None:
    predictions = {
        "S1": (
            _prediction("S1", "T5", "R85A", 65),
            _prediction("S1", "T1", "R42", -2),
        )
    }
    summary = _service(store, predictions=predictions).arrivals_and_lines_for_stop(
        "S1", now=NOW
    )

    by_name = {line.route_name: line for line in summary.lines}
    assert set(by_name) == {"42", "85"}
    assert by_name["85"].minutes is None
    assert by_name["42"].minutes is None


def test_arrival_now_is_zero_minutes(store: ScheduleStore) -> None:
    predictions = {"S3": (_prediction("S3", "T3", "R2", 0),)}
    summary = _service(store, predictions=predictions).arrivals_and_lines_for_stop(
        "S3", now=NOW
    )
    assert summary.lines[0].route_name == "2"
    assert summary.lines[0].minutes == 0


def test_destination_prefers_live_trip_headsign(store: ScheduleStore) -> None:
    predictions = {"S2": (_prediction("S2", "T2", "R42", 4),)}
    summary = _service(store, predictions=predictions).arrivals_and_lines_for_stop(
        "S2", now=NOW
    )

    by_name = {line.route_name: line for line in summary.lines}
    assert by_name["42"].destination == "Venezia"
    # No live trip for these lines: the static first-wins destination is used.
    assert by_name["2"].destination == "Flaminio"
    assert by_name["12"].destination == "Ostiense"


def test_null_predictions_do_not_produce_estimates(store: ScheduleStore) -> None:
    predictions = {"S2": (_prediction("S2", "T1", "R42", None),)}
    summary = _service(store, predictions=predictions).arrivals_and_lines_for_stop(
        "S2", now=NOW
    )
    assert all(line.minutes is None for line in summary.lines)


def test_minutes_until_rounds_half_up() -> None:
    assert minutes_until(NOW + timedelta(seconds=90), NOW) == 2
    assert minutes_until(NOW + timedelta(seconds=89), NOW) == 1
    assert minutes_until(NOW - timedelta(seconds=20), NOW) == 0

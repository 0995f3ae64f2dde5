from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from transit_fusion.adapters.api.dependencies import (
    get_realtime_view_service,
    get_refresh_service,
)
from transit_fusion.adapters.api.schemas.realtime import (
    EngineStatusSchema,
    GeoPointSchema,
    LineArrivalSchema,
    RefreshResponseSchema,
    RouteShapeSchema,
    StatusSchema,
    StopArrivalsSchema,
    StopSchema,
    VehicleSchema,
    VehiclesResponseSchema,
)
from transit_fusion.app.services.realtime_view_service import (
    AUTOCOMPLETE_LIMIT,
    RealtimeViewService,
)
from transit_fusion.app.services.refresh_service import RefreshService
from transit_fusion.domain.models.geo import BoundingBox
from transit_fusion.domain.models.status import LoadStatus

router = APIRouter(prefix="/realtime", tags=["realtime"])


def _status_to_schema(status: LoadStatus | None) -> StatusSchema | None:
    if status is None:
        return None
    return StatusSchema(
        state=status.state.value,
        message=status.message,
        count=status.count,
        updated_at=status.updated_at,
    )


def _viewport(
    min_lat: float | None,
    min_lon: float | None,
    max_lat: float | None,
    max_lon: float | None,
) -> BoundingBox | None:
    values = (min_lat, min_lon, max_lat, max_lon)
    if all(v is None for v in values):
        return None
    if any(v is None for v in values):
        raise HTTPException(
            status_code=422,
            detail="Viewport needs min_lat, min_lon, max_lat and max_lon",
        )
    try:
        return BoundingBox(
            min_lat=min_lat, min_lon=min_lon, max_lat=max_lat, max_lon=max_lon
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.get("/status", response_model=EngineStatusSchema)
def get_status(
    refresh: RefreshService = Depends(get_refresh_service),
) -> EngineStatusSchema:
    state = refresh.state
    return EngineStatusSchema(
        schedule=_status_to_schema(state.schedule_status),
        trip_updates=_status_to_schema(state.trip_updates_status),
        vehicles=_status_to_schema(state.vehicles_status),
        refresh_in_flight=refresh.in_flight,
    )


@router.post("/refresh", response_model=RefreshResponseSchema)
async def trigger_refresh(
    refresh: RefreshService = Depends(get_refresh_service),
) -> RefreshResponseSchema:
    outcome = await refresh.refresh()
    return RefreshResponseSchema(
        started=outcome.started,
        reason=outcome.reason,
        trip_updates=_status_to_schema(outcome.trip_updates),
        vehicles=_status_to_schema(outcome.vehicles),
    )


@router.get("/vehicles", response_model=VehiclesResponseSchema)
def list_vehicles(
    route: str = Query(default=""),
    service: RealtimeViewService = Depends(get_realtime_view_service),
) -> VehiclesResponseSchema:
    return VehiclesResponseSchema(
        updated_at=service.state.snapshot.vehicles_updated_at,
        vehicles=[
            VehicleSchema(
                vehicle_id=v.id,
                trip_id=v.trip_id,
                route_id=v.route_id,
                route_name=v.route_name,
                headsign=v.headsign,
                lat=v.lat,
                lon=v.lon,
                bearing=v.bearing,
                timestamp=v.updated_at,
                shape_id=v.shape_id,
            )
            for v in service.vehicles_by_route(route)
        ],
    )


@router.get("/stops", response_model=list[StopSchema])
def list_stops(
    route: str = Query(default=""),
    min_lat: float | None = Query(default=None),
    min_lon: float | None = Query(default=None),
    max_lat: float | None = Query(default=None),
    max_lon: float | None = Query(default=None),
    service: RealtimeViewService = Depends(get_realtime_view_service),
) -> list[StopSchema]:
    viewport = _viewport(min_lat, min_lon, max_lat, max_lon)
    return [
        StopSchema(
            stop_id=s.id,
            code=s.code,
            name=s.name,
            location=GeoPointSchema(lat=s.location.lat, lon=s.location.lon),
        )
        for s in service.stops_for(route, viewport)
    ]


@router.get("/stops/{stop_id}/arrivals", response_model=StopArrivalsSchema)
def get_stop_arrivals(
    stop_id: str,
    service: RealtimeViewService = Depends(get_realtime_view_service),
) -> StopArrivalsSchema:
    summary = service.arrivals_and_lines_for_stop(stop_id)
    return StopArrivalsSchema(
        stop_id=summary.stop_id,
        name=summary.name,
        code=summary.code,
        lines=[
            LineArrivalSchema(
                route_name=line.route_name,
                minutes=line.minutes,
                destination=line.destination,
            )
            for line in summary.lines
        ],
    )


@router.get("/routes", response_model=list[str])
def list_route_names(
    prefix: str = Query(default=""),
    limit: int = Query(default=AUTOCOMPLETE_LIMIT, ge=1, le=100),
    service: RealtimeViewService = Depends(get_realtime_view_service),
) -> list[str]:
    if prefix.strip():
        return list(service.autocomplete(prefix, limit=limit))
    return list(service.route_names())


@router.get("/shapes", response_model=list[RouteShapeSchema])
def list_shapes(
    route: str = Query(default=""),
    service: RealtimeViewService = Depends(get_realtime_view_service),
) -> list[RouteShapeSchema]:
    vehicles = service.vehicles_by_route(route)
    return [
        RouteShapeSchema(
            shape_id=shape_id,
            points=[
                GeoPointSchema(lat=p.location.lat, lon=p.location.lon) for p in pts
            ],
        )
        for shape_id, pts in service.shapes_for_vehicles(vehicles)
    ]

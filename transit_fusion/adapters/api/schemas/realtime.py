from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class GeoPointSchema(BaseModel):
    lat: float
    lon: float


class StatusSchema(BaseModel):
    state: str
    message: str | None = None
    count: int | None = None
    updated_at: datetime | None = None


class EngineStatusSchema(BaseModel):
    schedule: StatusSchema
    trip_updates: StatusSchema
    vehicles: StatusSchema
    refresh_in_flight: bool


class RefreshResponseSchema(BaseModel):
    started: bool
    reason: str | None = None
    trip_updates: StatusSchema | None = None
    vehicles: StatusSchema | None = None


class VehicleSchema(BaseModel):
    vehicle_id: str
    trip_id: str | None = None
    route_id: str
    route_name: str
    headsign: str
    lat: float
    lon: float
    bearing: float | None = None
    timestamp: datetime | None = None
    shape_id: str | None = None


class VehiclesResponseSchema(BaseModel):
    updated_at: datetime | None = None
    vehicles: list[VehicleSchema]


class StopSchema(BaseModel):
    stop_id: str
    code: str
    name: str
    location: GeoPointSchema


class LineArrivalSchema(BaseModel):
    route_name: str
    minutes: int | None = None
    destination: str | None = None


class StopArrivalsSchema(BaseModel):
    stop_id: str
    name: str | None = None
    code: str | None = None
    lines: list[LineArrivalSchema]


class RouteShapeSchema(BaseModel):
    shape_id: str
    points: list[GeoPointSchema]

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Mapping

from transit_fusion.domain.models.gtfs import ScheduleStore
from transit_fusion.domain.models.realtime import (
    ArrivalPrediction,
    RealtimeSnapshot,
    VehicleSnapshot,
)
from transit_fusion.domain.models.status import LoadState, LoadStatus


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class RealtimeState:
    """Owner of the latest schedule store and fused realtime snapshot.

    Writers never mutate a published object: each commit builds a new
    immutable snapshot and swaps the reference, so readers always see one
    complete version of each half.
    """

    schedule: ScheduleStore | None = None
    snapshot: RealtimeSnapshot = field(default_factory=RealtimeSnapshot)

    schedule_status: LoadStatus = field(default_factory=LoadStatus)
    vehicles_status: LoadStatus = field(default_factory=LoadStatus)
    trip_updates_status: LoadStatus = field(default_factory=LoadStatus)

    def publish_schedule(self, store: ScheduleStore) -> None:
        self.schedule = store
        self.schedule_status = LoadStatus(
            state=LoadState.SUCCESS,
            message=f"{len(store.stops_by_id)} stops, {len(store.route_names)} lines",
            count=len(store.stops_by_id),
            updated_at=_now(),
        )

    def commit_predictions(
        self,
        predictions_by_stop: Mapping[str, tuple[ArrivalPrediction, ...]],
        *,
        feed_timestamp: int | None = None,
    ) -> None:
        at = _now()
        self.snapshot = replace(
            self.snapshot,
            predictions_by_stop=dict(predictions_by_stop),
            predictions_updated_at=at,
            predictions_feed_timestamp=feed_timestamp,
        )
        self.trip_updates_status = LoadStatus(
            state=LoadState.SUCCESS,
            message=f"{len(predictions_by_stop)} stops with predictions",
            count=len(predictions_by_stop),
            updated_at=at,
        )

    def commit_vehicles(
        self,
        vehicles: tuple[VehicleSnapshot, ...],
        *,
        feed_timestamp: int | None = None,
    ) -> None:
        at = _now()
        self.snapshot = replace(
            self.snapshot,
            vehicles=tuple(vehicles),
            vehicles_updated_at=at,
            vehicles_feed_timestamp=feed_timestamp,
        )
        self.vehicles_status = LoadStatus(
            state=LoadState.SUCCESS,
            message=f"{len(vehicles)} vehicles",
            count=len(vehicles),
            updated_at=at,
        )

    def mark_loading(self, which: str) -> None:
        status = LoadStatus(state=LoadState.LOADING, updated_at=_now())
        setattr(self, f"{which}_status", status)

    def mark_error(self, which: str, reason: str) -> None:
        """Record a failure without touching the previously committed data."""

        status = LoadStatus(state=LoadState.ERROR, message=reason, updated_at=_now())
        setattr(self, f"{which}_status", status)

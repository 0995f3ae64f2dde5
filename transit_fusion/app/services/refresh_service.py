from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from transit_fusion.app.ports.output import IRealtimeFeedProvider
from transit_fusion.app.services.realtime_state import RealtimeState
from transit_fusion.app.services.schedule_loader import ScheduleLoader
from transit_fusion.domain.algorithms.fusion import (
    fuse_arrival_predictions,
    fuse_vehicle_positions,
)
from transit_fusion.domain.exceptions import ScheduleLoadError
from transit_fusion.domain.models.realtime import FeedMessage
from transit_fusion.domain.models.status import LoadStatus

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL_S = 30.0

VEHICLES = "vehicles"
TRIP_UPDATES = "trip_updates"
SCHEDULE = "schedule"


@dataclass(frozen=True, slots=True)
class RefreshOutcome:
    started: bool
    reason: str | None = None
    trip_updates: LoadStatus | None = None
    vehicles: LoadStatus | None = None


def _describe(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


@dataclass(slots=True)
class RefreshService:
    """Runs the load -> fetch -> fuse -> commit cycle.

    A cycle fetches both feeds at once, then fuses trip updates before vehicle
    positions. Each feed fails on its own: its error is recorded and its last
    committed data stays visible. A cycle requested while another is running
    is dropped.
    """

    state: RealtimeState
    feed_provider: IRealtimeFeedProvider
    schedule_loader: ScheduleLoader | None = None
    interval_s: float = DEFAULT_REFRESH_INTERVAL_S

    _in_flight: bool = field(default=False, init=False, repr=False)
    _task: asyncio.Task | None = field(default=None, init=False, repr=False)

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def load_schedule(self) -> bool:
        if self.schedule_loader is None:
            self.state.mark_error(SCHEDULE, "Schedule source not configured")
            return False

        self.state.mark_loading(SCHEDULE)
        try:
            store = await self.schedule_loader.load()
        except ScheduleLoadError as exc:
            logger.exception("Static schedule load failed")
            self.state.mark_error(SCHEDULE, _describe(exc))
            return False

        self.state.publish_schedule(store)
        return True

    async def refresh(self) -> RefreshOutcome:
        if self._in_flight:
            logger.info("Refresh already in progress; dropping trigger")
            return RefreshOutcome(started=False, reason="Refresh already in progress")
        if self.state.schedule is None:
            return RefreshOutcome(started=False, reason="Schedule not loaded")

        self._in_flight = True
        try:
            self.state.mark_loading(TRIP_UPDATES)
            self.state.mark_loading(VEHICLES)

            trip_updates, vehicles = await asyncio.gather(
                self.feed_provider.trip_updates(),
                self.feed_provider.vehicle_positions(),
                return_exceptions=True,
            )

            self._apply_trip_updates(trip_updates)
            self._apply_vehicle_positions(vehicles)

            # Cancellation propagates only once both feeds have been handled.
            for result in (trip_updates, vehicles):
                if isinstance(result, BaseException) and not isinstance(result, Exception):
                    raise result
        finally:
            self._in_flight = False

        return RefreshOutcome(
            started=True,
            trip_updates=self.state.trip_updates_status,
            vehicles=self.state.vehicles_status,
        )

    def _apply_trip_updates(self, result: FeedMessage | BaseException) -> None:
        store = self.state.schedule
        if store is None:
            return
        if isinstance(result, BaseException):
            self._record_failure(TRIP_UPDATES, result)
            return

        try:
            predictions = fuse_arrival_predictions(result, store)
        except Exception as exc:
            logger.exception("Trip updates fusion failed")
            self.state.mark_error(TRIP_UPDATES, _describe(exc))
            return
        self.state.commit_predictions(predictions, feed_timestamp=result.header.timestamp)

    def _apply_vehicle_positions(self, result: FeedMessage | BaseException) -> None:
        store = self.state.schedule
        if store is None:
            return
        if isinstance(result, BaseException):
            self._record_failure(VEHICLES, result)
            return

        try:
            vehicles = fuse_vehicle_positions(result, store)
        except Exception as exc:
            logger.exception("Vehicle positions fusion failed")
            self.state.mark_error(VEHICLES, _describe(exc))
            return
        self.state.commit_vehicles(vehicles, feed_timestamp=result.header.timestamp)
        logger.info("Realtime refresh: %d vehicles", len(vehicles))

    def _record_failure(self, which: str, exc: BaseException) -> None:
        if not isinstance(exc, Exception):
            # Cancellation is not a feed error; refresh() re-raises it.
            return
        logger.warning("%s feed failed: %s", which, _describe(exc))
        self.state.mark_error(which, _describe(exc))

    async def _run_periodically(self) -> None:
        while True:
            try:
                await self.refresh()
            except Exception:
                logger.exception("Refresh cycle crashed")
            await asyncio.sleep(self.interval_s)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run_periodically())
            logger.info("Realtime refresh started (every %.0fs)", self.interval_s)
        return self._task

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Realtime refresh stopped")

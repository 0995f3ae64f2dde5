from __future__ import annotations

import os

from fastapi import Depends, Request

from transit_fusion.adapters.persistence import HttpScheduleSource, LocalScheduleSource
from transit_fusion.adapters.realtime.http_gtfs_realtime_feed_provider import (
    HttpGtfsRealtimeFeedProvider,
)
from transit_fusion.app.ports.output import IScheduleSource
from transit_fusion.app.services.realtime_state import RealtimeState
from transit_fusion.app.services.realtime_view_service import RealtimeViewService
from transit_fusion.app.services.refresh_service import (
    DEFAULT_REFRESH_INTERVAL_S,
    RefreshService,
)
from transit_fusion.app.services.schedule_loader import ScheduleLoader


def build_refresh_service() -> RefreshService:
    source: IScheduleSource = LocalScheduleSource()
    if os.getenv("GTFS_BASE_URL"):
        source = HttpScheduleSource()

    service = RefreshService(
        state=RealtimeState(),
        feed_provider=HttpGtfsRealtimeFeedProvider(),
        schedule_loader=ScheduleLoader(source=source),
    )

    # Allow tuning via env without changing code.
    service.interval_s = float(
        os.getenv("REFRESH_INTERVAL_S") or DEFAULT_REFRESH_INTERVAL_S
    )
    return service


def get_refresh_service(request: Request) -> RefreshService:
    return request.app.state.refresh_service


def get_realtime_view_service(
    refresh: RefreshService = Depends(get_refresh_service),
) -> RealtimeViewService:
    return RealtimeViewService(state=refresh.state)

from __future__ import annotations

from abc import ABC, abstractmethod

from transit_fusion.domain.models.realtime import FeedMessage


class IRealtimeFeedProvider(ABC):
    """Port for obtaining decoded GTFS-Realtime feeds.

    Implementations raise `FeedFetchError` on transport problems and
    `FeedDecodeError` on malformed payloads. The two feeds are independent.
    """

    @abstractmethod
    async def vehicle_positions(self) -> FeedMessage:
        raise NotImplementedError

    @abstractmethod
    async def trip_updates(self) -> FeedMessage:
        raise NotImplementedError

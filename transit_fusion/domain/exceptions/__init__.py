from .feed import FeedDecodeError, FeedFetchError, ScheduleLoadError, TransitDataError

__all__ = [
    "FeedDecodeError",
    "FeedFetchError",
    "ScheduleLoadError",
    "TransitDataError",
]

class TransitDataError(Exception):
    """Base exception for schedule and realtime feed failures."""


class ScheduleLoadError(TransitDataError):
    """Raised when the static schedule cannot be loaded as a whole."""


class FeedFetchError(TransitDataError):
    """Raised when a realtime feed cannot be downloaded."""


class FeedDecodeError(TransitDataError):
    """Raised when a realtime feed payload is structurally malformed."""

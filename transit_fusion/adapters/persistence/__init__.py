from .http_schedule_source import HttpScheduleSource
from .local_schedule_source import LocalScheduleSource

__all__ = [
    "HttpScheduleSource",
    "LocalScheduleSource",
]

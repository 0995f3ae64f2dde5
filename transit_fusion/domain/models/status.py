from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class LoadStatus:
    state: LoadState = LoadState.IDLE
    message: str | None = None
    count: int | None = None
    updated_at: datetime | None = None

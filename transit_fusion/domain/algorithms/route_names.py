from __future__ import annotations

import re

_DIGITS = re.compile(r"(\d+)")


def normalize_route_filter(raw: str | None) -> str:
    return (raw or "").strip()


def route_name_equals(name: str | None, route_filter: str) -> bool:
    """Case-insensitive exact match (no prefix matching)."""

    if name is None:
        return False
    return name.casefold() == route_filter.casefold()


def route_name_startswith(name: str, prefix: str) -> bool:
    return name.casefold().startswith(prefix.casefold())


def natural_sort_key(name: str) -> tuple[str | int, ...]:
    """Sort key comparing digit runs numerically, so "2" sorts before "12".

    Splitting on a capturing group always yields text at even positions and
    digits at odd positions, so keys of different names stay comparable.
    """

    parts = _DIGITS.split(name.casefold())
    return tuple(int(p) if i % 2 else p for i, p in enumerate(parts))

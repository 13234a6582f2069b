"""Adaptive run interval.

The idea is to adjust the interval depending on the amount of known users
so that, over one day, enough runs happen to page through every one of
them once.  At most it runs every ``min_seconds``, at least every
``max_seconds``.
"""

from __future__ import annotations

import math

from .models import SECONDS_PER_DAY, IntervalConfig


def recompute_interval(
    mapped_identity_count: int, min_paging_size: int, bounds: IntervalConfig
) -> int:
    """Return the new run interval in seconds, clamped into *bounds*.

    A minimum paging size of 0 means unbounded paging (every run is a full
    dump), which runs at the slowest allowed rate.
    """
    if min_paging_size <= 0:
        return bounds.max_seconds

    runs_per_day = mapped_identity_count / min_paging_size
    if runs_per_day <= 0:
        return bounds.max_seconds

    interval = math.floor(SECONDS_PER_DAY / runs_per_day)
    return bounds.clamp(interval)

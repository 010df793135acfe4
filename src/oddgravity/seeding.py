"""
seeding.py: Date seeds and the small deterministic PRNG shared by client and server.
"""

import datetime
from typing import Callable, Optional


def date_seed(day: Optional[datetime.date] = None) -> int:
    """2026-10-19 -> 20261019."""
    day = day or datetime.date.today()
    return day.year * 10000 + day.month * 100 + day.day


def mulberry32(seed: int) -> Callable[[], float]:
    """32-bit PRNG returning floats in [0, 1). Same sequence on every platform."""
    state = seed & 0xFFFFFFFF

    def next_float() -> float:
        nonlocal state
        state = (state + 0x6D2B79F5) & 0xFFFFFFFF
        t = state
        t = ((t ^ (t >> 15)) * (t | 1)) & 0xFFFFFFFF
        t ^= (t + (((t ^ (t >> 7)) * (t | 61)) & 0xFFFFFFFF)) & 0xFFFFFFFF
        return ((t ^ (t >> 14)) & 0xFFFFFFFF) / 4294967296

    return next_float

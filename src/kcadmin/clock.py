"""Time source used for token expiry decisions.

The token manager never calls :func:`time.monotonic` directly; it asks a
:class:`Clock`. Production code uses :class:`SystemClock`, and tests inject a
clock they can advance by hand to exercise refresh logic deterministically.
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Anything with a ``now()`` returning float seconds."""

    def now(self) -> float: ...


class SystemClock:
    """Monotonic wall-independent clock.

    Monotonic time keeps expiry arithmetic immune to system clock jumps;
    only differences between readings are ever used.
    """

    def now(self) -> float:
        return time.monotonic()

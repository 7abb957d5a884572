"""Countdown board — per-sub-order cooking timers sharing one clock.

Every armed sub-order holds a number of remaining ticks. `tick()` decrements
all of them in one step and removes the ones that reached zero in the same
state replacement, so timers armed together expire together. Removal from the
board is the only signal that a countdown has fired: an id that is no longer
armed can never fire again.
"""

from types import MappingProxyType

import structlog

logger = structlog.get_logger(__name__)


class CountdownBoard:
    def __init__(self):
        self._remaining: dict[str, int] = {}

    def arm(self, key, ticks: int) -> bool:
        """Start a countdown for `key`.

        Arming an id that is already armed keeps the running countdown and
        returns False.
        """
        key = str(key)
        if key in self._remaining:
            return False
        if ticks < 1:
            raise ValueError("A countdown needs at least one tick")
        self._remaining = {**self._remaining, key: ticks}
        logger.debug("Countdown armed", key=key, ticks=ticks)
        return True

    def disarm(self, key) -> int | None:
        """Stop the countdown for `key`; returns the ticks it had left, if any."""
        key = str(key)
        if key not in self._remaining:
            return None
        remaining = self._remaining[key]
        self._remaining = {k: v for k, v in self._remaining.items() if k != key}
        logger.debug("Countdown disarmed", key=key, remaining=remaining)
        return remaining

    def tick(self) -> list[str]:
        """Advance every countdown by one tick and return the ids that expired."""
        decremented = {k: v - 1 for k, v in self._remaining.items()}
        expired = [k for k, v in decremented.items() if v <= 0]
        self._remaining = {k: v for k, v in decremented.items() if v > 0}
        if expired:
            logger.debug("Countdowns expired", keys=expired)
        return expired

    def remaining(self, key) -> int | None:
        return self._remaining.get(str(key))

    def is_armed(self, key) -> bool:
        return str(key) in self._remaining

    @property
    def active(self):
        """Read-only view of the armed ids and their remaining ticks."""
        return MappingProxyType(self._remaining)

    def __len__(self):
        return len(self._remaining)

    def clear(self) -> None:
        self._remaining = {}

"""Reconnect delay computation."""

from dataclasses import dataclass

RECONNECT_BACKOFF_INITIAL = 1.0
RECONNECT_BACKOFF_MAX = 30.0
MAX_RECONNECT_ATTEMPTS = 5


def reconnect_delay(
    attempt: int,
    base_delay: float = RECONNECT_BACKOFF_INITIAL,
    max_delay: float = RECONNECT_BACKOFF_MAX,
) -> float:
    """
    Seconds to wait before reconnect attempt ``attempt`` (1 = first retry).

    Doubles from ``base_delay`` and is capped at ``max_delay``:
    1 -> 1s, 2 -> 2s, 4 -> 8s, 6 -> 30s.
    """
    if attempt < 1:
        raise ValueError(f"Reconnect attempts are numbered from 1, got {attempt}")
    # Exponent is bounded so huge attempt numbers cannot overflow a float
    exponent = min(attempt - 1, 64)
    return min(base_delay * (2 ** exponent), max_delay)


@dataclass
class ReconnectPolicy:
    """How many times, and how fast, a subscription tries to come back."""

    max_attempts: int = MAX_RECONNECT_ATTEMPTS
    base_delay: float = RECONNECT_BACKOFF_INITIAL
    max_delay: float = RECONNECT_BACKOFF_MAX

    def delay(self, attempt: int) -> float:
        return reconnect_delay(attempt, self.base_delay, self.max_delay)

"""
Retry Utilities

Implements the linear backoff policy used between ERP delivery attempts.
The delay grows with the attempt number and carries no jitter, so the
schedule is fully predictable.
"""

from typing import Awaitable, Callable

SleepFunc = Callable[[float], Awaitable[None]]


def calculate_backoff(attempt: int, base_delay: float = 2.0) -> float:
    """
    Calculate linear backoff delay.

    Args:
        attempt: Attempt that just failed (1-indexed)
        base_delay: Delay unit in seconds

    Returns:
        Backoff delay in seconds before the next attempt
    """
    if attempt < 1:
        return 0.0
    return float(attempt * base_delay)

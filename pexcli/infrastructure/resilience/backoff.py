"""Exponential backoff with jitter.

The delay for attempt `n` is `base * 2**n` plus a random jitter of up to half
that amount, capped at `MAX_DELAY_S` so a single sleep is always bounded.
"""

import random
from typing import Optional

BASE_DELAY_S = 0.1 # 100ms
MAX_DELAY_S = 5.0  # cap between retries


def backoff_delay(
    attempt: int,
    rng: Optional[random.Random] = None,
    base_delay_s: float = BASE_DELAY_S,
    max_delay_s: float = MAX_DELAY_S,
) -> float:
    """Returns the delay in seconds before retry number `attempt`.

    Args:
        attempt: Zero-based attempt counter. Negative values are treated as 0.
        rng: Optional random generator (tests pass a seeded one).
        base_delay_s: Delay for attempt 0, before jitter.
        max_delay_s: Absolute ceiling for the returned delay.

    Returns:
        A delay in `[0, max_delay_s]`.
    """
    attempt = max(0, int(attempt))
    # Clamp before multiplying so large attempts never overflow
    if attempt >= 64:
        exponential = max_delay_s
    else:
        exponential = min(base_delay_s * (2 ** attempt), max_delay_s)
    generator = rng or random
    jitter = generator.uniform(0, exponential / 2)
    return max(0.0, min(exponential + jitter, max_delay_s))

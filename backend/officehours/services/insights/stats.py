"""Small numeric helpers shared by the duration insights."""

import math
import statistics
from datetime import datetime


def median(samples: list[float]) -> float:
    """Middle value of the sorted sample; mean of the two middle values for even sizes.

    Raises ``statistics.StatisticsError`` (a ``ValueError``) for an empty sample.
    """
    return statistics.median(samples)


def elapsed_minutes(start: datetime, end: datetime) -> float:
    """Minutes between two timestamps, truncated to whole seconds first."""
    return math.floor((end - start).total_seconds()) / 60


def round_half_up(value: float) -> int:
    # round() is banker's rounding; 2.5 min must display as 3
    return math.floor(value + 0.5)

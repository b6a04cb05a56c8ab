"""Fixed-bucket latency histogram derived from raw samples."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

# Lower bounds in microseconds; the last bucket is open-ended.
BUCKET_BOUNDS_US: tuple[int, ...] = (
    0,
    100,
    250,
    500,
    1_000,
    2_500,
    5_000,
    10_000,
    25_000,
    50_000,
    100_000,
    250_000,
    500_000,
    1_000_000,
)


@dataclass(frozen=True)
class HistogramBucket:
    lower_bound_us: int
    upper_bound_us: Optional[int]
    count: int
    cumulative_percent: float

    @property
    def is_overflow(self) -> bool:
        return self.upper_bound_us is None


@dataclass(frozen=True)
class LatencyHistogram:
    buckets: List[HistogramBucket]
    total_count: int


def build_histogram(
    samples: Sequence[int],
    bounds: Sequence[int] = BUCKET_BOUNDS_US,
) -> Optional[LatencyHistogram]:
    """Partition ``samples`` into ``bounds`` buckets with cumulative percentages.

    Args:
        samples: Latency samples in microseconds.
        bounds: Strictly increasing lower bounds, starting at 0.

    Returns:
        The histogram, or ``None`` when there are no samples.
    """
    if len(samples) == 0:
        return None

    edges = np.asarray(bounds, dtype=np.int64)
    values = np.asarray(samples, dtype=np.int64)
    indexes = np.searchsorted(edges, values, side="right") - 1
    counts = np.bincount(np.clip(indexes, 0, None), minlength=len(edges))
    cumulative = np.cumsum(counts)
    total = int(values.size)

    buckets = []
    for position, lower in enumerate(bounds):
        upper = bounds[position + 1] if position + 1 < len(bounds) else None
        buckets.append(
            HistogramBucket(
                lower_bound_us=int(lower),
                upper_bound_us=int(upper) if upper is not None else None,
                count=int(counts[position]),
                cumulative_percent=float(cumulative[position]) / total * 100.0,
            )
        )

    return LatencyHistogram(buckets=buckets, total_count=total)


__all__ = [
    "BUCKET_BOUNDS_US",
    "HistogramBucket",
    "LatencyHistogram",
    "build_histogram",
]

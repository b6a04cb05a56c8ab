"""Key distribution samplers used to pick record indexes.

Three samplers are supported and the set is closed: uniform, Zipfian (the
YCSB scrambled-free variant) and "latest", which inverts a Zipfian over the
insertion order so the newest records are the hottest. Each sampler owns its
``random.Random`` instance; workers are expected to hold their own sampler
rather than share one.
"""

from __future__ import annotations

import logging
import random
from typing import Optional, Union

from ycsbench.core.enums import DistributionType
from ycsbench.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_ZIPFIAN_CONSTANT = 0.99

_U64_BITS = 64


def zeta(n: int, theta: float) -> float:
    """Return ``sum(i ** -theta for i in 1..n)`` by direct summation.

    This is O(n) and dominates the construction cost of a Zipfian sampler
    over a large key space.
    """
    total = 0.0
    for i in range(1, n + 1):
        total += 1.0 / (i ** theta)
    return total


def _eta(items: int, theta: float, zeta_2: float, zeta_n: float) -> float:
    denominator = 1.0 - zeta_2 / zeta_n
    # Two items: every draw lands in the first two branches of next().
    if denominator == 0.0:
        return 0.0
    return (1.0 - (2.0 / items) ** (1.0 - theta)) / denominator


class UniformDistribution:
    """Every key in ``[min, max)`` is equally likely."""

    kind = DistributionType.UNIFORM

    def __init__(self, min_value: int, max_value: int, rng: Optional[random.Random] = None):
        self.random = rng or random.Random()
        self.min = min_value
        self.max = max_value

    def next(self) -> int:
        return self.next_in_range(self.min, self.max)

    def next_in_range(self, min_value: int, max_value: int) -> int:
        if max_value <= min_value:
            return min_value
        return min_value + (self.random.getrandbits(_U64_BITS) % (max_value - min_value))


class ZipfianDistribution:
    """Power-law sampler that favours the low end of ``[min, max]``.

    Attributes:
        theta: Skew constant in (0, 1); larger values give a heavier head.
        zeta_2: ``zeta(2, theta)``.
        zeta_n: ``zeta(count_for_zeta, theta)``; must track the current item
            count or the distribution silently skews.
        alpha: ``1 / (1 - theta)``.
        eta: Derived normalisation constant.
        count_for_zeta: Number of items ``zeta_n`` was computed for.
    """

    kind = DistributionType.ZIPFIAN

    def __init__(
        self,
        min_value: int,
        max_value: int,
        rng: Optional[random.Random] = None,
        theta: float = DEFAULT_ZIPFIAN_CONSTANT,
    ):
        if not 0.0 < theta < 1.0:
            raise ConfigurationError(
                f"Zipfian constant must be in (0, 1), received {theta!r}",
                config_key="zipfian_constant",
            )
        if max_value < min_value:
            raise ConfigurationError(
                f"Zipfian range is empty: [{min_value}, {max_value}]",
                config_key="record_count",
            )

        self.random = rng or random.Random()
        self.min = min_value
        self.max = max_value
        self.theta = theta

        items = max_value - min_value + 1
        self.count_for_zeta = items
        self.zeta_2 = zeta(2, theta)
        self.zeta_n = zeta(items, theta)
        self.alpha = 1.0 / (1.0 - theta)
        self.eta = _eta(items, theta, self.zeta_2, self.zeta_n)

        logger.debug("Initialized Zipfian sampler over %s items (theta=%s)", items, theta)

    def next(self) -> int:
        u = self.random.random()
        uz = u * self.zeta_n

        if uz < 1.0:
            return self.min
        if uz < 1.0 + 0.5 ** self.theta:
            return self.min + 1

        base = max(0.0, self.eta * u - self.eta + 1.0)
        offset = int(self.count_for_zeta * (base ** self.alpha))
        return min(self.min + offset, self.max)

    def next_in_range(self, min_value: int, max_value: int) -> int:
        value = self.next()
        span = self.max - self.min
        if span <= 0:
            return min_value
        return min_value + ((value - self.min) * (max_value - min_value)) // span

    def extend_to(self, new_count: int) -> None:
        """Grow ``zeta_n`` to cover ``new_count`` items by adding only new terms.

        Cost is proportional to the number of added items, so repeated growth
        by one item stays O(1) per call.
        """
        if new_count <= self.count_for_zeta:
            return

        theta = self.theta
        zeta_n = self.zeta_n
        for i in range(self.count_for_zeta + 1, new_count + 1):
            zeta_n += 1.0 / (i ** theta)

        self.zeta_n = zeta_n
        self.count_for_zeta = new_count
        self.max = self.min + new_count - 1
        self.eta = _eta(new_count, theta, self.zeta_2, self.zeta_n)


class LatestDistribution:
    """Favour the most recently inserted keys.

    Wraps a Zipfian over ``[0, max_key]`` and returns ``max_key - draw`` so
    the newest key is as hot as index 0 is for a plain Zipfian.
    """

    kind = DistributionType.LATEST

    def __init__(
        self,
        max_key: int,
        rng: Optional[random.Random] = None,
        theta: float = DEFAULT_ZIPFIAN_CONSTANT,
    ):
        self.random = rng or random.Random()
        self.zipfian = ZipfianDistribution(0, max_key, rng=self.random, theta=theta)
        self.max_key = max_key

    @property
    def min(self) -> int:
        return 0

    @property
    def max(self) -> int:
        return self.max_key

    def update_max_key(self, new_max: int) -> None:
        """Record that the usable key space grew to ``new_max``.

        Call after every insert. Amortized O(1): only the new zeta terms are
        summed and ``eta`` is recomputed from the updated ``zeta_n``.
        """
        if new_max <= self.max_key:
            return
        self.zipfian.extend_to(new_max + 1)
        self.max_key = new_max

    def next(self) -> int:
        draw = self.zipfian.next()
        if draw > self.max_key:
            return 0
        return self.max_key - draw

    def next_in_range(self, min_value: int, max_value: int) -> int:
        value = self.next()
        if value < min_value:
            return min_value
        if value > max_value:
            return max_value
        return value


Distribution = Union[UniformDistribution, ZipfianDistribution, LatestDistribution]


def create_distribution(
    kind: DistributionType | str,
    min_value: int,
    max_value: int,
    rng: Optional[random.Random] = None,
    theta: float = DEFAULT_ZIPFIAN_CONSTANT,
) -> Distribution:
    """Build one of the three samplers.

    Args:
        kind: Distribution to construct.
        min_value: Lowest key index.
        max_value: Highest key index (exclusive for uniform).
        rng: Random source; a fresh unseeded one is used when omitted.
        theta: Zipfian skew, ignored for the uniform sampler.

    Returns:
        The constructed sampler. Latest ignores ``min_value`` and always
        covers ``[0, max_value]``.
    """
    kind = DistributionType(kind)
    if kind is DistributionType.UNIFORM:
        return UniformDistribution(min_value, max_value, rng=rng)
    if kind is DistributionType.ZIPFIAN:
        return ZipfianDistribution(min_value, max_value, rng=rng, theta=theta)
    return LatestDistribution(max_value, rng=rng, theta=theta)


__all__ = [
    "DEFAULT_ZIPFIAN_CONSTANT",
    "Distribution",
    "LatestDistribution",
    "UniformDistribution",
    "ZipfianDistribution",
    "create_distribution",
    "zeta",
]

"""Operation mix configuration and the weighted operation chooser."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ycsbench.core.enums import OperationType
from ycsbench.core.exceptions import InvalidProportionsError

logger = logging.getLogger(__name__)

PROPORTION_TOLERANCE = 0.01


class OperationMix(BaseModel):
    """Relative frequency of each operation kind in a workload.

    The six proportions must sum to 1.0 within ``PROPORTION_TOLERANCE``; use
    :meth:`normalized` to rescale arbitrary weights first.
    """

    model_config = ConfigDict(frozen=True)

    read_proportion: float = Field(default=0.5, ge=0.0)
    insert_proportion: float = Field(default=0.0, ge=0.0)
    update_proportion: float = Field(default=0.5, ge=0.0)
    delete_proportion: float = Field(default=0.0, ge=0.0)
    scan_proportion: float = Field(default=0.0, ge=0.0)
    read_modify_write_proportion: float = Field(default=0.0, ge=0.0)

    def proportions(self) -> Dict[OperationType, float]:
        """Return the proportions keyed by operation, in chooser order."""
        return {
            OperationType.READ: self.read_proportion,
            OperationType.INSERT: self.insert_proportion,
            OperationType.UPDATE: self.update_proportion,
            OperationType.DELETE: self.delete_proportion,
            OperationType.SCAN: self.scan_proportion,
            OperationType.READ_MODIFY_WRITE: self.read_modify_write_proportion,
        }

    def total(self) -> float:
        return sum(self.proportions().values())

    def validate_proportions(self) -> None:
        """Raise :class:`InvalidProportionsError` unless the mix sums to ~1.0."""
        total = self.total()
        if abs(total - 1.0) > PROPORTION_TOLERANCE:
            raise InvalidProportionsError(total, PROPORTION_TOLERANCE)

    def normalized(self) -> OperationMix:
        """Return a copy scaled so the proportions sum to 1.0."""
        total = self.total()
        if total == 0.0:
            return self
        return OperationMix(
            read_proportion=self.read_proportion / total,
            insert_proportion=self.insert_proportion / total,
            update_proportion=self.update_proportion / total,
            delete_proportion=self.delete_proportion / total,
            scan_proportion=self.scan_proportion / total,
            read_modify_write_proportion=self.read_modify_write_proportion / total,
        )

    # --- Presets -----------------------------------------------------------

    @classmethod
    def read_only(cls) -> OperationMix:
        return cls(read_proportion=1.0, update_proportion=0.0)

    @classmethod
    def write_only(cls) -> OperationMix:
        return cls(read_proportion=0.0, insert_proportion=1.0, update_proportion=0.0)

    @classmethod
    def balanced(cls) -> OperationMix:
        """50% reads, 50% inserts."""
        return cls(read_proportion=0.5, insert_proportion=0.5, update_proportion=0.0)

    @classmethod
    def workload_a(cls) -> OperationMix:
        """YCSB A, update heavy: 50% reads, 50% updates."""
        return cls(read_proportion=0.5, update_proportion=0.5)

    @classmethod
    def workload_b(cls) -> OperationMix:
        """YCSB B, read mostly: 95% reads, 5% updates."""
        return cls(read_proportion=0.95, update_proportion=0.05)

    @classmethod
    def workload_c(cls) -> OperationMix:
        """YCSB C, read only."""
        return cls.read_only()

    @classmethod
    def workload_d(cls) -> OperationMix:
        """YCSB D, read latest: 95% reads, 5% inserts."""
        return cls(read_proportion=0.95, insert_proportion=0.05, update_proportion=0.0)

    @classmethod
    def workload_e(cls) -> OperationMix:
        """YCSB E, short ranges: 95% scans, 5% inserts."""
        return cls(
            read_proportion=0.0,
            insert_proportion=0.05,
            update_proportion=0.0,
            scan_proportion=0.95,
        )

    @classmethod
    def workload_f(cls) -> OperationMix:
        """YCSB F, read-modify-write: 50% reads, 50% RMW."""
        return cls(read_proportion=0.5, update_proportion=0.0, read_modify_write_proportion=0.5)

    @classmethod
    def for_workload(cls, name: str) -> OperationMix:
        """Resolve a preset from a workload letter such as ``"a"`` or ``"workload_d"``."""
        key = name.strip().lower().removeprefix("workload").strip("_- ")
        factory = _WORKLOAD_PRESETS.get(key)
        if factory is None:
            raise ValueError(f"Unknown workload preset: {name!r}")
        return factory()


_WORKLOAD_PRESETS = {
    "a": OperationMix.workload_a,
    "b": OperationMix.workload_b,
    "c": OperationMix.workload_c,
    "d": OperationMix.workload_d,
    "e": OperationMix.workload_e,
    "f": OperationMix.workload_f,
}


@dataclass
class OperationStats:
    """Counts of chosen operations over a number of draws."""

    counts: Dict[OperationType, int] = field(
        default_factory=lambda: {op: 0 for op in OperationType}
    )

    def add(self, operation: OperationType) -> None:
        self.counts[operation] += 1

    def total(self) -> int:
        return sum(self.counts.values())

    def count(self, operation: OperationType) -> int:
        return self.counts.get(operation, 0)

    def proportion(self, operation: OperationType) -> float:
        total = self.total()
        if total == 0:
            return 0.0
        return self.counts.get(operation, 0) / total

    def __str__(self) -> str:
        total = self.total()
        if total == 0:
            return "No operations"
        return ", ".join(
            f"{op.label}: {count} ({count * 100.0 / total:.1f}%)"
            for op, count in self.counts.items()
        )


class OperationChooser:
    """Pick operation kinds according to an :class:`OperationMix`.

    The cumulative thresholds are computed once at construction and never
    change. ``choose`` consumes exactly one float from the random source.
    """

    def __init__(self, mix: OperationMix, rng: Optional[random.Random] = None):
        mix.validate_proportions()

        self.mix = mix
        self.random = rng or random.Random()

        thresholds = []
        cumulative = 0.0
        for operation, proportion in mix.proportions().items():
            cumulative += proportion
            thresholds.append((cumulative, operation))
        self._thresholds: tuple[tuple[float, OperationType], ...] = tuple(thresholds)

        logger.debug("OperationChooser thresholds: %s", self._thresholds)

    @property
    def thresholds(self) -> tuple[tuple[float, OperationType], ...]:
        return self._thresholds

    def choose(self) -> OperationType:
        draw = self.random.random()
        for upper_bound, operation in self._thresholds:
            if draw < upper_bound:
                return operation
        # Rounding can leave the last bound slightly under 1.0.
        return OperationType.READ

    def get_statistics(self, operation_count: int) -> OperationStats:
        """Draw ``operation_count`` operations and tally them."""
        stats = OperationStats()
        for _ in range(operation_count):
            stats.add(self.choose())
        return stats


__all__ = [
    "PROPORTION_TOLERANCE",
    "OperationChooser",
    "OperationMix",
    "OperationStats",
]

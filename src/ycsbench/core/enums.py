"""Enumerations shared across the benchmark driver."""

from __future__ import annotations

from enum import Enum, unique


@unique
class OperationType(str, Enum):
    """
    Kinds of database operations a workload can issue.

    The declaration order is significant: the operation chooser builds its
    cumulative thresholds in exactly this order.
    """

    READ = "read"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    SCAN = "scan"
    READ_MODIFY_WRITE = "read_modify_write"

    def __str__(self) -> str:
        return self.label

    @property
    def label(self) -> str:
        """Return the short upper-case label used in reports."""
        return _OPERATION_LABELS[self]

    @classmethod
    def from_string(cls, name: str) -> OperationType:
        """Resolve an operation from its value or report label."""
        if isinstance(name, OperationType):
            return name
        normalized = name.strip().lower().replace("-", "_")
        if normalized == "rmw":
            return cls.READ_MODIFY_WRITE
        try:
            return cls(normalized)
        except ValueError as exc:
            raise ValueError(f"Unknown operation type: {name!r}") from exc


_OPERATION_LABELS = {
    OperationType.READ: "READ",
    OperationType.INSERT: "INSERT",
    OperationType.UPDATE: "UPDATE",
    OperationType.DELETE: "DELETE",
    OperationType.SCAN: "SCAN",
    OperationType.READ_MODIFY_WRITE: "RMW",
}


@unique
class DistributionType(str, Enum):
    """Key access distributions supported by the samplers."""

    UNIFORM = "uniform"
    ZIPFIAN = "zipfian"
    LATEST = "latest"


@unique
class ValueType(str, Enum):
    """Payload generation strategies for synthetic records."""

    FIXED = "fixed"
    VARIABLE = "variable"
    JSON = "json"


@unique
class WarmupPhase(str, Enum):
    """Phase of a run as seen by the warmup detector."""

    WARMING_UP = "warming_up"
    MEASURING = "measuring"


@unique
class Verdict(str, Enum):
    """Overall outcome of comparing a candidate run with a baseline."""

    IMPROVEMENT = "improvement"
    REGRESSION = "regression"
    NO_SIGNIFICANT_CHANGE = "no_significant_change"


__all__ = [
    "OperationType",
    "DistributionType",
    "ValueType",
    "WarmupPhase",
    "Verdict",
]

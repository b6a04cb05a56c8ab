"""
Core Exceptions for the ycsbench benchmark driver.

This module defines the exception classes raised by the workload, metrics,
stability and comparison components. Every exception derives from
``BenchmarkError`` so that callers driving a run can catch a single type at
the boundary while still inspecting the error code and context.

The exceptions are organized into categories:
- Configuration Exceptions
- Workload Exceptions
- Metrics Exceptions
- Result Exceptions
"""

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class BenchmarkError(Exception):
    """Base exception class for all benchmark driver errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        """
        Initialize a benchmark error.

        Args:
            message: Human-readable error message
            error_code: Optional error code for programmatic handling
            context: Optional context information for debugging
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}

        logger.debug("BenchmarkError: %s", message, extra={
            "error_code": error_code,
            "context": context,
        })


# Configuration Exceptions

class ConfigurationError(BenchmarkError):
    """Raised when a configuration value or file is invalid."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        """
        Initialize a configuration error.

        Args:
            message: Description of the configuration problem
            config_key: Optional configuration key that caused the error
        """
        self.config_key = config_key
        super().__init__(
            message,
            error_code="CONFIGURATION_ERROR",
            context={"config_key": config_key},
        )


# Workload Exceptions

class InvalidProportionsError(ConfigurationError):
    """Raised when an operation mix does not sum to 1.0 within tolerance."""

    def __init__(self, total: float, tolerance: float = 0.01):
        """
        Initialize an invalid proportions error.

        Args:
            total: Sum of the six configured proportions
            tolerance: Allowed absolute deviation from 1.0
        """
        self.total = total
        self.tolerance = tolerance
        super().__init__(
            f"Operation proportions sum to {total:.4f}, expected 1.0 +/- {tolerance}",
            config_key="operation_mix",
        )
        self.error_code = "INVALID_PROPORTIONS"
        self.context.update({"total": total, "tolerance": tolerance})


# Metrics Exceptions

class MetricsCollectionError(BenchmarkError):
    """Raised when a latency sample or snapshot cannot be recorded."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        """
        Initialize a metrics collection error.

        Args:
            message: Description of the failure
            cause: Optional underlying exception
        """
        self.cause = cause
        super().__init__(
            message,
            error_code="METRICS_COLLECTION_ERROR",
            context={"cause": str(cause) if cause else None},
        )


class MemoryProbeError(BenchmarkError):
    """Raised by memory probes that cannot read process memory."""

    def __init__(self, message: str, pid: Optional[int] = None):
        self.pid = pid
        super().__init__(message, error_code="MEMORY_PROBE_ERROR", context={"pid": pid})


# Result Exceptions

class ResultLoadError(BenchmarkError):
    """Raised when a persisted benchmark result cannot be read or parsed."""

    def __init__(self, path: str, message: Optional[str] = None, cause: Optional[Exception] = None):
        """
        Initialize a result load error.

        Args:
            path: Path of the result file
            message: Optional custom message
            cause: Optional underlying exception
        """
        self.path = path
        self.cause = cause
        default_message = f"Failed to load benchmark result from '{path}'"
        if cause:
            default_message += f": {cause}"
        super().__init__(
            message or default_message,
            error_code="RESULT_LOAD_ERROR",
            context={"path": path, "cause": str(cause) if cause else None},
        )


__all__ = [
    "BenchmarkError",
    "ConfigurationError",
    "InvalidProportionsError",
    "MetricsCollectionError",
    "MemoryProbeError",
    "ResultLoadError",
]

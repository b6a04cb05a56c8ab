"""Process memory probes used by the stability analyzer."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Optional, Protocol

import psutil

from ycsbench.core.exceptions import MemoryProbeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MemoryReading:
    """One memory observation.

    psutil exposes resident set size only, so allocation counters stay at zero
    unless a probe that tracks them supplies values.
    """

    resident_bytes: int
    peak_bytes: int
    allocations: int = 0
    deallocations: int = 0


class MemoryProbe(Protocol):
    def read(self) -> Optional[MemoryReading]:
        """Return the current reading, or ``None`` when memory cannot be observed."""
        ...


class ProcessMemoryProbe:
    """Read the resident set size of a process through psutil."""

    def __init__(self, pid: Optional[int] = None):
        self.pid = pid or os.getpid()
        try:
            self._process = psutil.Process(self.pid)
        except (psutil.Error, OSError) as exc:
            raise MemoryProbeError(f"Cannot attach memory probe: {exc}", pid=self.pid) from exc
        self._peak_bytes = 0
        self._lock = threading.Lock()
        logger.debug("ProcessMemoryProbe attached to process %s", self.pid)

    @property
    def peak_bytes(self) -> int:
        return self._peak_bytes

    def read(self) -> Optional[MemoryReading]:
        try:
            rss = int(self._process.memory_info().rss)
        except (psutil.Error, OSError) as exc:
            logger.debug("Memory reading for process %s unavailable: %s", self.pid, exc)
            return None

        with self._lock:
            if rss > self._peak_bytes:
                self._peak_bytes = rss
            peak = self._peak_bytes
        return MemoryReading(resident_bytes=rss, peak_bytes=peak)


__all__ = ["MemoryProbe", "MemoryReading", "ProcessMemoryProbe"]

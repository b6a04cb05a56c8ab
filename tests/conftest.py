"""Global pytest configuration for the ycsbench test suite.

Ensures the ``src`` tree is importable without an editable install and
provides a manually advanced millisecond clock so timing-driven components
(warmup windows, stability intervals, throughput) behave deterministically.
"""

import sys
from pathlib import Path
from typing import List, Optional

import pytest

# Make the 'ycsbench' package directly importable
project_root = Path(__file__).parent.parent
src_dir = project_root / "src"

if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))

from ycsbench.monitoring.probes import MemoryReading  # noqa: E402

MB = 1024 * 1024


class FakeClock:
    """Millisecond clock that only moves when told to.

    Starts at a non-zero epoch because collectors treat a start time of 0 as
    "not started".
    """

    def __init__(self, start_ms: float = 1_000_000.0):
        self.now = start_ms

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> float:
        self.now += ms
        return self.now


class ScriptedProbe:
    """Memory probe that replays a fixed list of resident sizes."""

    def __init__(self, resident_bytes: List[Optional[int]]):
        self._readings = list(resident_bytes)
        self.calls = 0

    def read(self) -> Optional[MemoryReading]:
        self.calls += 1
        if not self._readings:
            return None
        value = self._readings.pop(0)
        if value is None:
            return None
        return MemoryReading(resident_bytes=value, peak_bytes=value)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scripted_probe():
    return ScriptedProbe

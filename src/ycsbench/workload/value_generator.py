"""Synthetic record payloads for insert and update operations."""

from __future__ import annotations

import json
import random
import string
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, model_validator

from ycsbench.core.enums import ValueType

ALPHA_NUMERIC = string.ascii_letters + string.digits


class ValueConfig(BaseModel):
    """Shape of generated values."""

    value_type: ValueType = ValueType.FIXED
    size: int = Field(default=1024, ge=0)
    min_size: int = Field(default=100, ge=0)
    max_size: int = Field(default=10240, ge=0)
    field_count: int = Field(default=10, ge=1)
    field_length: int = Field(default=10, ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> ValueConfig:
        if self.max_size < self.min_size:
            raise ValueError("max_size must be greater than or equal to min_size")
        return self


class ValueGenerator:
    """Produce random payloads according to a :class:`ValueConfig`."""

    def __init__(self, config: Optional[ValueConfig] = None, rng: Optional[random.Random] = None):
        self.config = config or ValueConfig()
        self.random = rng or random.Random()

    def generate(self) -> bytes:
        if self.config.value_type is ValueType.VARIABLE:
            return self.generate_variable()
        if self.config.value_type is ValueType.JSON:
            return self.generate_json()
        return self.generate_fixed(self.config.size)

    def generate_fixed(self, size: int) -> bytes:
        return self.random_string(size).encode("ascii")

    def generate_variable(self) -> bytes:
        span = self.config.max_size - self.config.min_size
        size = self.config.min_size + (self.random.randrange(span) if span > 0 else 0)
        return self.generate_fixed(size)

    def generate_document(self) -> Dict[str, Any]:
        """Return a flat document of ``field0..fieldN`` with mixed value types."""
        document: Dict[str, Any] = {}
        for index in range(self.config.field_count):
            kind = self.random.randrange(4)
            if kind == 0:
                value: Any = self.random_string(self.config.field_length)
            elif kind == 1:
                value = self.random.randint(-(2 ** 63), 2 ** 63 - 1)
            elif kind == 2:
                value = self.random.random() < 0.5
            else:
                value = None
            document[f"field{index}"] = value
        return document

    def generate_json(self) -> bytes:
        return json.dumps(self.generate_document(), separators=(",", ":")).encode("utf-8")

    def random_string(self, length: int) -> str:
        return "".join(self.random.choices(ALPHA_NUMERIC, k=length))


__all__ = ["ValueConfig", "ValueGenerator"]

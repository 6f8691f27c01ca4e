"""Deterministic RNG container and the pluggable randomness contract."""

from __future__ import annotations

import hashlib
import random
from dataclasses import dataclass
from typing import Protocol

import numpy as np


class RandomSource(Protocol):
    """Anything that can draw a uniform float, e.g. ``random.Random``."""

    def uniform(self, a: float, b: float) -> float: ...


@dataclass
class DeterministicRNG:
    """Owns deterministic RNG streams without touching global random state."""

    seed: int

    def __post_init__(self) -> None:
        self.python_rng = random.Random(self.seed)
        self.numpy_rng = np.random.default_rng(self.seed)
        self._streams: dict[str, random.Random] = {}

    def stream(self, name: str) -> random.Random:
        """Return independent deterministic stream by name."""
        if name not in self._streams:
            # Stable across processes, unlike built-in hash().
            digest = hashlib.sha256(f"{self.seed}:{name}".encode("utf-8")).digest()
            derived_seed = int.from_bytes(digest[:8], byteorder="big", signed=False) & 0xFFFFFFFF
            self._streams[name] = random.Random(derived_seed)
        return self._streams[name]

    def avoidance_source(self) -> RandomSource:
        """Stream used for avoidance heading perturbation."""
        return self.stream("avoidance")

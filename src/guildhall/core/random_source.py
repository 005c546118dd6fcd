"""
Randomness source for reward resolution.

Production draws come from `secrets.SystemRandom`; a seed switches to a
reproducible `random.Random`. Resolver functions only use the four draws
declared on `RandomSource`, which keeps scripted test doubles small.
"""

from __future__ import annotations

import random
import secrets
from typing import Optional, Protocol, Sequence, TypeVar

T = TypeVar("T")


class RandomSource(Protocol):
    def random(self) -> float:
        """Uniform float in [0, 1)."""
        ...

    def uniform(self, a: float, b: float) -> float:
        ...

    def randint(self, a: int, b: int) -> int:
        """Uniform integer in [a, b], both ends inclusive."""
        ...

    def choice(self, seq: Sequence[T]) -> T:
        ...


class DefaultRandomSource:
    """`RandomSource` backed by the standard library generators."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng: random.Random
        if seed is None:
            self._rng = secrets.SystemRandom()
        else:
            self._rng = random.Random(seed)

    def random(self) -> float:
        return self._rng.random()

    def uniform(self, a: float, b: float) -> float:
        return self._rng.uniform(a, b)

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def choice(self, seq: Sequence[T]) -> T:
        return self._rng.choice(seq)

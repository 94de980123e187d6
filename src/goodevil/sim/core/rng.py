from __future__ import annotations

import random
from typing import List, TypeVar

T = TypeVar("T")


class DeterministicRng:
    def __init__(self, seed: int):
        self._seed = seed
        self._random = random.Random(seed)

    @property
    def seed(self) -> int:
        return self._seed

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_bool(self) -> bool:
        return self._random.random() < 0.5

    def next_range(self, low: int, high: int) -> int:
        """Uniform integer in ``[low, high)``."""
        return self._random.randrange(low, high)

    def shuffle(self, items: List[T]) -> None:
        self._random.shuffle(items)

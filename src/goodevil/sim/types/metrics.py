from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class GenerationStats:
    generation: int
    specimens: int
    min_energy: float
    average_energy: float
    max_energy: float
    stdev_energy: float
    deaths: int = 0
    collisions: int = 0
    resolution_passes: int = 0
    pool_energy: float = 0.0
    duration_ms: float = 0.0

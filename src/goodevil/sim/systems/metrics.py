from __future__ import annotations

import math
from typing import List

from loguru import logger

from ..core.errors import UnexpectedCollisionError
from ..core.grid import Grid
from ..core.specimen import Collision, Field, Occupied
from ..types.metrics import GenerationStats


def live_energies(grid: Grid[Field]) -> List[float]:
    energies: List[float] = []
    for (x, y), field in grid.items():
        if isinstance(field, Occupied):
            energies.append(field.specimen.energy)
        elif isinstance(field, Collision):
            raise UnexpectedCollisionError(f"collision at ({x}, {y}) in a settled grid")
    return energies


def create_stats(
    generation: int,
    grid: Grid[Field],
    deaths: int,
    collisions: int,
    resolution_passes: int,
    pool_energy: float,
    duration_ms: float,
) -> GenerationStats:
    energies = live_energies(grid)
    count = len(energies)
    if count:
        average = sum(energies) / count
        variance = sum((energy - average) ** 2 for energy in energies) / count
        min_energy = min(energies)
        max_energy = max(energies)
    else:
        average = variance = min_energy = max_energy = 0.0
    return GenerationStats(
        generation=generation,
        specimens=count,
        min_energy=min_energy,
        average_energy=average,
        max_energy=max_energy,
        stdev_energy=math.sqrt(variance),
        deaths=deaths,
        collisions=collisions,
        resolution_passes=resolution_passes,
        pool_energy=pool_energy,
        duration_ms=duration_ms,
    )


def log_stats(stats: GenerationStats) -> None:
    logger.info(
        "iter {} specimens {} min {:.4f} avg {:.4f} max {:.4f} stdev {:.4f}",
        stats.generation,
        stats.specimens,
        stats.min_energy,
        stats.average_energy,
        stats.max_energy,
        stats.stdev_energy,
    )

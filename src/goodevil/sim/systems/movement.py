from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from loguru import logger

from ..core.config import GoodEvilConfig
from ..core.errors import UnexpectedCollisionError
from ..core.grid import Grid
from ..core.rng import DeterministicRng
from ..core.specimen import EMPTY, Collision, Field, Occupied, Specimen, merge
from ..utils.neighborhood import clamped_bounds


@dataclass(slots=True)
class MovementResult:
    grid: Grid[Field]
    reclaimed_energy: float
    deaths: int
    survivors: int


def place(grid: Grid[Field], x: int, y: int, specimen: Specimen) -> None:
    grid.set(x, y, merge(grid.at(x, y), specimen))


def pick_destination(x: int, y: int, width: int, height: int, rng: DeterministicRng) -> Tuple[int, int]:
    min_x, max_x, min_y, max_y = clamped_bounds(x, y, width, height)
    return (rng.next_range(min_x, max_x), rng.next_range(min_y, max_y))


def move_specimens(old: Grid[Field], config: GoodEvilConfig, rng: DeterministicRng) -> MovementResult:
    """Build the next grid by draining energy from every specimen and moving the survivors.

    ``old`` is only read. Survivors land in a freshly allocated grid, so a
    specimen only collides with the ones placed before it in this pass.
    """
    new: Grid[Field] = Grid(old.width, old.height, EMPTY)
    loss = config.energy_loss_per_step
    reclaimed = 0.0
    deaths = 0
    survivors = 0

    for (x, y), field in old.items():
        if isinstance(field, Collision):
            logger.error("Collision at ({}, {}) entering the movement phase", x, y)
            raise UnexpectedCollisionError(f"collision at ({x}, {y}) in a settled grid")
        if not isinstance(field, Occupied):
            continue

        reclaimed += loss
        energy = field.specimen.energy - loss
        if energy < config.deadly_energy_margin:
            logger.debug("Specimen at ({}, {}) died (energy = {} < {})", x, y, energy, config.deadly_energy_margin)
            reclaimed += energy
            deaths += 1
            continue

        dst_x, dst_y = pick_destination(x, y, old.width, old.height, rng)
        place(new, dst_x, dst_y, Specimen(energy=energy))
        survivors += 1

    return MovementResult(grid=new, reclaimed_energy=reclaimed, deaths=deaths, survivors=survivors)

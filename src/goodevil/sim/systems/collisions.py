from __future__ import annotations

from typing import List, Tuple

from loguru import logger

from ..core.errors import PlacementError
from ..core.grid import Grid
from ..core.rng import DeterministicRng
from ..core.specimen import EMPTY, Collision, Field, Occupied
from ..utils.neighborhood import clamped_neighborhood
from .energy_split import SplitPolicy
from .movement import place


def has_collisions(grid: Grid[Field]) -> bool:
    return any(isinstance(field, Collision) for field in grid)


def count_contested(grid: Grid[Field]) -> int:
    return sum(len(field.specimens) for field in grid if isinstance(field, Collision))


def count_collision_cells(grid: Grid[Field]) -> int:
    return sum(1 for field in grid if isinstance(field, Collision))


def count_specimens(grid: Grid[Field]) -> int:
    return sum(field.specimen_count() for field in grid)


def total_energy(grid: Grid[Field]) -> float:
    total = 0.0
    for field in grid:
        if isinstance(field, Occupied):
            total += field.specimen.energy
        elif isinstance(field, Collision):
            total += sum(s.energy for s in field.specimens)
    return total


def assign_positions(
    x: int, y: int, count: int, width: int, height: int, rng: DeterministicRng
) -> List[Tuple[int, int]]:
    cells = clamped_neighborhood(x, y, width, height)
    if count > len(cells):
        raise PlacementError(f"{count} contestants at ({x}, {y}) but only {len(cells)} cells around it")
    rng.shuffle(cells)
    return cells[:count]


def resolve_pass(
    old: Grid[Field], pool_energy: float, split: SplitPolicy, rng: DeterministicRng
) -> Grid[Field]:
    """Run one resolution pass and return the freshly built grid.

    Every contested specimen is entitled to an equal share of ``pool_energy``;
    each collision cell hands its combined share to ``split`` and scatters the
    result over its clamped neighborhood. Scattering can create new collisions,
    which the next pass picks up.
    """
    new: Grid[Field] = Grid(old.width, old.height, EMPTY)
    contested = count_contested(old)
    gain = pool_energy / contested if contested else 0.0

    for (x, y), field in old.items():
        if isinstance(field, Occupied):
            place(new, x, y, field.specimen)
        elif isinstance(field, Collision):
            contestants = split(field.specimens, len(field.specimens) * gain)
            positions = assign_positions(x, y, len(contestants), old.width, old.height, rng)
            for (new_x, new_y), specimen in zip(positions, contestants):
                place(new, new_x, new_y, specimen)

    logger.debug("Resolved {} contested specimens (gain {:.6f} each)", contested, gain)
    return new

from __future__ import annotations

from ..core.grid import Grid
from ..core.rng import DeterministicRng
from ..utils.neighborhood import torus_neighbors


def count_alive_neighbors(grid: Grid[bool], x: int, y: int) -> int:
    return sum(1 for nx, ny in torus_neighbors(x, y, grid.width, grid.height) if grid.at(nx, ny))


def advance_grid(old: Grid[bool]) -> Grid[bool]:
    new: Grid[bool] = Grid(old.width, old.height, False)
    for (x, y), alive in old.items():
        neighbors = count_alive_neighbors(old, x, y)
        new.set(x, y, (not alive and neighbors == 3) or (alive and neighbors in (2, 3)))
    return new


class GameOfLife:
    def __init__(self, grid: Grid[bool]):
        self._grid = grid

    @classmethod
    def random(cls, width: int, height: int, rng: DeterministicRng) -> "GameOfLife":
        return cls(Grid.random(width, height, rng.next_bool))

    @property
    def grid(self) -> Grid[bool]:
        return self._grid

    def advance(self) -> None:
        self._grid = advance_grid(self._grid)

    def alive_count(self) -> int:
        return sum(1 for alive in self._grid if alive)

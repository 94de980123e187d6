from __future__ import annotations

from typing import Iterator, List, Tuple


def torus_neighbors(x: int, y: int, width: int, height: int) -> Iterator[Tuple[int, int]]:
    """Yield the 8 cells around ``(x, y)`` with wrap-around on both axes.

    Raster order over the local 3x3 block, center skipped.
    """
    for idx in range(9):
        if idx == 4:
            continue
        dx = idx % 3
        dy = idx // 3
        yield ((x + dx - 1) % width, (y + dy - 1) % height)


def clamped_bounds(x: int, y: int, width: int, height: int) -> Tuple[int, int, int, int]:
    """Half-open ``(min_x, max_x, min_y, max_y)`` of the 3x3 block, clipped to the board."""
    return (max(0, x - 1), min(x + 2, width), max(0, y - 1), min(y + 2, height))


def clamped_neighborhood(x: int, y: int, width: int, height: int) -> List[Tuple[int, int]]:
    min_x, max_x, min_y, max_y = clamped_bounds(x, y, width, height)
    return [(nx, ny) for nx in range(min_x, max_x) for ny in range(min_y, max_y)]

from __future__ import annotations

from typing import Callable, Generic, Iterator, List, Tuple, TypeVar

T = TypeVar("T")


def indices_2d(width: int, height: int) -> Iterator[Tuple[int, int]]:
    for y in range(height):
        for x in range(width):
            yield (x, y)


class Grid(Generic[T]):
    """Fixed-size row-major 2-D array.

    Cell ``(x, y)`` lives in slot ``y * width + x``. A grid is never resized;
    simulations build a fresh one per step and replace the old one.
    """

    __slots__ = ("_cells", "_width", "_height")

    def __init__(self, width: int, height: int, default: T) -> None:
        self._width = width
        self._height = height
        self._cells: List[T] = [default] * (width * height)

    @classmethod
    def random(cls, width: int, height: int, sample: Callable[[], T]) -> "Grid[T]":
        grid: Grid[T] = cls.__new__(cls)
        grid._width = width
        grid._height = height
        grid._cells = [sample() for _ in range(width * height)]
        return grid

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[T]:
        return iter(self._cells)

    def at(self, x: int, y: int) -> T:
        return self._cells[self._slot(x, y)]

    def set(self, x: int, y: int, value: T) -> None:
        self._cells[self._slot(x, y)] = value

    def indices(self) -> Iterator[Tuple[int, int]]:
        return indices_2d(self._width, self._height)

    def items(self) -> Iterator[Tuple[Tuple[int, int], T]]:
        return zip(self.indices(), self._cells)

    def _slot(self, x: int, y: int) -> int:
        if not (0 <= x < self._width and 0 <= y < self._height):
            raise IndexError(f"({x}, {y}) outside {self._width}x{self._height} grid")
        return y * self._width + x

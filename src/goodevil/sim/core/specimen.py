from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union


@dataclass(frozen=True, slots=True)
class Specimen:
    energy: float


class FieldState(str, Enum):
    EMPTY = "empty"
    OCCUPIED = "occupied"
    COLLISION = "collision"


@dataclass(frozen=True, slots=True)
class EmptyField:
    state = FieldState.EMPTY

    def specimen_count(self) -> int:
        return 0


@dataclass(frozen=True, slots=True)
class Occupied:
    specimen: Specimen
    state = FieldState.OCCUPIED

    def specimen_count(self) -> int:
        return 1


@dataclass(frozen=True, slots=True)
class Collision:
    specimens: Tuple[Specimen, ...]
    state = FieldState.COLLISION

    def specimen_count(self) -> int:
        return len(self.specimens)


Field = Union[EmptyField, Occupied, Collision]

EMPTY = EmptyField()


def merge(field: Field, specimen: Specimen) -> Field:
    """Return the field that results from placing ``specimen`` into ``field``."""
    if isinstance(field, EmptyField):
        return Occupied(specimen)
    if isinstance(field, Occupied):
        return Collision((field.specimen, specimen))
    if isinstance(field, Collision):
        return Collision(field.specimens + (specimen,))
    raise TypeError(f"not a field: {field!r}")

from __future__ import annotations

from time import perf_counter
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from .config import GoodEvilConfig, SimulationConfig
from .errors import (
    ConfigError,
    ExtinctionError,
    ResolutionDidNotConvergeError,
    SeedingError,
    SpecimenCountDecreasedError,
)
from .grid import Grid
from .rng import DeterministicRng
from .specimen import EMPTY, Collision, EmptyField, Field, Occupied, Specimen
from ..systems import collisions, metrics as metrics_system, movement
from ..systems.energy_split import SplitPolicy, get_split_policy
from ..types.metrics import GenerationStats
from ..types.snapshot import Snapshot, SnapshotBoard, SnapshotMetadata

Observer = Callable[[GenerationStats], None]


def find_empty_field(grid: Grid[Field], rng: DeterministicRng) -> tuple[int, int]:
    loop_limit = grid.width * grid.height
    for _ in range(loop_limit):
        x = rng.next_range(0, grid.width)
        y = rng.next_range(0, grid.height)
        if isinstance(grid.at(x, y), EmptyField):
            return (x, y)
    raise SeedingError(f"could not find an empty field in {loop_limit} iterations")


class GoodEvil:
    """Energy-bearing specimens wandering a bounded lattice.

    Each :meth:`advance` drains every specimen, moves the survivors one cell
    at most, then resolves collisions until every cell holds at most one
    specimen. Energy drained or left behind by the dead accumulates in
    ``collision_energy`` and is handed out to the contestants of the next
    collision.
    """

    def __init__(
        self,
        width: int,
        height: int,
        config: GoodEvilConfig,
        rng: DeterministicRng,
        observer: Optional[Observer] = None,
    ):
        if width < 2 or height < 2:
            raise ConfigError(f"board must be at least 2x2, got {width}x{height}")
        if config.num_specimens < 0 or config.num_specimens > width * height:
            raise ConfigError(f"{config.num_specimens} specimens do not fit on a {width}x{height} board")
        if config.max_resolution_passes < 1:
            raise ConfigError("max_resolution_passes must be positive")
        self._config = config
        self._split: SplitPolicy = get_split_policy(config.split_policy)
        self._rng = rng
        self._observer = observer if observer is not None else metrics_system.log_stats
        self._width = width
        self._height = height
        self._collision_energy = 0.0
        self._generation = 0
        self._stats: GenerationStats | None = None
        self._grid = self._seed_grid()

    @classmethod
    def from_config(cls, config: SimulationConfig, observer: Optional[Observer] = None) -> "GoodEvil":
        return cls(config.width, config.height, config.goodevil, DeterministicRng(config.seed), observer)

    @property
    def config(self) -> GoodEvilConfig:
        return self._config

    @property
    def grid(self) -> Grid[Field]:
        return self._grid

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def collision_energy(self) -> float:
        return self._collision_energy

    @property
    def stats(self) -> GenerationStats | None:
        return self._stats

    def reset(self) -> None:
        self._rng.reset()
        self._collision_energy = 0.0
        self._generation = 0
        self._stats = None
        self._grid = self._seed_grid()

    def advance(self) -> GenerationStats:
        start = perf_counter()
        config = self._config

        moved = movement.move_specimens(self._grid, config, self._rng)
        self._collision_energy += moved.reclaimed_energy
        grid = moved.grid
        specimens = moved.survivors
        collision_cells = collisions.count_collision_cells(grid)

        previous = specimens
        passes = 0
        while collisions.has_collisions(grid):
            if passes >= config.max_resolution_passes:
                logger.error("Collisions still unresolved after {} passes", passes)
                raise ResolutionDidNotConvergeError(
                    f"collisions unresolved after {passes} passes in generation {self._generation + 1}"
                )
            grid = collisions.resolve_pass(grid, self._collision_energy, self._split, self._rng)
            self._collision_energy = 0.0
            passes += 1
            current = collisions.count_specimens(grid)
            if current < previous:
                logger.error("Specimen count dropped from {} to {} on pass {}", previous, current, passes)
                raise SpecimenCountDecreasedError(
                    f"specimen count dropped from {previous} to {current} on resolution pass {passes}"
                )
            previous = current

        self._grid = grid
        if specimens == 0:
            logger.error("All specimens died in generation {}", self._generation + 1)
            raise ExtinctionError(self._generation + 1)

        self._generation += 1
        self._stats = metrics_system.create_stats(
            self._generation,
            grid,
            deaths=moved.deaths,
            collisions=collision_cells,
            resolution_passes=passes,
            pool_energy=self._collision_energy,
            duration_ms=(perf_counter() - start) * 1000.0,
        )
        self._observer(self._stats)
        return self._stats

    def specimens(self) -> List[Specimen]:
        found: List[Specimen] = []
        for field in self._grid:
            if isinstance(field, Occupied):
                found.append(field.specimen)
            elif isinstance(field, Collision):
                found.extend(field.specimens)
        return found

    def snapshot(self) -> Snapshot:
        cells: List[Dict[str, Any]] = []
        for (x, y), field in self._grid.items():
            entry: Dict[str, Any] = {"x": x, "y": y, "state": field.state.value}
            if isinstance(field, Occupied):
                entry["energy"] = field.specimen.energy
            elif isinstance(field, Collision):
                entry["energies"] = [s.energy for s in field.specimens]
            cells.append(entry)
        return Snapshot(
            generation=self._generation,
            stats=self._stats,
            cells=cells,
            board=SnapshotBoard(width=self._width, height=self._height, pool_energy=self._collision_energy),
            metadata=SnapshotMetadata(seed=self._rng.seed, split_policy=self._config.split_policy),
        )

    def _seed_grid(self) -> Grid[Field]:
        grid: Grid[Field] = Grid(self._width, self._height, EMPTY)
        specimen = Specimen(energy=self._config.initial_specimen_energy)
        for _ in range(self._config.num_specimens):
            x, y = find_empty_field(grid, self._rng)
            grid.set(x, y, Occupied(specimen))
        return grid

from __future__ import annotations

import pytest

from goodevil.sim.core.config import GoodEvilConfig, SimulationConfig
from goodevil.sim.core.engine import GoodEvil
from goodevil.sim.core.errors import (
    ConfigError,
    ExtinctionError,
    ResolutionDidNotConvergeError,
    SeedingError,
    SpecimenCountDecreasedError,
    UnexpectedCollisionError,
)
from goodevil.sim.core.grid import Grid
from goodevil.sim.core.rng import DeterministicRng
from goodevil.sim.core.specimen import EMPTY, Collision, Occupied, Specimen
from goodevil.sim.systems import collisions, movement
from goodevil.sim.systems.energy_split import SPLIT_POLICIES


class _FirstCellRng(DeterministicRng):
    def next_range(self, low: int, high: int) -> int:
        return low


def _engine(width=20, height=20, seed=1, observer=None, **overrides) -> GoodEvil:
    config = GoodEvilConfig(**overrides)
    return GoodEvil(width, height, config, DeterministicRng(seed), observer=observer or (lambda stats: None))


def _live_energy(engine: GoodEvil) -> float:
    return sum(s.energy for s in engine.specimens())


def test_construction_places_every_specimen_on_its_own_cell():
    engine = _engine(num_specimens=50, initial_specimen_energy=2.0)
    occupied = [field for field in engine.grid if isinstance(field, Occupied)]
    assert len(occupied) == 50
    assert all(field.specimen.energy == 2.0 for field in occupied)
    assert not collisions.has_collisions(engine.grid)
    assert engine.generation == 0
    assert engine.collision_energy == 0.0


@pytest.mark.parametrize(
    "width,height,overrides",
    [
        (1, 5, {}),
        (5, 1, {}),
        (2, 2, {"num_specimens": 5}),
        (4, 4, {"num_specimens": 1, "split_policy": "nobody_gets_anything"}),
        (4, 4, {"num_specimens": 1, "max_resolution_passes": 0}),
    ],
)
def test_invalid_setup_is_rejected(width, height, overrides):
    with pytest.raises(ConfigError):
        _engine(width, height, **overrides)


def test_seeding_gives_up_after_board_area_attempts():
    config = GoodEvilConfig(num_specimens=2)
    with pytest.raises(SeedingError):
        GoodEvil(2, 2, config, _FirstCellRng(0))


def test_single_specimen_loses_exactly_the_step_loss_until_extinct():
    config = GoodEvilConfig(
        num_specimens=1,
        initial_specimen_energy=1.0,
        energy_loss_per_step=0.1,
        deadly_energy_margin=0.0,
    )
    engine = GoodEvil(2, 2, config, DeterministicRng(1234), observer=lambda stats: None)

    expected = 1.0
    for generation in range(1, 100):
        expected -= 0.1
        if expected < 0.0:
            with pytest.raises(ExtinctionError) as excinfo:
                engine.advance()
            assert excinfo.value.generation == generation
            assert generation in (10, 11)
            break
        stats = engine.advance()
        assert stats.generation == generation
        assert stats.specimens == 1
        assert stats.collisions == 0
        assert stats.resolution_passes == 0
        assert engine.specimens()[0].energy == expected
    else:
        pytest.fail("specimen never died")


def test_extinction_is_raised_instead_of_an_empty_board():
    engine = _engine(3, 3, num_specimens=1, initial_specimen_energy=0.05, energy_loss_per_step=0.1)
    with pytest.raises(ExtinctionError):
        engine.advance()
    assert engine.generation == 0


@pytest.mark.parametrize("policy", ["weak_takes_all", "strong_takes_all", "equal_split", "poor_half_split"])
def test_live_energy_plus_pool_is_conserved(policy):
    engine = _engine(
        num_specimens=80,
        initial_specimen_energy=1.0,
        energy_loss_per_step=0.02,
        split_policy=policy,
    )
    total_collisions = 0
    for _ in range(20):
        before = _live_energy(engine) + engine.collision_energy
        stats = engine.advance()
        total_collisions += stats.collisions
        after = _live_energy(engine) + engine.collision_energy
        assert after == pytest.approx(before)
        assert stats.specimens == 80
        if stats.collisions:
            assert engine.collision_energy == 0.0
    assert total_collisions > 0


def test_dead_specimens_feed_the_pool():
    engine = _engine(4, 4, num_specimens=0, energy_loss_per_step=0.1, deadly_energy_margin=0.0)
    grid = Grid(4, 4, EMPTY)
    grid.set(0, 0, Occupied(Specimen(0.05)))
    grid.set(3, 3, Occupied(Specimen(5.0)))
    engine._grid = grid

    stats = engine.advance()

    assert stats.deaths == 1
    assert stats.specimens == 1
    assert engine.specimens()[0].energy == pytest.approx(4.9)
    # two step losses plus the dead specimen's remaining (negative) energy
    assert engine.collision_energy == pytest.approx(0.15)


def test_collision_in_a_settled_grid_is_fatal():
    engine = _engine(4, 4, num_specimens=0)
    grid = Grid(4, 4, EMPTY)
    grid.set(1, 1, Collision((Specimen(1.0), Specimen(1.0))))
    engine._grid = grid
    with pytest.raises(UnexpectedCollisionError):
        engine.advance()


def _collided_movement(old, config, rng):
    grid = Grid(old.width, old.height, EMPTY)
    grid.set(1, 1, Collision((Specimen(1.0), Specimen(2.0))))
    return movement.MovementResult(grid=grid, reclaimed_energy=0.0, deaths=0, survivors=2)


def test_unresolvable_collisions_hit_the_pass_limit(monkeypatch):
    engine = _engine(4, 4, num_specimens=2, max_resolution_passes=3)
    monkeypatch.setattr(movement, "move_specimens", _collided_movement)
    monkeypatch.setattr(collisions, "resolve_pass", lambda grid, pool, split, rng: grid)
    with pytest.raises(ResolutionDidNotConvergeError):
        engine.advance()


def test_losing_specimens_during_resolution_is_fatal(monkeypatch):
    engine = _engine(4, 4, num_specimens=2)
    monkeypatch.setattr(movement, "move_specimens", _collided_movement)

    def _drop_everyone(grid, pool, split, rng):
        return Grid(grid.width, grid.height, EMPTY)

    monkeypatch.setattr(collisions, "resolve_pass", _drop_everyone)
    with pytest.raises(SpecimenCountDecreasedError):
        engine.advance()


def test_specimen_count_is_checked_against_the_previous_pass(monkeypatch):
    engine = _engine(4, 4, num_specimens=2)
    monkeypatch.setattr(movement, "move_specimens", _collided_movement)

    grown = Grid(4, 4, EMPTY)
    grown.set(1, 1, Collision(tuple(Specimen(1.0) for _ in range(4))))
    shrunk = Grid(4, 4, EMPTY)
    for x in range(3):
        shrunk.set(x, 0, Occupied(Specimen(1.0)))
    passes = iter([grown, shrunk])

    monkeypatch.setattr(collisions, "resolve_pass", lambda grid, pool, split, rng: next(passes))
    # three specimens is still above the two left after movement
    with pytest.raises(SpecimenCountDecreasedError, match="from 4 to 3"):
        engine.advance()


def test_observer_receives_every_generation():
    seen = []
    engine = _engine(num_specimens=30, observer=seen.append)
    for _ in range(3):
        engine.advance()
    assert [stats.generation for stats in seen] == [1, 2, 3]
    assert all(stats.specimens == 30 for stats in seen)
    last = seen[-1]
    assert last.min_energy <= last.average_energy <= last.max_energy
    assert last.stdev_energy >= 0.0
    assert engine.stats is last


def test_same_seed_same_history():
    def run(seed):
        engine = _engine(num_specimens=60, seed=seed)
        for _ in range(10):
            engine.advance()
        return engine.snapshot().cells

    assert run(7) == run(7)
    assert run(7) != run(8)


def test_reset_replays_from_the_seed():
    engine = _engine(num_specimens=40, seed=5)
    initial = engine.snapshot().cells
    engine.advance()
    engine.advance()
    engine.reset()
    assert engine.generation == 0
    assert engine.collision_energy == 0.0
    assert engine.snapshot().cells == initial


def test_snapshot_describes_every_cell():
    engine = _engine(5, 4, num_specimens=6, seed=3)
    engine.advance()
    snapshot = engine.snapshot()

    assert snapshot.generation == 1
    assert snapshot.board.width == 5
    assert snapshot.board.height == 4
    assert len(snapshot.cells) == 20
    assert [(c["x"], c["y"]) for c in snapshot.cells] == list(engine.grid.indices())
    states = {c["state"] for c in snapshot.cells}
    assert states <= {"empty", "occupied"}
    assert sum(1 for c in snapshot.cells if c["state"] == "occupied") == 6
    assert snapshot.metadata.seed == 3
    assert snapshot.metadata.split_policy == "weak_takes_all"


def test_from_config_uses_board_and_seed():
    config = SimulationConfig(width=6, height=5, seed=11, goodevil=GoodEvilConfig(num_specimens=4))
    engine = GoodEvil.from_config(config, observer=lambda stats: None)
    assert engine.grid.width == 6
    assert engine.grid.height == 5
    assert len(engine.specimens()) == 4
    assert engine.snapshot().metadata.seed == 11


def test_every_policy_runs_a_few_generations():
    for name in SPLIT_POLICIES:
        engine = _engine(num_specimens=60, split_policy=name)
        for _ in range(5):
            stats = engine.advance()
        assert stats.specimens >= 60

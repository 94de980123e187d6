from __future__ import annotations

from goodevil.sim.core.specimen import EMPTY, Collision, FieldState, Occupied, Specimen, merge


def test_merge_into_empty_occupies_the_cell():
    specimen = Specimen(energy=1.0)
    assert merge(EMPTY, specimen) == Occupied(specimen)


def test_merge_into_occupied_creates_collision_in_arrival_order():
    first = Specimen(energy=1.0)
    second = Specimen(energy=2.0)
    assert merge(Occupied(first), second) == Collision((first, second))


def test_merge_into_collision_appends():
    a, b, c = Specimen(1.0), Specimen(2.0), Specimen(3.0)
    field = merge(merge(merge(EMPTY, a), b), c)
    assert field == Collision((a, b, c))
    assert field.specimen_count() == 3
    assert field.state is FieldState.COLLISION


def test_fields_are_values():
    original = Collision((Specimen(1.0), Specimen(2.0)))
    merged = merge(original, Specimen(3.0))
    assert len(original.specimens) == 2
    assert merged is not original
    assert not hasattr(Specimen(1.0), "__dict__")

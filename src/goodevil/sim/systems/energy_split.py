from __future__ import annotations

from typing import Callable, Dict, List, Sequence

from ..core.errors import ConfigError
from ..core.specimen import Specimen

SplitPolicy = Callable[[Sequence[Specimen], float], List[Specimen]]

OFFSPRING_ENERGY_THRESHOLD = 1.5


def _ascending(specimens: Sequence[Specimen]) -> List[Specimen]:
    return sorted(specimens, key=lambda s: s.energy)


def weak_takes_all(specimens: Sequence[Specimen], available_energy: float) -> List[Specimen]:
    ordered = _ascending(specimens)
    if ordered:
        ordered[0] = Specimen(energy=ordered[0].energy + available_energy)
    return ordered


def strong_takes_all(specimens: Sequence[Specimen], available_energy: float) -> List[Specimen]:
    ordered = _ascending(specimens)
    if ordered:
        ordered[-1] = Specimen(energy=ordered[-1].energy + available_energy)
    return ordered


def equal_split(specimens: Sequence[Specimen], available_energy: float) -> List[Specimen]:
    if not specimens:
        return []
    part = available_energy / len(specimens)
    return [Specimen(energy=s.energy + part) for s in specimens]


def equal_split_with_offspring(specimens: Sequence[Specimen], available_energy: float) -> List[Specimen]:
    """Equal split, then every specimen above the threshold halves itself.

    Offspring are listed first, followed by all parents in input order.
    """
    parents = equal_split(specimens, available_energy)
    offspring: List[Specimen] = []
    for idx, specimen in enumerate(parents):
        if specimen.energy > OFFSPRING_ENERGY_THRESHOLD:
            half = Specimen(energy=specimen.energy / 2.0)
            offspring.append(half)
            parents[idx] = half
    return offspring + parents


def poor_half_split(specimens: Sequence[Specimen], available_energy: float) -> List[Specimen]:
    if not specimens:
        return []
    part = available_energy * 2.0 / len(specimens)
    remaining = available_energy
    result: List[Specimen] = []
    for specimen in _ascending(specimens):
        gain = part if part < remaining else remaining
        remaining -= gain
        result.append(Specimen(energy=specimen.energy + gain))
    return result


SPLIT_POLICIES: Dict[str, SplitPolicy] = {
    "weak_takes_all": weak_takes_all,
    "strong_takes_all": strong_takes_all,
    "equal_split": equal_split,
    "equal_split_with_offspring": equal_split_with_offspring,
    "poor_half_split": poor_half_split,
}

DEFAULT_SPLIT_POLICY = "weak_takes_all"


def get_split_policy(name: str) -> SplitPolicy:
    try:
        return SPLIT_POLICIES[name]
    except KeyError:
        known = ", ".join(sorted(SPLIT_POLICIES))
        raise ConfigError(f"unknown split policy {name!r} (known: {known})") from None

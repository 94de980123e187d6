class GoodEvilError(Exception):
    """Base for all simulation invariant violations."""

    pass


class ConfigError(GoodEvilError):
    """Board dimensions, population or policy settings the model cannot run with."""

    pass


class SeedingError(GoodEvilError):
    """No empty cell found while placing the initial population."""

    pass


class UnexpectedCollisionError(GoodEvilError):
    """A collision field showed up in a grid that must be stable."""

    pass


class SpecimenCountDecreasedError(GoodEvilError):
    """Specimens disappeared between collision resolution passes."""

    pass


class ResolutionDidNotConvergeError(GoodEvilError):
    """Collision resolution exceeded its pass limit."""

    pass


class PlacementError(GoodEvilError):
    """Not enough neighborhood cells to re-place every contestant."""

    pass


class ExtinctionError(GoodEvilError):
    """No specimen survived the generation."""

    def __init__(self, generation: int):
        super().__init__(f"all specimens died in generation {generation}")
        self.generation = generation

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .errors import ConfigError


@dataclass
class GoodEvilConfig:
    num_specimens: int = 400
    initial_specimen_energy: float = 1.0
    energy_loss_per_step: float = 0.01
    deadly_energy_margin: float = 0.0
    split_policy: str = "weak_takes_all"
    # Safety bound for the collision resolution loop
    max_resolution_passes: int = 1000


@dataclass
class SimulationConfig:
    width: int = 80
    height: int = 60
    seed: int = 42
    time_step: float = 0.01
    config_version: str = "v1"
    goodevil: GoodEvilConfig = field(default_factory=GoodEvilConfig)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        try:
            data = yaml.safe_load(Path(path).read_text())
        except yaml.YAMLError as exc:
            raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
        return load_config(data or {})


@dataclass
class AppConfig:
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    broadcast_interval: int = 1


def load_config(raw: dict) -> SimulationConfig:
    if not isinstance(raw, dict):
        raise ConfigError(f"expected a mapping, got {type(raw).__name__}")
    try:
        goodevil = GoodEvilConfig(**raw.get("goodevil", {}))
        sim_values = {k: v for k, v in raw.items() if k != "goodevil"}
        return SimulationConfig(goodevil=goodevil, **sim_values)
    except TypeError as exc:
        raise ConfigError(f"unknown configuration key: {exc}") from exc


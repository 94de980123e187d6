from __future__ import annotations

import argparse
import csv
import json
import math
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from loguru import logger

from ..sim.core.config import SimulationConfig
from ..sim.core.engine import GoodEvil
from ..sim.core.errors import GoodEvilError
from ..sim.systems.energy_split import SPLIT_POLICIES
from ..sim.types.metrics import GenerationStats
from ..sim.utils.log import setup_logging


_BASIC_HEADER = [
    "generation",
    "specimens",
    "min_energy",
    "avg_energy",
    "max_energy",
    "stdev_energy",
    "gen_ms",
]

_DETAILED_HEADER = [
    "generation",
    "specimens",
    "min_energy",
    "avg_energy",
    "max_energy",
    "stdev_energy",
    "gen_ms",
    "deaths",
    "collisions",
    "resolution_passes",
    "pool_energy",
    "deaths_per_specimen",
    "collisions_per_specimen",
    "occupancy",
]


def _format_basic_row(stats: GenerationStats, gen_ms: float) -> list[object]:
    return [
        stats.generation,
        stats.specimens,
        f"{stats.min_energy:.4f}",
        f"{stats.average_energy:.4f}",
        f"{stats.max_energy:.4f}",
        f"{stats.stdev_energy:.4f}",
        f"{gen_ms:.3f}",
    ]


def _format_detailed_row(engine: GoodEvil, stats: GenerationStats, gen_ms: float) -> list[object]:
    specimens = stats.specimens
    if specimens <= 0:
        deaths_per_specimen = 0.0
        collisions_per_specimen = 0.0
    else:
        deaths_per_specimen = stats.deaths / specimens
        collisions_per_specimen = stats.collisions / specimens
    area = engine.grid.width * engine.grid.height
    occupancy = specimens / area if area > 0 else 0.0
    return _format_basic_row(stats, gen_ms) + [
        stats.deaths,
        stats.collisions,
        stats.resolution_passes,
        f"{stats.pool_energy:.4f}",
        f"{deaths_per_specimen:.4f}",
        f"{collisions_per_specimen:.4f}",
        f"{occupancy:.6f}",
    ]


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "stdev": 0.0}
    count = len(values)
    avg = sum(values) / count
    variance = sum((value - avg) ** 2 for value in values) / count
    return {
        "min": float(min(values)),
        "max": float(max(values)),
        "avg": float(avg),
        "stdev": float(math.sqrt(variance)),
    }


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    log_format: str = "detailed",
    summary_path: Optional[Path] = None,
    summary_window: int = 100,
    config: Optional[SimulationConfig] = None,
) -> List[GenerationStats]:
    config = config if config is not None else SimulationConfig()
    if seed is not None:
        config = replace(config, seed=seed)

    log_mode = log_format.lower().strip()
    if log_mode not in {"basic", "detailed"}:
        raise ValueError(f"Unknown log format: {log_format}")

    engine = GoodEvil.from_config(config)
    history: List[GenerationStats] = []

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_DETAILED_HEADER if log_mode == "detailed" else _BASIC_HEADER)

    try:
        for _ in range(steps):
            stats = engine.advance()
            history.append(stats)
            if writer:
                gen_ms = 0.0 if deterministic_log else stats.duration_ms
                if log_mode == "detailed":
                    writer.writerow(_format_detailed_row(engine, stats, gen_ms))
                else:
                    writer.writerow(_format_basic_row(stats, gen_ms))
    finally:
        if csv_file:
            csv_file.close()

    if summary_path:
        window = max(1, int(summary_window))
        tail = history[-window:]
        gen_ms_series = [0.0 if deterministic_log else s.duration_ms for s in history]
        summary = {
            "steps": steps,
            "generations": len(history),
            "seed": config.seed,
            "width": config.width,
            "height": config.height,
            "split_policy": config.goodevil.split_policy,
            "log_format": log_mode,
            "deterministic_log": deterministic_log,
            "gen_ms": _summary_stats(gen_ms_series),
            "specimens": _summary_stats([float(s.specimens) for s in history]),
            "average_energy": _summary_stats([s.average_energy for s in history]),
            "resolution_passes": _summary_stats([float(s.resolution_passes) for s in history]),
            "deaths": sum(s.deaths for s in history),
            "tail_window": {
                "window": window,
                "specimens": _summary_stats([float(s.specimens) for s in tail]),
                "average_energy": _summary_stats([s.average_energy for s in tail]),
            },
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))

    return history


def _build_config(args: argparse.Namespace) -> SimulationConfig:
    config = SimulationConfig.from_yaml(args.config) if args.config else SimulationConfig()
    if args.width is not None:
        config.width = args.width
    if args.height is not None:
        config.height = args.height
    if args.specimens is not None:
        config.goodevil.num_specimens = args.specimens
    if args.policy is not None:
        config.goodevil.split_policy = args.policy
    return config


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless GoodEvil simulation")
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--steps", type=int, default=1000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--width", type=int, default=None)
    parser.add_argument("--height", type=int, default=None)
    parser.add_argument("--specimens", type=int, default=None)
    parser.add_argument("--policy", choices=sorted(SPLIT_POLICIES), default=None)
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write per-generation stats")
    parser.add_argument(
        "--log-format",
        choices=["basic", "detailed"],
        default="detailed",
        help="CSV format to write when --log is provided.",
    )
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Optional JSON file to write summary stats for the run.",
    )
    parser.add_argument(
        "--summary-window",
        type=int,
        default=100,
        help="Tail window size (generations) for summary stats.",
    )
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (gen_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    setup_logging(args.log_level)
    try:
        run_headless(
            args.steps,
            args.seed,
            args.log,
            deterministic_log=args.deterministic_log,
            log_format=args.log_format,
            summary_path=args.summary,
            summary_window=args.summary_window,
            config=_build_config(args),
        )
    except GoodEvilError as exc:
        logger.error("Simulation stopped: {}: {}", type(exc).__name__, exc)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()

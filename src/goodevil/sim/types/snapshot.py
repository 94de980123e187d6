from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .metrics import GenerationStats


@dataclass(slots=True)
class Snapshot:
    generation: int
    stats: Optional[GenerationStats]
    cells: List[Dict[str, Any]]
    board: "SnapshotBoard"
    metadata: "SnapshotMetadata"


@dataclass(slots=True)
class SnapshotBoard:
    width: int
    height: int
    pool_energy: float


@dataclass(slots=True)
class SnapshotMetadata:
    seed: int
    split_policy: str

"""
Metrics and reporting helpers.

Responsibilities:
- GenerationSummary: what the reporter hears when the best score improves
- Per-generation population statistics
- Export to CSV/JSON at exit
"""
from __future__ import annotations

import csv
import json
from dataclasses import asdict, dataclass, fields
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from . import config as C


@dataclass(frozen=True)
class GenerationSummary:
    generation: int
    best_score: int
    best_impact_speed_mph: float
    best_fuel_remaining_lbs: float
    best_burn_history: Tuple[float, ...]
    formula: Optional[str]
    rating: str


@dataclass
class GenerationRecord:
    generation: int
    best_score: int
    mean_score: float
    median_score: float
    best_impact_speed_mph: float
    best_fuel_remaining_lbs: float
    best_rating: str
    survivable_rate: float
    wall_time_sec_generation: float
    wall_time_sec_cumulative: float


class RunMetrics:
    """Per-generation statistics and the improvement log of one training run."""

    def __init__(self, run_name: Optional[str] = None, run_tag: str = "") -> None:
        self.started_at = datetime.now()
        self.run_name = run_name or "evolve"
        self.run_tag = run_tag
        self.records: List[GenerationRecord] = []
        self.improvements: List[GenerationSummary] = []
        self._elapsed = 0.0

    def record_generation(
        self,
        generation: int,
        *,
        scores: Sequence[int],
        survivable: Sequence[bool],
        best,
        wall_time_sec_generation: float,
    ) -> GenerationRecord:
        """Record one evaluated generation. best is the top DescentResult."""
        self._elapsed += wall_time_sec_generation
        arr = np.asarray(scores, dtype=np.float64)
        landed_alive = np.asarray(survivable, dtype=bool)

        record = GenerationRecord(
            generation=generation,
            best_score=int(best.score),
            mean_score=float(arr.mean()) if arr.size else 0.0,
            median_score=float(np.median(arr)) if arr.size else 0.0,
            best_impact_speed_mph=best.impact_speed_mph,
            best_fuel_remaining_lbs=best.fuel_remaining,
            best_rating=best.rating.label,
            survivable_rate=float(landed_alive.mean()) if landed_alive.size else 0.0,
            wall_time_sec_generation=wall_time_sec_generation,
            wall_time_sec_cumulative=self._elapsed,
        )
        self.records.append(record)
        return record

    def record_improvement(self, summary: GenerationSummary) -> None:
        self.improvements.append(summary)

    @property
    def base_name(self) -> str:
        return f"{self.run_name}_{self.started_at:%Y%m%d_%H%M%S}"

    def payload(self) -> Dict[str, object]:
        return {
            "run_name": self.run_name,
            "run_tag": self.run_tag,
            "started_at": self.started_at.isoformat(),
            "generation_count": len(self.records),
            "generations": [asdict(r) for r in self.records],
            "improvements": [
                {**asdict(s), "best_burn_history": list(s.best_burn_history)} for s in self.improvements
            ],
        }

    def export_csv(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        columns = [f.name for f in fields(GenerationRecord)]
        with path.open("w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(columns)
            writer.writerows([getattr(rec, c) for c in columns] for rec in self.records)

    def export_json(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.payload(), indent=2))

    def finalize_and_export(
        self,
        *,
        out_dir: Path = C.REPORTS_DIR,
        export_csv: bool = True,
        export_json: bool = True,
    ) -> List[Path]:
        """Write the enabled reports under out_dir; nothing is written for a run with no generations."""
        if not self.records:
            return []

        out_dir = Path(out_dir)
        written = []
        for enabled, suffix, writer in ((export_csv, ".csv", self.export_csv),
                                        (export_json, ".json", self.export_json)):
            if enabled:
                path = out_dir / f"{self.base_name}{suffix}"
                writer(path)
                written.append(path)
        return written

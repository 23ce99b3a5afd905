"""Difficulty calibration sweeps over many generated grids."""

from __future__ import annotations
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import json
import os

import numpy as np
from tqdm import tqdm

from ..core.errors import GenerationFailed
from ..core.variant import Variant
from ..generator import DifficultyCalculator, DifficultyRatings, GeneratorConfig, GridCreator


@dataclass
class CalibrationSample:
    """Result of generating and scoring one grid."""
    seed: int
    generated: bool
    difficulty: float = 0.0
    attempts: int = 0
    restarts: int = 0
    time_seconds: float = 0.0
    cage_sizes: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "seed": self.seed,
            "generated": self.generated,
            "difficulty": self.difficulty,
            "attempts": self.attempts,
            "restarts": self.restarts,
            "time_seconds": self.time_seconds,
            "cage_sizes": self.cage_sizes,
        }


def calibrate_one(variant: Variant, seed: int, config: Optional[GeneratorConfig] = None) -> CalibrationSample:
    """
    Generate one grid from a seed and score it.

    Module-level so it can run in a worker process.
    """
    creator = GridCreator(variant, seed, config)
    try:
        grid = creator.create()
    except GenerationFailed:
        return CalibrationSample(
            seed=seed,
            generated=False,
            attempts=creator.stats.attempts,
            restarts=creator.stats.restarts,
            time_seconds=creator.stats.time_seconds,
        )

    return CalibrationSample(
        seed=seed,
        generated=True,
        difficulty=DifficultyCalculator().calculate(grid),
        attempts=creator.stats.attempts,
        restarts=creator.stats.restarts,
        time_seconds=creator.stats.time_seconds,
        cage_sizes=[cage.size for cage in grid.cages],
    )


def _calibrate_task(task: Tuple[Variant, int, Optional[GeneratorConfig]]) -> CalibrationSample:
    return calibrate_one(*task)


class Calibrator:
    """
    Measures the difficulty distribution of a variant.

    Each sample is generated from its own seed, so samples are independent
    and the sweep runs in parallel worker processes. The tier cut points are
    the 5%, 33.3%, 66.7% and 95% percentiles of the measured scores.
    """

    PERCENTILES = (5.0, 33.3, 66.7, 95.0)

    def __init__(
        self,
        variant: Variant,
        samples: int = 1000,
        seed: int = 42,
        workers: Optional[int] = None,
        config: Optional[GeneratorConfig] = None,
        output_dir: str = "results/calibration"
    ):
        """
        Initialize the calibrator.

        Args:
            variant: Variant to calibrate.
            samples: Number of grids to generate.
            seed: Seed of the first sample; sample i uses seed + i.
            workers: Worker processes (None = CPU count, 1 = in-process).
            config: Generator bounds passed to every sample.
            output_dir: Directory for results and charts.
        """
        if samples < 1:
            raise ValueError(f"Samples must be positive, got {samples}")
        self.variant = variant
        self.samples = samples
        self.seed = seed
        self.workers = workers
        self.config = config
        self.output_dir = output_dir
        self.results: List[CalibrationSample] = []

    def run(self, show_progress: bool = True) -> List[CalibrationSample]:
        """
        Run the sweep.

        Returns:
            One CalibrationSample per seed, in seed order.
        """
        tasks = [(self.variant, self.seed + i, self.config) for i in range(self.samples)]
        desc = f"Calibrating {self.variant.size}x{self.variant.size}"

        if self.workers == 1:
            self.results = [
                _calibrate_task(task)
                for task in tqdm(tasks, desc=desc, disable=not show_progress)
            ]
        else:
            with ProcessPoolExecutor(max_workers=self.workers) as executor:
                self.results = list(tqdm(
                    executor.map(_calibrate_task, tasks, chunksize=8),
                    total=len(tasks),
                    desc=desc,
                    disable=not show_progress
                ))

        return self.results

    @property
    def scores(self) -> np.ndarray:
        return np.array([r.difficulty for r in self.results if r.generated], dtype=float)

    def thresholds(self) -> Tuple[float, ...]:
        """Tier cut points derived from the measured scores."""
        scores = self.scores
        if scores.size == 0:
            raise ValueError("No generated grids to calibrate from")
        return tuple(float(v) for v in np.percentile(scores, self.PERCENTILES))

    def ratings(self, base: Optional[DifficultyRatings] = None) -> DifficultyRatings:
        """Ratings table with this variant's cut points replaced."""
        ratings = base or DifficultyRatings()
        ratings.update(self.variant, self.thresholds())
        return ratings

    def get_summary(self) -> Dict[str, Any]:
        """Get summary statistics from the sweep."""
        generated = [r for r in self.results if r.generated]
        scores = self.scores
        attempts = [r.attempts for r in generated]
        times = [r.time_seconds for r in generated]

        summary = {
            "variant": self.variant.to_dict(),
            "samples": len(self.results),
            "generated": len(generated),
            "failed": len(self.results) - len(generated),
        }
        if generated:
            summary.update({
                "difficulty_mean": float(np.mean(scores)),
                "difficulty_std": float(np.std(scores)),
                "difficulty_min": float(np.min(scores)),
                "difficulty_max": float(np.max(scores)),
                "thresholds": list(self.thresholds()),
                "avg_attempts": float(np.mean(attempts)),
                "max_attempts": int(np.max(attempts)),
                "avg_time_seconds": float(np.mean(times)),
            })
        return summary

    def save_results(self, output_dir: Optional[str] = None) -> None:
        """Save raw samples, the summary and the updated ratings table."""
        output_dir = output_dir or self.output_dir
        os.makedirs(output_dir, exist_ok=True)

        results_file = os.path.join(output_dir, "calibration_results.json")
        with open(results_file, "w") as f:
            json.dump([r.to_dict() for r in self.results], f, indent=2)

        summary_file = os.path.join(output_dir, "calibration_summary.json")
        with open(summary_file, "w") as f:
            json.dump(self.get_summary(), f, indent=2)

        if self.scores.size > 0 and self.variant.preset is not None:
            ratings_file = os.path.join(output_dir, "difficulty_ratings.json")
            base = DifficultyRatings.load(ratings_file) if os.path.exists(ratings_file) else None
            self.ratings(base).save(ratings_file)

        print(f"Calibration results saved to {output_dir}")

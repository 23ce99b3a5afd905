"""Difficulty scoring and tiering of finished grids."""

from __future__ import annotations
import json
import logging
import math
import os
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..core.grid import Grid
from ..core.variant import CageOperations, SingleCageUsage, Variant

logger = logging.getLogger(__name__)


class GameDifficulty(Enum):
    """Difficulty tiers, easiest first."""
    VERY_EASY = "very_easy"
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXTREME = "extreme"


RatingKey = Tuple[int, CageOperations, SingleCageUsage]

# Four cut points between the five tiers, per (size, operations, single cages).
# First-pass values; `mathdoku calibrate` produces measured replacements.
DEFAULT_THRESHOLDS: Dict[RatingKey, Tuple[float, float, float, float]] = {
    (4, CageOperations.ALL, SingleCageUsage.DYNAMIC): (7.0, 8.5, 10.0, 11.5),
    (5, CageOperations.ALL, SingleCageUsage.DYNAMIC): (13.0, 15.5, 18.0, 21.0),
    (6, CageOperations.ALL, SingleCageUsage.DYNAMIC): (21.0, 25.0, 29.0, 33.0),
    (7, CageOperations.ALL, SingleCageUsage.DYNAMIC): (31.0, 37.0, 43.0, 49.0),
    (8, CageOperations.ALL, SingleCageUsage.DYNAMIC): (43.0, 51.0, 60.0, 68.0),
    (9, CageOperations.ALL, SingleCageUsage.DYNAMIC): (57.0, 68.0, 80.0, 91.0),
}


class DifficultyRatings:
    """
    Lookup table of calibrated tier cut points per variant.

    Variants without a matching operations preset, or without an entry,
    are unsupported and rate as VERY_EASY.
    """

    def __init__(self, thresholds: Optional[Dict[RatingKey, Sequence[float]]] = None):
        source = DEFAULT_THRESHOLDS if thresholds is None else thresholds
        self.thresholds: Dict[RatingKey, Tuple[float, ...]] = {}
        for key, cuts in source.items():
            self._store(key, cuts)

    def _store(self, key: RatingKey, cuts: Sequence[float]) -> None:
        cuts = tuple(float(c) for c in cuts)
        if len(cuts) != len(GameDifficulty) - 1:
            raise ValueError(f"Expected {len(GameDifficulty) - 1} cut points, got {len(cuts)}")
        if list(cuts) != sorted(cuts):
            raise ValueError(f"Cut points must be ascending, got {cuts}")
        self.thresholds[key] = cuts

    @staticmethod
    def key_for(variant: Variant) -> Optional[RatingKey]:
        preset = variant.preset
        if preset is None:
            return None
        return (variant.size, preset, variant.single_cage_usage)

    def thresholds_for(self, variant: Variant) -> Optional[Tuple[float, ...]]:
        key = self.key_for(variant)
        return self.thresholds.get(key) if key is not None else None

    def is_supported(self, variant: Variant) -> bool:
        return self.thresholds_for(variant) is not None

    def update(self, variant: Variant, cuts: Sequence[float]) -> None:
        """Set the cut points for a variant."""
        key = self.key_for(variant)
        if key is None:
            raise ValueError("Only variants using an operations preset can be rated")
        self._store(key, cuts)

    def difficulty(self, variant: Variant, value: float) -> GameDifficulty:
        """Map a difficulty value to a tier."""
        cuts = self.thresholds_for(variant)
        if cuts is None:
            return GameDifficulty.VERY_EASY

        tiers = list(GameDifficulty)
        for tier, cut in zip(tiers, cuts):
            if value < cut:
                return tier
        return tiers[-1]

    def to_list(self) -> List[Dict[str, Any]]:
        """Convert to a JSON-friendly list."""
        return [
            {
                "size": size,
                "operations": operations.value,
                "single_cage_usage": usage.value,
                "thresholds": list(cuts),
            }
            for (size, operations, usage), cuts in sorted(
                self.thresholds.items(), key=lambda item: (item[0][0], item[0][1].value, item[0][2].value)
            )
        ]

    @classmethod
    def from_list(cls, entries: List[Dict[str, Any]]) -> DifficultyRatings:
        thresholds = {
            (
                entry["size"],
                CageOperations(entry["operations"]),
                SingleCageUsage(entry["single_cage_usage"]),
            ): entry["thresholds"]
            for entry in entries
        }
        return cls(thresholds)

    def save(self, path: str) -> None:
        """Save ratings to a JSON file."""
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_list(), f, indent=2)

    @classmethod
    def load(cls, path: str, merge_defaults: bool = True) -> DifficultyRatings:
        """
        Load ratings from a JSON file.

        Args:
            path: File written by save().
            merge_defaults: Keep built-in entries not present in the file.
        """
        with open(path, "r") as f:
            loaded = cls.from_list(json.load(f))
        if not merge_defaults:
            return loaded

        ratings = cls()
        ratings.thresholds.update(loaded.thresholds)
        return ratings


class DifficultyCalculator:
    """
    Scores a grid by the size of the search space its cages leave open.

    difficulty = ln(product over cages of |possible combinations|)

    Row and column constraints are ignored, so the score is a cheap proxy
    for how much case analysis a human solver faces.
    """

    def __init__(self, ratings: Optional[DifficultyRatings] = None):
        self.ratings = ratings or DifficultyRatings()

    def calculate(self, grid: Grid) -> float:
        """Compute the difficulty value of a grid."""
        # sum of logs rather than log of a product that overflows floats
        value = math.fsum(math.log(len(cage.possible_combinations)) for cage in grid.cages)
        logger.debug("difficulty: %s", value)
        return value

    def tier(self, grid: Grid) -> GameDifficulty:
        """Difficulty tier of a grid; VERY_EASY for uncalibrated variants."""
        return self.ratings.difficulty(grid.variant, self.calculate(grid))

    def info(self, grid: Grid) -> str:
        """Rounded difficulty value for display."""
        return str(round(self.calculate(grid)))

    def is_supported(self, variant: Variant) -> bool:
        return self.ratings.is_supported(variant)

"""Generator module for creating MathDoku puzzles."""

from .latin_square import LatinSquareGenerator
from .cage_shapes import CageShapeGenerator
from .cage_creator import CageCreator
from .grid_creator import GridCreator, GeneratorConfig, CreationState, CreationStats, generate
from .difficulty import DifficultyCalculator, DifficultyRatings, GameDifficulty

__all__ = [
    "LatinSquareGenerator",
    "CageShapeGenerator",
    "CageCreator",
    "GridCreator",
    "GeneratorConfig",
    "CreationState",
    "CreationStats",
    "generate",
    "DifficultyCalculator",
    "DifficultyRatings",
    "GameDifficulty",
]

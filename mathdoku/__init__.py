"""MathDoku puzzle generator, exact-cover solver and difficulty rating."""

from .core import (
    Variant,
    Operation,
    CageOperations,
    SingleCageUsage,
    Grid,
    Cage,
    Cell,
    MathDokuError,
    UnsupportedVariant,
    GenerationFailed,
)
from .generator import generate, GridCreator, GeneratorConfig, DifficultyCalculator, GameDifficulty
from .solvers import MathDokuDLXSolver

__version__ = "1.0.0"

__all__ = [
    "Variant",
    "Operation",
    "CageOperations",
    "SingleCageUsage",
    "Grid",
    "Cage",
    "Cell",
    "MathDokuError",
    "UnsupportedVariant",
    "GenerationFailed",
    "generate",
    "GridCreator",
    "GeneratorConfig",
    "DifficultyCalculator",
    "GameDifficulty",
    "MathDokuDLXSolver",
]

"""Core module for grid representation, variants and validation."""

from .errors import (
    MathDokuError,
    UnsupportedVariant,
    RetryableLayoutFailure,
    SolverExhausted,
    GenerationFailed,
)
from .variant import Operation, CageOperations, SingleCageUsage, Variant
from .grid import Cell, Cage, Grid, build_cage
from .validator import is_latin_square, is_partitioned, is_valid_grid

__all__ = [
    "MathDokuError",
    "UnsupportedVariant",
    "RetryableLayoutFailure",
    "SolverExhausted",
    "GenerationFailed",
    "Operation",
    "CageOperations",
    "SingleCageUsage",
    "Variant",
    "Cell",
    "Cage",
    "Grid",
    "build_cage",
    "is_latin_square",
    "is_partitioned",
    "is_valid_grid",
]

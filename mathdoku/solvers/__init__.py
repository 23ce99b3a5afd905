"""Solvers module for MathDoku grids."""

from .base_solver import BaseSolver, SolverStats
from .dlx import DancingLinks
from .dlx_solver import MathDokuDLXSolver

__all__ = [
    "BaseSolver",
    "SolverStats",
    "DancingLinks",
    "MathDokuDLXSolver",
]

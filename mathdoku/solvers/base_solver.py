"""Base solver interface and common utilities."""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
import time
import tracemalloc

import numpy as np

from ..core.grid import Grid


@dataclass
class SolverStats:
    """Statistics from a solver run."""
    # Core metrics
    solved: bool = False
    time_seconds: float = 0.0
    memory_bytes: int = 0
    iterations: int = 0
    solutions_found: int = 0

    # Algorithm-specific metrics
    backtracks: int = 0
    nodes_explored: int = 0

    # Additional metadata
    algorithm: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert stats to dictionary."""
        return {
            "solved": self.solved,
            "time_seconds": self.time_seconds,
            "memory_bytes": self.memory_bytes,
            "iterations": self.iterations,
            "solutions_found": self.solutions_found,
            "backtracks": self.backtracks,
            "nodes_explored": self.nodes_explored,
            "algorithm": self.algorithm,
            **self.extra
        }


class BaseSolver(ABC):
    """
    Abstract base class for MathDoku solvers.

    Solvers never read the cells' solution values; they only use the cages.
    """

    name: str = "BaseSolver"

    def __init__(
        self,
        max_iterations: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        cancel: Optional[Callable[[], bool]] = None
    ):
        """
        Initialize the solver.

        Args:
            max_iterations: Hard bound on search steps per call.
            timeout_seconds: Hard bound on wall-clock time per call.
            cancel: Polled during the search; returning True stops it.
        """
        self.max_iterations = max_iterations
        self.timeout_seconds = timeout_seconds
        self.cancel = cancel
        self.stats = SolverStats(algorithm=self.name)

    def find_solutions(
        self,
        grid: Grid,
        limit: int = 2,
        track_memory: bool = False
    ) -> List[np.ndarray]:
        """
        Search for up to `limit` solutions, with timing and optional memory tracking.

        Args:
            grid: Grid whose cages define the puzzle.
            limit: Stop once this many solutions are found.
            track_memory: Record peak memory with tracemalloc.

        Returns:
            List of (size, size) solution arrays.

        Raises:
            SolverExhausted: If a search bound is hit first.
        """
        self.stats = SolverStats(algorithm=self.name)

        if track_memory:
            tracemalloc.start()
        start_time = time.perf_counter()

        try:
            solutions = self._search(grid, limit)
        finally:
            self.stats.time_seconds = time.perf_counter() - start_time
            if track_memory:
                current, peak = tracemalloc.get_traced_memory()
                tracemalloc.stop()
                self.stats.memory_bytes = peak

        self.stats.solutions_found = len(solutions)
        self.stats.solved = len(solutions) > 0
        return solutions

    def count_solutions(self, grid: Grid, limit: int = 2) -> int:
        """Count solutions, stopping early at `limit`."""
        return len(self.find_solutions(grid, limit))

    def has_unique_solution(self, grid: Grid) -> bool:
        """Check if the grid's cages admit exactly one solution."""
        return self.count_solutions(grid, limit=2) == 1

    def solve(self, grid: Grid, track_memory: bool = False) -> tuple[Optional[np.ndarray], SolverStats]:
        """
        Find one solution.

        Returns:
            Tuple of (solution array or None, stats).
        """
        solutions = self.find_solutions(grid, limit=1, track_memory=track_memory)
        return (solutions[0] if solutions else None), self.stats

    @abstractmethod
    def _search(self, grid: Grid, limit: int) -> List[np.ndarray]:
        """
        Internal search to be implemented by subclasses.

        Args:
            grid: Grid to solve. Must not be modified.
            limit: Maximum number of solutions to return.

        Returns:
            Found solutions as (size, size) arrays.
        """
        pass

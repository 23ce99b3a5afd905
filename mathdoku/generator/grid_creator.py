"""MathDoku grid creation: the generate, partition, assign and verify loop."""

from __future__ import annotations
import logging
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

import numpy as np

from .cage_creator import CageCreator
from .cage_shapes import CageShapeGenerator
from .latin_square import LatinSquareGenerator
from ..core.errors import GenerationFailed, RetryableLayoutFailure
from ..core.grid import Grid
from ..core.variant import Variant
from ..solvers import BaseSolver, MathDokuDLXSolver

logger = logging.getLogger(__name__)

RandomSource = Union[random.Random, int, None]


class CreationState(Enum):
    """States of the grid creation loop."""
    GENERATE_LATIN_SQUARE = "generate_latin_square"
    GENERATE_CAGE_SHAPES = "generate_cage_shapes"
    ASSIGN_CAGE_OPERATIONS = "assign_cage_operations"
    VERIFY_UNIQUENESS = "verify_uniqueness"
    ACCEPT = "accept"


@dataclass
class GeneratorConfig:
    """Bounds and tuning of the creation loop."""
    # cage layouts tried per Latin square
    max_shape_retries: int = 20
    # Latin squares tried before giving up
    max_restarts: int = 10
    # solutions counted before a layout is known to be ambiguous
    solution_limit: int = 2
    solver_max_iterations: Optional[int] = 200_000
    # bounds of each uniqueness check
    solver_timeout_seconds: Optional[float] = 2.0
    max_cage_combinations: Optional[int] = None

    def __post_init__(self):
        if self.max_shape_retries < 1 or self.max_restarts < 1:
            raise ValueError("Retry bounds must be positive")
        if self.solution_limit < 2:
            raise ValueError("Solution limit must be at least 2 to detect ambiguity")


@dataclass
class CreationStats:
    """Statistics from the last creation run."""
    attempts: int = 0
    restarts: int = 0
    time_seconds: float = 0.0


def make_random(random_source: RandomSource) -> random.Random:
    """Turn a seed, a Random instance or None into a Random instance."""
    if isinstance(random_source, random.Random):
        return random_source
    return random.Random(random_source)


class GridCreator:
    """
    Creator of MathDoku grids with a unique solution.

    Algorithm:
    1. Generate a Latin square as the solution
    2. Partition the grid into cage shapes
    3. Assign an operation and target to each cage
    4. Count solutions with the DLX solver; accept if exactly one

    A failed check retries with new cage shapes on the same square, and
    after `max_shape_retries` layouts starts over with a new square.
    """

    def __init__(
        self,
        variant: Variant,
        random_source: RandomSource = None,
        config: Optional[GeneratorConfig] = None,
        solver: Optional[BaseSolver] = None
    ):
        """
        Initialize the creator.

        Args:
            variant: Puzzle variant.
            random_source: Random instance or seed. The only source of randomness.
            config: Loop bounds; defaults to GeneratorConfig().
            solver: Solver used for the uniqueness check.
        """
        self.variant = variant
        self.rng = make_random(random_source)
        self.config = config or GeneratorConfig()
        self.solver = solver or MathDokuDLXSolver(
            max_iterations=self.config.solver_max_iterations,
            timeout_seconds=self.config.solver_timeout_seconds,
        )

        self.latin_squares = LatinSquareGenerator()
        self.cage_shapes = CageShapeGenerator(variant)
        self.cage_creator = CageCreator(
            variant, self.rng, max_combinations=self.config.max_cage_combinations
        )
        self.stats = CreationStats()

    def create(self) -> Grid:
        """
        Create a grid with exactly one solution.

        Returns:
            The verified grid.

        Raises:
            GenerationFailed: If every layout of every restart was rejected.
        """
        self.stats = CreationStats()
        start_time = time.perf_counter()

        state = CreationState.GENERATE_LATIN_SQUARE
        solution: Optional[np.ndarray] = None
        shapes: List[List[int]] = []
        grid: Optional[Grid] = None
        shape_retries = 0

        while state is not CreationState.ACCEPT:
            if state is CreationState.GENERATE_LATIN_SQUARE:
                if self.stats.restarts >= self.config.max_restarts:
                    self.stats.time_seconds = time.perf_counter() - start_time
                    raise GenerationFailed(self.stats.attempts)
                self.stats.restarts += 1
                shape_retries = 0
                solution = self.latin_squares.generate(self.variant.size, self.rng)
                state = CreationState.GENERATE_CAGE_SHAPES

            elif state is CreationState.GENERATE_CAGE_SHAPES:
                if shape_retries >= self.config.max_shape_retries:
                    logger.debug("No unique layout after %d shapes, new Latin square", shape_retries)
                    state = CreationState.GENERATE_LATIN_SQUARE
                    continue
                shape_retries += 1
                self.stats.attempts += 1
                shapes = self.cage_shapes.generate(self.rng)
                state = CreationState.ASSIGN_CAGE_OPERATIONS

            elif state is CreationState.ASSIGN_CAGE_OPERATIONS:
                try:
                    grid = self._assemble(solution, shapes)
                except RetryableLayoutFailure as e:
                    logger.debug("Attempt %d rejected: %s", self.stats.attempts, e)
                    state = CreationState.GENERATE_CAGE_SHAPES
                    continue
                state = CreationState.VERIFY_UNIQUENESS

            elif state is CreationState.VERIFY_UNIQUENESS:
                try:
                    self._verify_uniqueness(grid)
                except RetryableLayoutFailure as e:
                    logger.debug("Attempt %d rejected: %s", self.stats.attempts, e)
                    state = CreationState.GENERATE_CAGE_SHAPES
                    continue
                state = CreationState.ACCEPT

        self.stats.time_seconds = time.perf_counter() - start_time
        logger.debug(
            "Created %dx%d grid after %d attempts (%d Latin squares) in %.3fs",
            self.variant.size, self.variant.size,
            self.stats.attempts, self.stats.restarts, self.stats.time_seconds
        )
        return grid

    def create_batch(self, count: int) -> List[Grid]:
        """
        Create multiple grids from the same random stream.

        Args:
            count: Number of grids to create.

        Returns:
            List of verified grids.
        """
        return [self.create() for _ in range(count)]

    def _assemble(self, solution: np.ndarray, shapes: List[List[int]]) -> Grid:
        """Build a fresh grid from a solution and a cage layout."""
        grid = Grid(self.variant, solution)
        cages = [
            self.cage_creator.create(cage_id, [grid.cell(index) for index in shape])
            for cage_id, shape in enumerate(shapes)
        ]
        grid.set_cages(cages)
        return grid

    def _verify_uniqueness(self, grid: Grid) -> None:
        """
        Raise RetryableLayoutFailure unless the grid has exactly one solution.

        SolverExhausted, a subclass, propagates the same way.
        """
        count = self.solver.count_solutions(grid, limit=self.config.solution_limit)
        if count != 1:
            raise RetryableLayoutFailure(count)


def generate(
    variant: Variant,
    random_source: RandomSource = None,
    config: Optional[GeneratorConfig] = None
) -> Grid:
    """
    Generate a MathDoku grid with exactly one solution.

    Args:
        variant: Puzzle variant.
        random_source: Random instance, integer seed, or None for a fresh source.
        config: Optional loop bounds.

    Returns:
        The verified grid.

    Raises:
        GenerationFailed: If no unique puzzle was found within the bounds.
    """
    return GridCreator(variant, random_source, config).create()

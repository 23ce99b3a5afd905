"""Dancing Links (DLX) solver for MathDoku grids."""

from __future__ import annotations
import logging
from typing import List, Sequence, Tuple

import numpy as np

from .base_solver import BaseSolver
from .dlx import DancingLinks
from ..core.combinations import Combination
from ..core.grid import Cage, Grid

logger = logging.getLogger(__name__)


class MathDokuDLXSolver(BaseSolver):
    """
    Dancing Links solver using Knuth's Algorithm X for Exact Cover.

    A MathDoku grid of size N with K cages is formulated as:
    - Each cell must be filled (N*N constraints)
    - Each row must have each digit exactly once (N*N constraints)
    - Each column must have each digit exactly once (N*N constraints)
    - Each cage must take exactly one of its combinations (K constraints)

    Each choice row is one (cage, combination) pair and covers the cage
    column plus the cell, row-digit and column-digit columns of every cell
    in the cage.
    """

    name = "Dancing Links (DLX)"

    def _search(self, grid: Grid, limit: int) -> List[np.ndarray]:
        """Build the exact cover matrix and search it."""
        links, choices = self._build_matrix(grid)

        try:
            rows = links.search(limit)
        finally:
            self.stats.iterations = links.iterations
            self.stats.backtracks = links.backtracks
            self.stats.nodes_explored = links.nodes_explored
            self.stats.extra["choice_rows"] = links.num_rows

        logger.debug(
            "DLX search on %dx%d grid: %d rows, %d iterations, %d solutions",
            grid.size, grid.size, links.num_rows, links.iterations, len(rows)
        )
        return [self._decode_solution(grid, solution_rows, choices) for solution_rows in rows]

    def _build_matrix(self, grid: Grid) -> Tuple[DancingLinks, List[Tuple[Cage, Combination]]]:
        """Build the exact cover matrix for the given grid."""
        size = grid.size
        area = size * size
        num_constraints = 3 * area + len(grid.cages)

        links = DancingLinks(
            num_constraints,
            max_iterations=self.max_iterations,
            timeout_seconds=self.timeout_seconds,
            cancel=self.cancel,
        )

        choices: List[Tuple[Cage, Combination]] = []
        for cage_pos, cage in enumerate(grid.cages):
            cage_col = 3 * area + cage_pos

            # sorted so the matrix, and so the search order, is reproducible
            for combination in sorted(cage.possible_combinations):
                constraint_indices = [cage_col]
                for cell, digit in zip(cage.cells, combination):
                    cell_col = cell.index
                    row_col = area + cell.row * size + (digit - 1)
                    col_col = 2 * area + cell.column * size + (digit - 1)
                    constraint_indices.extend((cell_col, row_col, col_col))

                links.add_row(len(choices), constraint_indices)
                choices.append((cage, combination))

        return links, choices

    def _decode_solution(
        self,
        grid: Grid,
        solution_rows: Sequence[int],
        choices: Sequence[Tuple[Cage, Combination]]
    ) -> np.ndarray:
        """Decode the chosen rows back to a value array."""
        values = np.zeros((grid.size, grid.size), dtype=np.int32)
        for row_id in solution_rows:
            cage, combination = choices[row_id]
            for cell, digit in zip(cage.cells, combination):
                values[cell.row, cell.column] = digit
        return values

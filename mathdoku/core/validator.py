"""Structural validation utilities for MathDoku grids."""

from __future__ import annotations
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from .grid import Grid


def is_latin_square(values: np.ndarray) -> bool:
    """
    Check that every row and column holds each of 1..N exactly once.

    Args:
        values: Square array of digits.

    Returns:
        True if the array is a Latin square over 1..N.
    """
    values = np.asarray(values)
    if values.ndim != 2 or values.shape[0] != values.shape[1]:
        return False

    expected = np.arange(1, values.shape[0] + 1)
    rows_ok = np.all(np.sort(values, axis=1) == expected)
    cols_ok = np.all(np.sort(values, axis=0) == expected[:, None])
    return bool(rows_ok and cols_ok)


def is_partitioned(grid: Grid) -> bool:
    """
    Check that the cages cover every cell exactly once.

    Also checks that each cell's cage_id points back at its owning cage.
    """
    seen = set()
    for cage in grid.cages:
        for cell in cage.cells:
            if cell.index in seen or cell.cage_id != cage.id:
                return False
            seen.add(cell.index)
    return len(seen) == len(grid.cells)


def is_connected(grid: Grid, indices) -> bool:
    """Check that a set of cells is 4-directionally connected."""
    members = set(indices)
    if not members:
        return False

    start = next(iter(members))
    visited = {start}
    stack = [start]
    while stack:
        index = stack.pop()
        for neighbour in grid.neighbours(index):
            if neighbour in members and neighbour not in visited:
                visited.add(neighbour)
                stack.append(neighbour)
    return visited == members


def cages_match_solution(grid: Grid) -> bool:
    """Check that each cage accepts the solution values of its cells."""
    return all(cage.is_satisfied_by(cage.solution_values()) for cage in grid.cages)


def is_valid_grid(grid: Grid) -> bool:
    """
    Check the full structure of a generated grid.

    The solution must be a Latin square, the cages must partition the grid
    into connected regions, and every cage must accept its solution values.
    """
    if not is_latin_square(grid.solution_array()):
        return False
    if not is_partitioned(grid):
        return False
    if not all(is_connected(grid, cage.cell_indices) for cage in grid.cages):
        return False
    return cages_match_solution(grid)

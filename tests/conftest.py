"""Shared fixtures: small hand-built grids with known solution counts."""

import numpy as np
import pytest

from mathdoku.core import Grid, Operation, Variant, build_cage


# 3x3 Latin square used by the hand-built scenarios
SOLUTION_3X3 = np.array([
    [2, 3, 1],
    [3, 1, 2],
    [1, 2, 3],
], dtype=np.int32)


@pytest.fixture
def solution_3x3():
    return SOLUTION_3X3.copy()


@pytest.fixture
def make_grid():
    """Factory building a grid from (cell indices, operation) pairs; targets come from the solution."""
    def _make(layout, solution=SOLUTION_3X3, variant=None):
        solution = np.asarray(solution)
        variant = variant or Variant(size=solution.shape[0])
        grid = Grid(variant, solution)
        cages = [
            build_cage(variant, cage_id, [grid.cell(i) for i in cells], operation)
            for cage_id, (cells, operation) in enumerate(layout)
        ]
        grid.set_cages(cages)
        return grid
    return _make


@pytest.fixture
def ambiguous_grid(make_grid):
    """Top row 6x, middle row given, bottom row 6+: two solutions."""
    return make_grid([
        ([0, 1, 2], Operation.MULTIPLY),
        ([3], Operation.NONE),
        ([4], Operation.NONE),
        ([5], Operation.NONE),
        ([6, 7, 8], Operation.ADD),
    ])


@pytest.fixture
def unique_grid(make_grid):
    """Same as ambiguous_grid but the top-right cell is given: one solution."""
    return make_grid([
        ([0, 1], Operation.MULTIPLY),
        ([2], Operation.NONE),
        ([3], Operation.NONE),
        ([4], Operation.NONE),
        ([5], Operation.NONE),
        ([6, 7, 8], Operation.ADD),
    ])

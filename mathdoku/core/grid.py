"""MathDoku grid representation: cells, cages and the grid owning them."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

import numpy as np

from .combinations import Combination, hidden_operator_combinations, possible_combinations
from .variant import Operation, Variant
from .validator import is_partitioned


NO_VALUE_SET = 0


@dataclass(eq=False)
class Cell:
    """A single grid cell. Compared by identity."""
    index: int
    row: int
    column: int
    value: int = NO_VALUE_SET
    user_value: int = NO_VALUE_SET
    possible_values: Set[int] = field(default_factory=set)
    cage_id: int = -1

    @property
    def is_user_value_set(self) -> bool:
        return self.user_value != NO_VALUE_SET

    @property
    def is_user_value_correct(self) -> bool:
        return self.user_value == self.value

    def __repr__(self) -> str:
        return f"Cell(index={self.index}, row={self.row}, column={self.column}, value={self.value})"


@dataclass(frozen=True, eq=False)
class Cage:
    """
    A connected group of cells bound by one arithmetic constraint.

    Cages are immutable; a new layout replaces all cages of a grid.
    """
    id: int
    cells: Tuple[Cell, ...]
    operation: Operation
    target: int
    possible_combinations: FrozenSet[Combination]

    @property
    def size(self) -> int:
        return len(self.cells)

    @property
    def cell_indices(self) -> List[int]:
        return [cell.index for cell in self.cells]

    @property
    def label(self) -> str:
        """Target and operator as printed in the cage corner, e.g. '12x'."""
        return f"{self.target}{self.operation.symbol}"

    def solution_values(self) -> Tuple[int, ...]:
        return tuple(cell.value for cell in self.cells)

    def is_satisfied_by(self, values: Sequence[int]) -> bool:
        """Check whether a tuple of digits satisfies this cage."""
        return tuple(values) in self.possible_combinations

    def __repr__(self) -> str:
        return f"Cage(id={self.id}, {self.label}, cells={self.cell_indices})"


def build_cage(
    variant: Variant,
    cage_id: int,
    cells: Sequence[Cell],
    operation: Operation,
    target: Optional[int] = None
) -> Cage:
    """
    Create a cage and enumerate its possible combinations.

    Args:
        variant: Puzzle variant.
        cage_id: Cage identifier.
        cells: Member cells in cage order.
        operation: Cage operation.
        target: Cage result. Computed from the cells' solution values if None.

    Returns:
        The new cage.
    """
    if target is None:
        target = operation.apply([cell.value for cell in cells])
        if target is None:
            raise ValueError(
                f"Operation {operation.value} does not apply to values "
                f"{[cell.value for cell in cells]}"
            )

    if variant.show_operators or len(cells) == 1:
        combinations = possible_combinations(variant, cells, operation, target)
    else:
        combinations = hidden_operator_combinations(variant, cells, target)

    if not combinations:
        raise ValueError(f"Cage {cage_id} ({target}{operation.symbol}) has no valid combinations")

    return Cage(
        id=cage_id,
        cells=tuple(cells),
        operation=operation,
        target=target,
        possible_combinations=combinations,
    )


class Grid:
    """
    A square MathDoku grid.

    The grid owns its cells (row-major) and its cages. Cells refer to their
    cage only through `cage_id`.
    """

    def __init__(self, variant: Variant, values: Optional[np.ndarray] = None):
        """
        Initialize a grid.

        Args:
            variant: Puzzle variant.
            values: Optional solution values of shape (size, size).
        """
        self.variant = variant
        self.size = variant.size
        self.cells: List[Cell] = [
            Cell(index=row * self.size + column, row=row, column=column)
            for row in range(self.size)
            for column in range(self.size)
        ]
        self.cages: List[Cage] = []

        if values is not None:
            self.set_values(values)

    def set_values(self, values: np.ndarray) -> None:
        """Set the solution values of all cells."""
        values = np.asarray(values)
        if values.shape != (self.size, self.size):
            raise ValueError(f"Values shape must be ({self.size}, {self.size}), got {values.shape}")
        for cell in self.cells:
            cell.value = int(values[cell.row, cell.column])

    def set_cages(self, cages: Sequence[Cage]) -> None:
        """Replace all cages of the grid."""
        for cell in self.cells:
            cell.cage_id = -1
        self.cages = sorted(cages, key=lambda cage: cage.id)
        for cage in self.cages:
            for cell in cage.cells:
                cell.cage_id = cage.id

    def cell(self, index: int) -> Cell:
        return self.cells[index]

    def get_cell(self, row: int, column: int) -> Cell:
        """Get the cell at (row, column)."""
        if not (0 <= row < self.size and 0 <= column < self.size):
            raise ValueError(f"Cell ({row}, {column}) is outside a {self.size}x{self.size} grid")
        return self.cells[row * self.size + column]

    def get_cage(self, cage_id: int) -> Cage:
        """Look up a cage by id."""
        for cage in self.cages:
            if cage.id == cage_id:
                return cage
        raise KeyError(f"No cage with id {cage_id}")

    def cage_of(self, cell: Cell) -> Cage:
        return self.get_cage(cell.cage_id)

    def neighbours(self, index: int) -> List[int]:
        """Indices of the 4-directionally adjacent cells."""
        row, column = divmod(index, self.size)
        result = []
        for dr, dc in ((-1, 0), (1, 0), (0, -1), (0, 1)):
            r, c = row + dr, column + dc
            if 0 <= r < self.size and 0 <= c < self.size:
                result.append(r * self.size + c)
        return result

    def solution_array(self) -> np.ndarray:
        """Solution values as a (size, size) array."""
        return np.array([cell.value for cell in self.cells], dtype=np.int32).reshape(
            self.size, self.size
        )

    def user_array(self) -> np.ndarray:
        return np.array([cell.user_value for cell in self.cells], dtype=np.int32).reshape(
            self.size, self.size
        )

    def is_user_solved(self) -> bool:
        """Check whether every user value matches the solution."""
        return all(cell.is_user_value_correct for cell in self.cells)

    def clear_user_values(self) -> None:
        for cell in self.cells:
            cell.user_value = NO_VALUE_SET
            cell.possible_values = set()

    def to_dict(self) -> Dict[str, Any]:
        """
        Persisted form of the grid.

        Only the fields needed to rebuild the grid are kept; cage
        combinations are recomputed on load.
        """
        return {
            "variant": self.variant.to_dict(),
            "size": self.size,
            "cells": [
                {
                    "index": cell.index,
                    "cage_id": cell.cage_id,
                    "value": cell.value,
                    "user_value": cell.user_value,
                }
                for cell in self.cells
            ],
            "cages": [
                {
                    "id": cage.id,
                    "operation": cage.operation.value,
                    "target": cage.target,
                    "cells": cage.cell_indices,
                }
                for cage in self.cages
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Grid:
        """
        Rebuild a grid from its persisted form.

        Raises:
            ValueError: If fields are missing, indices are out of range, or
                the cages do not partition the grid.
        """
        try:
            return cls._from_dict(data)
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed grid data: {e!r}") from e

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> Grid:
        variant = Variant.from_dict(data["variant"])
        if data.get("size", variant.size) != variant.size:
            raise ValueError(f"Size {data['size']} does not match variant size {variant.size}")

        grid = cls(variant)
        area = len(grid.cells)
        if len(data["cells"]) != area:
            raise ValueError(f"Expected {area} cells, got {len(data['cells'])}")

        seen_cells = set()
        for cell_data in data["cells"]:
            index = cell_data["index"]
            if index not in range(area) or index in seen_cells:
                raise ValueError(f"Invalid or repeated cell index {index}")
            seen_cells.add(index)
            cell = grid.cell(index)
            cell.value = cell_data.get("value", NO_VALUE_SET)
            cell.user_value = cell_data.get("user_value", NO_VALUE_SET)

        cage_ids = set()
        caged = set()
        for cage_data in data["cages"]:
            if cage_data["id"] in cage_ids:
                raise ValueError(f"Repeated cage id {cage_data['id']}")
            cage_ids.add(cage_data["id"])
            for index in cage_data["cells"]:
                if index not in range(area):
                    raise ValueError(f"Cage {cage_data['id']} cell {index} is outside the grid")
                if index in caged:
                    raise ValueError(f"Cell {index} belongs to more than one cage")
                caged.add(index)

        cages = [
            build_cage(
                variant,
                cage_data["id"],
                [grid.cell(index) for index in cage_data["cells"]],
                Operation(cage_data["operation"]),
                cage_data["target"],
            )
            for cage_data in data["cages"]
        ]
        grid.set_cages(cages)
        if not is_partitioned(grid):
            raise ValueError("Cages do not cover every cell")

        for cell_data in data["cells"]:
            stored = cell_data.get("cage_id")
            if stored is not None and stored != grid.cell(cell_data["index"]).cage_id:
                raise ValueError(
                    f"Cell {cell_data['index']} records cage {stored} but is listed in cage "
                    f"{grid.cell(cell_data['index']).cage_id}"
                )
        return grid

    def to_string(self) -> str:
        """Compact string of the solution values, row by row."""
        return ''.join(str(cell.value) for cell in self.cells)

    def __str__(self) -> str:
        """Print the cage map, the cage list and the solution."""
        width = len(str(max(len(self.cages) - 1, 0)))
        lines = ["Cages:"]
        for row in range(self.size):
            ids = [self.get_cell(row, column).cage_id for column in range(self.size)]
            lines.append(' '.join(str(i).rjust(width) for i in ids))

        lines.append("")
        for cage in self.cages:
            lines.append(f"  {str(cage.id).rjust(width)}: {cage.label:<7} {cage.cell_indices}")

        lines.append("")
        lines.append("Solution:")
        for row in range(self.size):
            lines.append(' '.join(str(self.get_cell(row, column).value) for column in range(self.size)))
        return '\n'.join(lines)

    def __repr__(self) -> str:
        return f"Grid(size={self.size}, cages={len(self.cages)})"

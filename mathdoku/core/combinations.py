"""Enumeration of the digit tuples that satisfy a cage."""

from __future__ import annotations
from typing import FrozenSet, List, Sequence, Tuple, TYPE_CHECKING

from .variant import Operation, Variant

if TYPE_CHECKING:
    from .grid import Cell


Combination = Tuple[int, ...]


def _conflicts(cells: Sequence[Cell]) -> List[List[int]]:
    """For each position, the earlier positions sharing its row or column."""
    conflicts = []
    for i, cell in enumerate(cells):
        conflicts.append([
            j for j in range(i)
            if cells[j].row == cell.row or cells[j].column == cell.column
        ])
    return conflicts


def possible_combinations(
    variant: Variant,
    cells: Sequence[Cell],
    operation: Operation,
    target: int
) -> FrozenSet[Combination]:
    """
    Enumerate every tuple of digits (one per cell) matching operation and target.

    The enumeration is independent of the cells' solution values. Tuples in
    which two cells of the same row or column share a digit are excluded.

    Args:
        variant: Puzzle variant supplying the digit range.
        cells: Cage cells in cage order.
        operation: Cage operation.
        target: Cage result.

    Returns:
        Frozen set of digit tuples.
    """
    arity = len(cells)
    if arity == 0:
        return frozenset()

    if operation is Operation.NONE:
        if arity == 1 and target in variant.digits:
            return frozenset({(target,)})
        return frozenset()

    conflicts = _conflicts(cells)

    if operation.is_binary:
        if arity != 2:
            return frozenset()
        return frozenset(
            (a, b)
            for a in variant.digits
            for b in variant.digits
            if not (conflicts[1] and a == b) and operation.apply((a, b)) == target
        )

    max_digit = variant.size
    found = set()
    current = [0] * arity

    def extend(pos: int, partial: int) -> None:
        if pos == arity:
            if partial == target:
                found.add(tuple(current))
            return

        remaining = arity - pos - 1
        for digit in range(1, max_digit + 1):
            if any(current[j] == digit for j in conflicts[pos]):
                continue

            if operation is Operation.ADD:
                value = partial + digit
                # prune: remaining cells add at least 1 and at most max_digit each
                if value + remaining > target or value + remaining * max_digit < target:
                    continue
            else:
                value = partial * digit
                if target % value != 0:
                    continue

            current[pos] = digit
            extend(pos + 1, value)
        current[pos] = 0

    extend(0, 0 if operation is Operation.ADD else 1)
    return frozenset(found)


def hidden_operator_combinations(
    variant: Variant,
    cells: Sequence[Cell],
    target: int
) -> FrozenSet[Combination]:
    """Union of combinations over every operation usable on a cage of this size."""
    result: FrozenSet[Combination] = frozenset()
    for operation in variant.operations_for_size(len(cells)):
        result |= possible_combinations(variant, cells, operation, target)
    return result

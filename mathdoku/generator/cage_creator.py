"""Operation and target assignment for single cages."""

from __future__ import annotations
import random
from typing import List, Optional, Sequence, Tuple

from ..core.errors import RetryableLayoutFailure
from ..core.grid import Cage, Cell, build_cage
from ..core.variant import Operation, Variant


class CageCreator:
    """
    Assigns an operation and target to a cage from its solution values.

    Operation weights:
    - 1 cell: no operation, the target is the digit itself
    - 2 cells: division (doubled, only when exact), subtraction,
      addition and multiplication
    - 3+ cells: addition and multiplication
    """

    def __init__(
        self,
        variant: Variant,
        rng: random.Random,
        max_combinations: Optional[int] = None
    ):
        """
        Initialize the creator.

        Args:
            variant: Puzzle variant supplying the allowed operations.
            rng: Random source.
            max_combinations: If set, an operation leaving more combinations
                than this is swapped for the tightest alternative. If even
                that one exceeds it, RetryableLayoutFailure rejects the layout.
        """
        self.variant = variant
        self.rng = rng
        self.max_combinations = max_combinations

    def candidate_operations(self, values: Sequence[int]) -> List[Tuple[Operation, int]]:
        """List (operation, weight) pairs usable for a cage with these values."""
        if len(values) == 1:
            return [(Operation.NONE, 1)]

        allowed = self.variant.operations_for_size(len(values))
        candidates = []
        for operation in Operation:
            if operation not in allowed:
                continue
            if operation is Operation.DIVIDE:
                if operation.apply(values) is None:
                    continue
                candidates.append((operation, 2))
            else:
                candidates.append((operation, 1))
        return candidates

    def choose_operation(self, values: Sequence[int]) -> Operation:
        """Pick a weighted random operation for the given values."""
        candidates = self.candidate_operations(values)
        if not candidates:
            raise RetryableLayoutFailure(
                None, f"No allowed operation fits cage values {list(values)}"
            )
        operations = [op for op, _ in candidates]
        weights = [w for _, w in candidates]
        return self.rng.choices(operations, weights=weights)[0]

    def create(self, cage_id: int, cells: Sequence[Cell]) -> Cage:
        """
        Create a cage over cells whose solution values are already set.

        Args:
            cage_id: Identifier of the new cage.
            cells: Member cells.

        Returns:
            The cage with operation, target and possible combinations.
        """
        values = [cell.value for cell in cells]
        operation = self.choose_operation(values)
        cage = build_cage(self.variant, cage_id, cells, operation)

        if self.max_combinations is None or len(cage.possible_combinations) <= self.max_combinations:
            return cage

        # too permissive: fall back to the tightest alternative
        alternatives = [
            build_cage(self.variant, cage_id, cells, op)
            for op, _ in self.candidate_operations(values)
        ]
        tightest = min(alternatives, key=lambda c: len(c.possible_combinations))
        if len(tightest.possible_combinations) > self.max_combinations:
            raise RetryableLayoutFailure(
                None,
                f"Cage {cage_id} allows {len(tightest.possible_combinations)} combinations "
                f"under every operation, more than {self.max_combinations}"
            )
        return tightest

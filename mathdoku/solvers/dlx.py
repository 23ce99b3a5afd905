"""Dancing Links over an index arena, searched with Knuth's Algorithm X."""

from __future__ import annotations
import time
from typing import Callable, List, Optional, Sequence, Tuple

from ..core.errors import SolverExhausted


ROOT = 0

# iterations between checks of the clock and the cancel callback
CHECK_INTERVAL = 64


class DancingLinks:
    """
    Exact cover matrix stored as parallel lists of node links.

    Node 0 is the root, nodes 1..num_columns are the column headers, and
    every further node belongs to a choice row. Covering and uncovering a
    column only rewrites integer links, so a search can always be undone
    by replaying the covers in reverse order.

    A matrix is meant for a single search call; an early stop leaves
    columns covered.
    """

    def __init__(
        self,
        num_columns: int,
        max_iterations: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        cancel: Optional[Callable[[], bool]] = None
    ):
        """
        Initialize an empty matrix.

        Args:
            num_columns: Number of constraint columns.
            max_iterations: Stop with SolverExhausted after this many steps.
            timeout_seconds: Stop with SolverExhausted after this much time.
            cancel: Polled periodically; returning True stops the search.
        """
        n = num_columns + 1
        self.num_columns = num_columns
        self.max_iterations = max_iterations
        self.timeout_seconds = timeout_seconds
        self.cancel = cancel

        self.left = [(i - 1) % n for i in range(n)]
        self.right = [(i + 1) % n for i in range(n)]
        self.up = list(range(n))
        self.down = list(range(n))
        self.column = list(range(n))
        self.row_id = [-1] * n
        self.size = [0] * n

        self.num_rows = 0
        self.iterations = 0
        self.backtracks = 0
        self.nodes_explored = 0
        self.solutions: List[List[int]] = []
        self._deadline: Optional[float] = None

    def add_row(self, row_id: int, columns: Sequence[int]) -> None:
        """
        Append a choice row covering the given (0-based, distinct) columns.
        """
        if not columns:
            raise ValueError("A choice row must cover at least one column")

        first = -1
        for col in columns:
            if not 0 <= col < self.num_columns:
                raise ValueError(f"Column {col} out of range 0-{self.num_columns - 1}")
            header = col + 1
            node = len(self.column)

            # vertical: insert above the header, i.e. at the bottom of the column
            self.column.append(header)
            self.row_id.append(row_id)
            self.up.append(self.up[header])
            self.down.append(header)
            self.down[self.up[header]] = node
            self.up[header] = node
            self.size[header] += 1

            # horizontal: insert left of the first node of this row
            if first < 0:
                first = node
                self.left.append(node)
                self.right.append(node)
            else:
                last = self.left[first]
                self.left.append(last)
                self.right.append(first)
                self.right[last] = node
                self.left[first] = node

        self.num_rows += 1

    def cover(self, header: int) -> None:
        """Remove a column and every row that uses it."""
        left, right, up, down = self.left, self.right, self.up, self.down
        column, size = self.column, self.size

        right[left[header]] = right[header]
        left[right[header]] = left[header]

        i = down[header]
        while i != header:
            j = right[i]
            while j != i:
                down[up[j]] = down[j]
                up[down[j]] = up[j]
                size[column[j]] -= 1
                j = right[j]
            i = down[i]

    def uncover(self, header: int) -> None:
        """Restore a column and its rows, exactly undoing cover()."""
        left, right, up, down = self.left, self.right, self.up, self.down
        column, size = self.column, self.size

        i = up[header]
        while i != header:
            j = left[i]
            while j != i:
                size[column[j]] += 1
                down[up[j]] = j
                up[down[j]] = j
                j = left[j]
            i = up[i]

        right[left[header]] = header
        left[right[header]] = header

    def search(self, limit: int = 1) -> List[List[int]]:
        """
        Run Algorithm X until `limit` exact covers are found or the tree is exhausted.

        Uses an explicit stack instead of recursion. Always branches on the
        column with the fewest remaining rows.

        Args:
            limit: Maximum number of solutions to collect.

        Returns:
            List of solutions, each the row ids of the chosen rows.

        Raises:
            SolverExhausted: If an iteration, time or cancel bound is hit.
        """
        if limit < 1:
            raise ValueError(f"Limit must be positive, got {limit}")

        self.solutions = []
        self._deadline = (
            time.perf_counter() + self.timeout_seconds
            if self.timeout_seconds is not None else None
        )

        partial: List[int] = []
        stack: List[Tuple[int, int]] = []

        while True:
            self._tick()

            if self.right[ROOT] == ROOT:
                self.solutions.append([self.row_id[node] for node in partial])
                if len(self.solutions) >= limit:
                    return self.solutions
                if not self._next_choice(stack, partial):
                    return self.solutions
                continue

            header = self._choose_column()
            if self.size[header] == 0:
                # dead end
                self.backtracks += 1
                if not self._next_choice(stack, partial):
                    return self.solutions
                continue

            self.cover(header)
            self.nodes_explored += 1
            node = self.down[header]
            self._select(node, partial)
            stack.append((header, node))

    def _choose_column(self) -> int:
        """Column with the minimum size (MRV heuristic)."""
        right, size = self.right, self.size
        best = right[ROOT]
        best_size = size[best]
        c = right[best]
        while c != ROOT and best_size > 0:
            if size[c] < best_size:
                best = c
                best_size = size[c]
            c = right[c]
        return best

    def _select(self, node: int, partial: List[int]) -> None:
        partial.append(node)
        j = self.right[node]
        while j != node:
            self.cover(self.column[j])
            j = self.right[j]

    def _deselect(self, node: int, partial: List[int]) -> None:
        j = self.left[node]
        while j != node:
            self.uncover(self.column[j])
            j = self.left[j]
        partial.pop()

    def _next_choice(self, stack: List[Tuple[int, int]], partial: List[int]) -> bool:
        """
        Backtrack to the most recent column that still has an untried row.

        Returns False once the whole tree has been explored.
        """
        while stack:
            header, node = stack.pop()
            self._deselect(node, partial)

            following = self.down[node]
            if following != header:
                self._select(following, partial)
                stack.append((header, following))
                return True

            self.uncover(header)
        return False

    def _tick(self) -> None:
        self.iterations += 1

        if self.max_iterations is not None and self.iterations > self.max_iterations:
            raise SolverExhausted(self.max_iterations, len(self.solutions), "iteration bound")

        if (self.iterations - 1) % CHECK_INTERVAL == 0:
            if self.cancel is not None and self.cancel():
                raise SolverExhausted(self.iterations, len(self.solutions), "cancellation")
            if self._deadline is not None and time.perf_counter() > self._deadline:
                raise SolverExhausted(self.iterations, len(self.solutions), "time bound")

"""Randomized Latin square generation."""

from __future__ import annotations
import random

import numpy as np


class LatinSquareGenerator:
    """
    Generator for random Latin squares over the digits 1..N.

    Algorithm:
    1. Start from the cyclic square (r + c) mod N + 1
    2. Shuffle the rows, then the columns
    3. Relabel the digits with a random permutation

    Every step preserves the Latin property, so no backtracking is needed.
    """

    def generate(self, size: int, rng: random.Random) -> np.ndarray:
        """
        Generate a random Latin square.

        Args:
            size: Number of rows, columns and digits.
            rng: Random source; the only state used.

        Returns:
            A (size, size) int32 array.
        """
        if size < 1:
            raise ValueError(f"Size must be positive, got {size}")

        indices = np.arange(size)
        square = (indices[:, None] + indices[None, :]) % size + 1

        rows = list(range(size))
        rng.shuffle(rows)
        cols = list(range(size))
        rng.shuffle(cols)
        square = square[rows][:, cols]

        labels = list(range(1, size + 1))
        rng.shuffle(labels)
        relabel = np.array([0] + labels, dtype=np.int32)

        return relabel[square].astype(np.int32)

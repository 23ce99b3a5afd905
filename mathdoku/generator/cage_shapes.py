"""Partitioning of the grid into connected cage shapes."""

from __future__ import annotations
import random
from typing import Dict, List, Optional

from ..core.variant import SingleCageUsage, Variant


# Relative frequency of each cage size; small cages dominate.
DEFAULT_SIZE_WEIGHTS: Dict[int, int] = {
    1: 2,
    2: 10,
    3: 8,
    4: 5,
    5: 1,
    6: 1,
}

_DIRS = [(-1, 0), (1, 0), (0, -1), (0, 1)]


class CageShapeGenerator:
    """
    Generator for cage layouts.

    Cells are visited in reading order. Each unassigned cell seeds a region
    that absorbs random unassigned neighbours until it reaches a randomly
    drawn size or gets boxed in.
    """

    def __init__(self, variant: Variant, size_weights: Optional[Dict[int, int]] = None):
        """
        Initialize the generator.

        Args:
            variant: Puzzle variant (grid size, max cage size, single cage usage).
            size_weights: Optional map of cage size to relative weight.
        """
        self.variant = variant
        self.size = variant.size
        self.max_cage_size = variant.effective_max_cage_size

        weights = size_weights or DEFAULT_SIZE_WEIGHTS
        min_size = 1 if variant.single_cage_usage is SingleCageUsage.DYNAMIC else 2
        min_size = min(min_size, self.max_cage_size)

        self.sizes = [
            s for s in sorted(weights)
            if min_size <= s <= self.max_cage_size and weights[s] > 0
        ]
        if not self.sizes:
            raise ValueError(
                f"No cage size in {sorted(weights)} fits between {min_size} and {self.max_cage_size}"
            )
        self.weights = [weights[s] for s in self.sizes]

        area = self.size * self.size
        self._neighbours = [self._cell_neighbours(index) for index in range(area)]

    def _cell_neighbours(self, index: int) -> List[int]:
        row, col = divmod(index, self.size)
        out = []
        for dr, dc in _DIRS:
            r, c = row + dr, col + dc
            if 0 <= r < self.size and 0 <= c < self.size:
                out.append(r * self.size + c)
        return out

    def generate(self, rng: random.Random) -> List[List[int]]:
        """
        Partition all cells into connected regions.

        Args:
            rng: Random source.

        Returns:
            List of regions, each a sorted list of cell indices. Regions are
            ordered by their first cell.
        """
        area = self.size * self.size
        owner = [-1] * area
        regions: List[List[int]] = []

        if self.variant.single_cage_usage is SingleCageUsage.FIXED_NUMBER:
            for index in sorted(rng.sample(range(area), self.size // 2)):
                owner[index] = len(regions)
                regions.append([index])

        for start in range(area):
            if owner[start] >= 0:
                continue

            target = rng.choices(self.sizes, weights=self.weights)[0]
            region_id = len(regions)
            region = [start]
            owner[start] = region_id

            while len(region) < target:
                frontier = sorted({
                    n for index in region for n in self._neighbours[index] if owner[n] < 0
                })
                if not frontier:
                    # boxed in: seal the region at its current size
                    break
                chosen = rng.choice(frontier)
                owner[chosen] = region_id
                region.append(chosen)

            regions.append(region)

        if self.variant.single_cage_usage is SingleCageUsage.NO_SINGLE_CAGES:
            self._merge_singles(regions, owner)

        result = [sorted(region) for region in regions if region]
        result.sort(key=lambda region: region[0])
        return result

    def _merge_singles(self, regions: List[List[int]], owner: List[int]) -> None:
        """
        Merge each single-cell region into its smallest neighbouring region.

        A single stays alone if every neighbour is already at the max size.
        """
        for region_id, region in enumerate(regions):
            if len(region) != 1:
                continue

            index = region[0]
            candidates = sorted({
                owner[n] for n in self._neighbours[index]
                if owner[n] != region_id and len(regions[owner[n]]) < self.max_cage_size
            }, key=lambda rid: (len(regions[rid]), rid))
            if not candidates:
                continue

            target_id = candidates[0]
            regions[target_id].append(index)
            owner[index] = target_id
            region.clear()

"""Unit tests for variants, cages, grids and validation."""

import json

import numpy as np
import pytest

from mathdoku.core import (
    CageOperations,
    Grid,
    Operation,
    SingleCageUsage,
    UnsupportedVariant,
    Variant,
    build_cage,
    is_latin_square,
    is_partitioned,
    is_valid_grid,
)
from mathdoku.core.combinations import hidden_operator_combinations, possible_combinations
from mathdoku.core.validator import cages_match_solution, is_connected


class TestVariant:
    """Tests for Variant validation and helpers."""

    def test_defaults(self):
        """Default variant is a 6x6 grid with all operations."""
        variant = Variant()
        assert variant.size == 6
        assert variant.surface_area == 36
        assert variant.preset is CageOperations.ALL
        assert list(variant.digits) == [1, 2, 3, 4, 5, 6]

    @pytest.mark.parametrize("size", [0, 2, 10])
    def test_size_out_of_range(self, size):
        """Sizes outside 3-9 are rejected."""
        with pytest.raises(UnsupportedVariant):
            Variant(size=size)

    def test_rectangular_rejected(self):
        """Only square grids are supported."""
        with pytest.raises(UnsupportedVariant):
            Variant.square(4, 5)
        assert Variant.square(5, 5).size == 5

    def test_unsupported_variant_is_value_error(self):
        """Callers catching ValueError also catch bad variants."""
        with pytest.raises(ValueError):
            Variant(size=1)

    def test_operations_required(self):
        """An empty operation set or NONE is rejected."""
        with pytest.raises(UnsupportedVariant):
            Variant(operations=frozenset())
        with pytest.raises(UnsupportedVariant):
            Variant(operations={Operation.ADD, Operation.NONE})

    def test_unknown_operations_rejected(self):
        """Operation sets holding anything but Operation members fail at construction."""
        with pytest.raises(UnsupportedVariant):
            Variant(size=4, operations={"add"})
        with pytest.raises(UnsupportedVariant):
            Variant(size=4, operations={Operation.ADD, "multiply"})

    def test_max_cage_size_positive(self):
        with pytest.raises(UnsupportedVariant):
            Variant(max_cage_size=0)

    def test_preset_lookup(self):
        """Operation sets map back to their preset, or None."""
        assert Variant(operations={Operation.ADD, Operation.SUBTRACT}).preset is CageOperations.ADD_SUB
        assert Variant(operations={Operation.MULTIPLY}).preset is CageOperations.MULT
        assert Variant(operations={Operation.ADD, Operation.DIVIDE}).preset is None

    def test_binary_only_operations_cap_cage_size(self):
        """Without addition or multiplication no cage can exceed two cells."""
        variant = Variant(size=5, operations={Operation.SUBTRACT, Operation.DIVIDE})
        assert variant.effective_max_cage_size == 2
        assert Variant(size=5).effective_max_cage_size == 6

    def test_operations_for_size(self):
        """Subtraction and division only apply to two-cell cages."""
        variant = Variant()
        assert variant.operations_for_size(1) == {Operation.NONE}
        assert variant.operations_for_size(2) == CageOperations.ALL.operations
        assert variant.operations_for_size(3) == {Operation.ADD, Operation.MULTIPLY}

    def test_dict_round_trip(self):
        """A variant survives to_dict/from_dict unchanged."""
        variant = Variant(
            size=7,
            operations=CageOperations.ADD_MULT.operations,
            single_cage_usage=SingleCageUsage.NO_SINGLE_CAGES,
            max_cage_size=4,
            show_operators=False,
        )
        assert Variant.from_dict(json.loads(json.dumps(variant.to_dict()))) == variant

    def test_from_dict_unknown_operation(self):
        with pytest.raises(UnsupportedVariant):
            Variant.from_dict({"size": 4, "operations": ["modulo"]})


class TestOperation:
    """Tests for operation arithmetic."""

    def test_apply(self):
        assert Operation.ADD.apply([1, 2, 4]) == 7
        assert Operation.MULTIPLY.apply([2, 3, 4]) == 24
        assert Operation.SUBTRACT.apply([2, 5]) == 3
        assert Operation.DIVIDE.apply([2, 6]) == 3
        assert Operation.NONE.apply([4]) == 4

    def test_apply_not_defined(self):
        """Inexact division and binary operations on three values give None."""
        assert Operation.DIVIDE.apply([4, 6]) is None
        assert Operation.SUBTRACT.apply([1, 2, 3]) is None
        assert Operation.NONE.apply([1, 2]) is None

    def test_symbols(self):
        assert [op.symbol for op in Operation] == ["", "+", "-", "x", "/"]


class TestCombinations:
    """Tests for cage combination enumeration."""

    def test_row_multiply(self):
        """A 3-cell row cage of 6x on a 3x3 grid has the six orders of 1, 2, 3."""
        grid = Grid(Variant(size=3))
        cells = [grid.cell(i) for i in (0, 1, 2)]
        combos = possible_combinations(grid.variant, cells, Operation.MULTIPLY, 6)
        assert len(combos) == 6
        assert all(sorted(c) == [1, 2, 3] for c in combos)

    def test_repeats_allowed_across_rows_and_columns(self):
        """Cells sharing neither row nor column may repeat a digit."""
        grid = Grid(Variant(size=3))
        # L shape: (0,0), (0,1), (1,0)
        cells = [grid.cell(i) for i in (0, 1, 3)]
        combos = possible_combinations(grid.variant, cells, Operation.ADD, 4)
        assert combos == {(2, 1, 1)}

    def test_binary_operations(self):
        """Subtraction and division count both orders of each pair."""
        grid = Grid(Variant(size=4))
        cells = [grid.cell(0), grid.cell(1)]
        assert possible_combinations(grid.variant, cells, Operation.SUBTRACT, 3) == {(1, 4), (4, 1)}
        assert possible_combinations(grid.variant, cells, Operation.DIVIDE, 2) == {
            (1, 2), (2, 1), (2, 4), (4, 2)
        }

    def test_binary_operations_on_diagonal_cells(self):
        """Two cells sharing neither row nor column may hold the same digit."""
        grid = Grid(Variant(size=4))
        cells = [grid.cell(0), grid.cell(5)]
        assert possible_combinations(grid.variant, cells, Operation.DIVIDE, 1) == {
            (1, 1), (2, 2), (3, 3), (4, 4)
        }
        assert possible_combinations(grid.variant, cells, Operation.SUBTRACT, 0) == {
            (1, 1), (2, 2), (3, 3), (4, 4)
        }
        assert (2, 2) not in possible_combinations(
            grid.variant, [grid.cell(0), grid.cell(1)], Operation.DIVIDE, 1
        )

    def test_binary_operation_needs_two_cells(self):
        grid = Grid(Variant(size=4))
        cells = [grid.cell(i) for i in (0, 1, 2)]
        assert possible_combinations(grid.variant, cells, Operation.SUBTRACT, 1) == frozenset()

    def test_single_cell(self):
        grid = Grid(Variant(size=4))
        assert possible_combinations(grid.variant, [grid.cell(5)], Operation.NONE, 3) == {(3,)}
        assert possible_combinations(grid.variant, [grid.cell(5)], Operation.NONE, 7) == frozenset()

    def test_hidden_operator_union(self):
        """With operators hidden, a target matches under any allowed operation."""
        grid = Grid(Variant(size=4, show_operators=False))
        cells = [grid.cell(0), grid.cell(1)]
        combos = hidden_operator_combinations(grid.variant, cells, 2)
        # 2- gives 1/3 and 2/4, 2x gives 1/2, 2/ gives 1/2 and 2/4
        assert combos == {(1, 3), (3, 1), (2, 4), (4, 2), (1, 2), (2, 1)}


class TestCage:
    """Tests for cage construction."""

    def test_target_from_solution(self, make_grid):
        """Targets are computed from the cells' solution values."""
        grid = make_grid([([0, 1, 2], Operation.MULTIPLY)] + [([i], Operation.NONE) for i in range(3, 9)])
        cage = grid.get_cage(0)
        assert cage.target == 6
        assert cage.label == "6x"
        assert cage.size == 3
        assert cage.is_satisfied_by(cage.solution_values())

    def test_row_multiply_cage(self, ambiguous_grid):
        """Top row 2, 3, 1 under multiplication: target 6, all six orders of 1, 2, 3."""
        cage = ambiguous_grid.get_cage(0)
        assert cage.target == 6
        assert len(cage.possible_combinations) == 6

    def test_single_cell_cages(self, ambiguous_grid):
        """A single cage has exactly its own solution value as combination."""
        for cage in ambiguous_grid.cages:
            if cage.size == 1:
                assert cage.possible_combinations == {(cage.cells[0].value,)}

    def test_inexact_division_rejected(self):
        """Division of 2 and 3 has no integer target."""
        grid = Grid(Variant(size=3), np.array([[2, 3, 1], [3, 1, 2], [1, 2, 3]]))
        with pytest.raises(ValueError):
            build_cage(grid.variant, 0, [grid.cell(0), grid.cell(1)], Operation.DIVIDE)

    def test_hidden_operators_widen_combinations(self):
        """Hiding operators never removes a combination."""
        values = np.array([[1, 2, 3, 4], [2, 3, 4, 1], [3, 4, 1, 2], [4, 1, 2, 3]])
        shown = Grid(Variant(size=4), values)
        hidden = Grid(Variant(size=4, show_operators=False), values)
        a = build_cage(shown.variant, 0, [shown.cell(0), shown.cell(1)], Operation.MULTIPLY)
        b = build_cage(hidden.variant, 0, [hidden.cell(0), hidden.cell(1)], Operation.MULTIPLY)
        assert a.possible_combinations <= b.possible_combinations
        assert len(b.possible_combinations) > len(a.possible_combinations)


class TestGrid:
    """Tests for the Grid container."""

    def test_cells_row_major(self):
        grid = Grid(Variant(size=4))
        assert len(grid.cells) == 16
        cell = grid.get_cell(1, 2)
        assert cell.index == 6
        assert (cell.row, cell.column) == (1, 2)

    def test_get_cell_out_of_range(self):
        grid = Grid(Variant(size=4))
        with pytest.raises(ValueError):
            grid.get_cell(4, 0)

    def test_neighbours(self):
        grid = Grid(Variant(size=4))
        assert sorted(grid.neighbours(0)) == [1, 4]
        assert sorted(grid.neighbours(5)) == [1, 4, 6, 9]

    def test_set_values_shape(self):
        grid = Grid(Variant(size=4))
        with pytest.raises(ValueError):
            grid.set_values(np.zeros((3, 3)))

    def test_get_cage_missing(self, unique_grid):
        with pytest.raises(KeyError):
            unique_grid.get_cage(99)

    def test_cage_of(self, unique_grid):
        cell = unique_grid.cell(7)
        assert unique_grid.cage_of(cell).id == cell.cage_id == 5

    def test_solution_array_and_string(self, unique_grid, solution_3x3):
        assert np.array_equal(unique_grid.solution_array(), solution_3x3)
        assert unique_grid.to_string() == "231312123"

    def test_user_values(self, unique_grid):
        """A grid is user-solved once every user value matches."""
        assert not unique_grid.is_user_solved()
        for cell in unique_grid.cells:
            cell.user_value = cell.value
        assert unique_grid.is_user_solved()
        assert np.array_equal(unique_grid.user_array(), unique_grid.solution_array())

        unique_grid.clear_user_values()
        assert not any(cell.is_user_value_set for cell in unique_grid.cells)

    def test_dict_round_trip(self, unique_grid):
        """Persisted grids rebuild the same cages and combinations."""
        unique_grid.cell(4).user_value = 1
        data = json.loads(json.dumps(unique_grid.to_dict()))
        restored = Grid.from_dict(data)

        assert np.array_equal(restored.solution_array(), unique_grid.solution_array())
        assert [c.label for c in restored.cages] == [c.label for c in unique_grid.cages]
        assert [c.cell_indices for c in restored.cages] == [c.cell_indices for c in unique_grid.cages]
        for before, after in zip(unique_grid.cages, restored.cages):
            assert before.possible_combinations == after.possible_combinations
        assert restored.cell(4).user_value == 1
        assert [c.cage_id for c in restored.cells] == [c.cage_id for c in unique_grid.cells]

    def test_from_dict_size_mismatch(self, unique_grid):
        data = unique_grid.to_dict()
        data["size"] = 4
        with pytest.raises(ValueError):
            Grid.from_dict(data)

    def test_from_dict_cell_out_of_range(self, unique_grid):
        data = unique_grid.to_dict()
        data["cages"][0]["cells"][0] = 99
        with pytest.raises(ValueError):
            Grid.from_dict(data)

    def test_from_dict_overlapping_cages(self, unique_grid):
        """A cell listed in two cages is rejected."""
        data = unique_grid.to_dict()
        data["cages"][0]["cells"].append(2)
        with pytest.raises(ValueError):
            Grid.from_dict(data)

    def test_from_dict_repeated_cell_in_cage(self, unique_grid):
        data = unique_grid.to_dict()
        data["cages"][5]["cells"] = [6, 7, 7]
        with pytest.raises(ValueError):
            Grid.from_dict(data)

    def test_from_dict_uncovered_cell(self, unique_grid):
        """Every cell must belong to a cage."""
        data = unique_grid.to_dict()
        del data["cages"][1]
        with pytest.raises(ValueError):
            Grid.from_dict(data)

    def test_from_dict_cage_id_mismatch(self, unique_grid):
        """A cell's stored cage id must match the cage listing it."""
        data = unique_grid.to_dict()
        data["cells"][4]["cage_id"] = 0
        with pytest.raises(ValueError):
            Grid.from_dict(data)

    def test_from_dict_missing_fields(self, unique_grid):
        """Missing keys surface as ValueError, not KeyError."""
        data = unique_grid.to_dict()
        del data["cages"][0]["target"]
        with pytest.raises(ValueError):
            Grid.from_dict(data)

        data = unique_grid.to_dict()
        del data["cells"]
        with pytest.raises(ValueError):
            Grid.from_dict(data)

    def test_str_contains_cages(self, unique_grid):
        text = str(unique_grid)
        assert "Cages:" in text
        assert "6x" in text
        assert "Solution:" in text


class TestValidator:
    """Tests for structural validation."""

    def test_latin_square(self, solution_3x3):
        assert is_latin_square(solution_3x3)

    def test_not_latin_square(self, solution_3x3):
        broken = solution_3x3.copy()
        broken[0, 0] = broken[0, 1]
        assert not is_latin_square(broken)
        assert not is_latin_square(np.ones((2, 3), dtype=int))

    def test_valid_grid(self, unique_grid, ambiguous_grid):
        assert is_valid_grid(unique_grid)
        assert is_valid_grid(ambiguous_grid)

    def test_missing_cells_not_partitioned(self, unique_grid):
        unique_grid.set_cages(unique_grid.cages[:-1])
        assert not is_partitioned(unique_grid)
        assert not is_valid_grid(unique_grid)

    def test_connectivity(self):
        grid = Grid(Variant(size=3))
        assert is_connected(grid, [0, 1, 2])
        assert is_connected(grid, [0, 3, 4])
        assert not is_connected(grid, [0, 2])
        assert not is_connected(grid, [])

    def test_cage_not_matching_solution(self, solution_3x3):
        """A cage whose target disagrees with the solution fails validation."""
        variant = Variant(size=3)
        grid = Grid(variant, solution_3x3)
        # solution values are 2 and 3, which sum to 5
        cages = [build_cage(variant, 0, [grid.cell(0), grid.cell(1)], Operation.ADD, target=4)]
        cages += [
            build_cage(variant, i - 1, [grid.cell(i)], Operation.NONE)
            for i in range(2, 9)
        ]
        grid.set_cages(cages)
        assert is_partitioned(grid)
        assert not cages_match_solution(grid)
        assert not is_valid_grid(grid)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

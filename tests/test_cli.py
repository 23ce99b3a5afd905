"""Tests for the command-line interface."""

import json

import pytest

from mathdoku.cli import build_parser, load_puzzles, main, variant_from_args
from mathdoku.core import CageOperations, SingleCageUsage


class TestParser:
    """Tests for argument parsing."""

    def test_generate_arguments(self):
        args = build_parser().parse_args([
            "generate", "--size", "5", "--operations", "add_sub",
            "--single-cages", "none", "--hide-operators", "--count", "2",
        ])
        variant = variant_from_args(args)

        assert args.count == 2
        assert variant.size == 5
        assert variant.preset is CageOperations.ADD_SUB
        assert variant.single_cage_usage is SingleCageUsage.NO_SINGLE_CAGES
        assert not variant.show_operators

    def test_no_command(self):
        with pytest.raises(SystemExit):
            main([])


class TestCommands:
    """Tests for running the commands end to end."""

    def test_generate_then_solve(self, tmp_path, capsys):
        path = tmp_path / "puzzles.json"
        main(["generate", "--size", "4", "--count", "2", "--seed", "3", "--output", str(path)])

        with open(path) as f:
            saved = json.load(f)
        assert len(saved) == 2
        assert {"difficulty", "tier", "grid"} <= set(saved[0])
        assert len(load_puzzles(str(path))) == 2

        main(["solve", "--puzzle", str(path)])
        out = capsys.readouterr().out
        assert out.count("Unique solution") == 2

    def test_solve_single_grid_file(self, tmp_path, capsys, ambiguous_grid):
        path = tmp_path / "grid.json"
        with open(path, "w") as f:
            json.dump(ambiguous_grid.to_dict(), f)

        main(["solve", "--puzzle", str(path)])
        assert "At least 2 solutions" in capsys.readouterr().out

    def test_solve_malformed_file(self, tmp_path, capsys, unique_grid):
        """Bad cell indices are reported as an error, not a traceback."""
        data = unique_grid.to_dict()
        data["cages"][0]["cells"][0] = 99
        path = tmp_path / "bad.json"
        with open(path, "w") as f:
            json.dump(data, f)

        with pytest.raises(SystemExit) as excinfo:
            main(["solve", "--puzzle", str(path)])
        assert excinfo.value.code == 1
        assert "Error" in capsys.readouterr().out

    def test_unsupported_size(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["generate", "--size", "12"])
        assert excinfo.value.code == 1
        assert "Error" in capsys.readouterr().out


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

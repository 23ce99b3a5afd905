"""Command-line interface for the MathDoku generator and solver."""

import argparse
import json
import logging
import os
import sys

from .core import (
    CageOperations,
    Grid,
    MathDokuError,
    SingleCageUsage,
    SolverExhausted,
    Variant,
)
from .generator import DifficultyCalculator, DifficultyRatings, GeneratorConfig, GridCreator
from .solvers import MathDokuDLXSolver


SINGLE_CAGE_CHOICES = {
    "fixed": SingleCageUsage.FIXED_NUMBER,
    "dynamic": SingleCageUsage.DYNAMIC,
    "none": SingleCageUsage.NO_SINGLE_CAGES,
}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description="MathDoku Puzzle Generator & Exact-Cover Solver",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate 3 6x6 puzzles with all operations
  python -m mathdoku.cli generate --size 6 --count 3 --seed 7

  # Count the solutions of a saved puzzle
  python -m mathdoku.cli solve --puzzle puzzles.json

  # Calibrate difficulty tiers for 9x9 grids
  python -m mathdoku.cli calibrate --size 9 --samples 1000
        """
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Generate command
    gen_parser = subparsers.add_parser("generate", help="Generate MathDoku puzzles")
    _add_variant_arguments(gen_parser)
    gen_parser.add_argument(
        "--count", "-n", type=int, default=1,
        help="Number of puzzles to generate (default: 1)"
    )
    gen_parser.add_argument(
        "--seed", "-s", type=int, default=None,
        help="Random seed for reproducibility"
    )
    gen_parser.add_argument(
        "--output", "-o", type=str, default=None,
        help="Output file for puzzles (JSON format)"
    )
    gen_parser.add_argument(
        "--ratings", type=str, default=None,
        help="Difficulty ratings JSON written by 'calibrate'"
    )

    # Solve command
    solve_parser = subparsers.add_parser("solve", help="Count the solutions of saved puzzles")
    solve_parser.add_argument(
        "--puzzle", "-p", type=str, required=True,
        help="JSON file with one puzzle or a list of puzzles"
    )
    solve_parser.add_argument(
        "--limit", type=int, default=2,
        help="Stop counting at this many solutions (default: 2)"
    )
    solve_parser.add_argument(
        "--timeout", type=float, default=None,
        help="Give up after this many seconds per puzzle"
    )

    # Calibrate command
    cal_parser = subparsers.add_parser("calibrate", help="Measure difficulty tiers of a variant")
    _add_variant_arguments(cal_parser)
    cal_parser.add_argument(
        "--samples", "-n", type=int, default=1000,
        help="Grids to generate (default: 1000)"
    )
    cal_parser.add_argument(
        "--seed", "-s", type=int, default=42,
        help="Seed of the first grid (default: 42)"
    )
    cal_parser.add_argument(
        "--workers", "-w", type=int, default=None,
        help="Worker processes (default: CPU count)"
    )
    cal_parser.add_argument(
        "--output", "-o", type=str, default="results/calibration",
        help="Output directory (default: results/calibration)"
    )
    cal_parser.add_argument(
        "--no-charts", action="store_true",
        help="Skip chart generation"
    )

    return parser


def _add_variant_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--size", type=int, default=6,
        help="Grid size, 3 to 9 (default: 6)"
    )
    parser.add_argument(
        "--operations",
        choices=[preset.value for preset in CageOperations],
        default=CageOperations.ALL.value,
        help="Allowed cage operations (default: all)"
    )
    parser.add_argument(
        "--single-cages",
        choices=sorted(SINGLE_CAGE_CHOICES),
        default="dynamic",
        help="Single cage placement (default: dynamic)"
    )
    parser.add_argument(
        "--max-cage-size", type=int, default=6,
        help="Largest cage size (default: 6)"
    )
    parser.add_argument(
        "--hide-operators", action="store_true",
        help="Hide cage operators; any allowed operation may match a target"
    )


def variant_from_args(args) -> Variant:
    """Build a Variant from parsed arguments."""
    return Variant(
        size=args.size,
        operations=CageOperations(args.operations).operations,
        single_cage_usage=SINGLE_CAGE_CHOICES[args.single_cages],
        max_cage_size=args.max_cage_size,
        show_operators=not args.hide_operators,
    )


def main(argv=None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        if args.command == "generate":
            cmd_generate(args)
        elif args.command == "solve":
            cmd_solve(args)
        elif args.command == "calibrate":
            cmd_calibrate(args)
    except (MathDokuError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)


def cmd_generate(args):
    """Handle the generate command."""
    variant = variant_from_args(args)
    ratings = DifficultyRatings.load(args.ratings) if args.ratings else None
    calculator = DifficultyCalculator(ratings)
    creator = GridCreator(variant, args.seed, GeneratorConfig())

    all_puzzles = []
    print(f"\nGenerating {args.count} {variant.size}x{variant.size} puzzles...")
    for i in range(1, args.count + 1):
        grid = creator.create()
        difficulty = calculator.calculate(grid)
        tier = calculator.tier(grid)

        all_puzzles.append({
            "index": i,
            "difficulty": difficulty,
            "tier": tier.value,
            "attempts": creator.stats.attempts,
            "grid": grid.to_dict(),
        })

        print(f"\n--- Puzzle {i} ({len(grid.cages)} cages, "
              f"difficulty {difficulty:.2f}, {tier.value}, "
              f"{creator.stats.attempts} attempts) ---")
        print(grid)
        if not calculator.is_supported(variant):
            print("(no difficulty calibration for this variant)")

    if args.output:
        directory = os.path.dirname(args.output)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(args.output, "w") as f:
            json.dump(all_puzzles, f, indent=2)
        print(f"\nAll puzzles saved to {args.output}")

    print(f"\nTotal puzzles generated: {len(all_puzzles)}")


def load_puzzles(path: str):
    """Load grids from a JSON file written by 'generate' or by Grid.to_dict()."""
    with open(path, "r") as f:
        data = json.load(f)

    entries = data if isinstance(data, list) else [data]
    return [Grid.from_dict(entry.get("grid", entry)) for entry in entries]


def cmd_solve(args):
    """Handle the solve command."""
    grids = load_puzzles(args.puzzle)
    solver = MathDokuDLXSolver(timeout_seconds=args.timeout)

    for i, grid in enumerate(grids, 1):
        print(f"Solving puzzle {i} ({grid.size}x{grid.size}, {len(grid.cages)} cages)...")
        try:
            solutions = solver.find_solutions(grid, limit=args.limit)
        except SolverExhausted as e:
            print(f"✗ {e}")
            continue

        stats = solver.stats
        count = len(solutions)
        if count == 0:
            print("✗ No solution")
        elif count == 1:
            print(f"✓ Unique solution in {stats.time_seconds:.4f}s")
        else:
            print(f"✗ At least {count} solutions")

        if args.verbose:
            print(f"  Iterations: {stats.iterations:,}")
            print(f"  Backtracks: {stats.backtracks:,}")
            print(f"  Choice rows: {stats.extra.get('choice_rows', 0):,}")

        for solution in solutions[:1]:
            for row in solution:
                print(' '.join(str(v) for v in row))
        print()


def cmd_calibrate(args):
    """Handle the calibrate command."""
    # Imported here so generate/solve do not need the plotting stack
    from .benchmark import Calibrator, CalibrationVisualizer

    variant = variant_from_args(args)

    print("=" * 60)
    print("MATHDOKU DIFFICULTY CALIBRATION")
    print("=" * 60)
    print(f"Variant: {variant.size}x{variant.size}, {args.operations}, {args.single_cages} single cages")
    print(f"Samples: {args.samples}")
    print(f"Output directory: {args.output}")
    print("=" * 60)

    calibrator = Calibrator(
        variant,
        samples=args.samples,
        seed=args.seed,
        workers=args.workers,
        output_dir=args.output,
    )
    results = calibrator.run()
    summary = calibrator.get_summary()

    print("\n" + "=" * 60)
    print("RESULTS SUMMARY")
    print("=" * 60)
    print(f"Generated: {summary['generated']}/{summary['samples']}")
    if summary["generated"]:
        print(f"Difficulty: {summary['difficulty_mean']:.2f} ± {summary['difficulty_std']:.2f}")
        print(f"Range: {summary['difficulty_min']:.2f} - {summary['difficulty_max']:.2f}")
        print(f"Avg attempts: {summary['avg_attempts']:.1f}")
        print(f"Cut points: {', '.join(f'{t:.2f}' for t in summary['thresholds'])}")

    calibrator.save_results(args.output)

    if not args.no_charts and summary["generated"]:
        print("\nGenerating charts...")
        visualizer = CalibrationVisualizer(results, args.output, summary["thresholds"])
        charts = visualizer.generate_all()
        visualizer.generate_summary_table()
        print(f"Charts saved to {args.output}/")
        for chart in charts:
            print(f"  - {os.path.basename(chart)}")

    print("\n" + "=" * 60)
    print("Calibration complete!")


if __name__ == "__main__":
    main()

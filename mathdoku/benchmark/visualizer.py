"""Visualization utilities for calibration results."""

from __future__ import annotations
import os
from collections import Counter
from typing import List, Optional, Sequence

import matplotlib.pyplot as plt
import seaborn as sns
import numpy as np

from .calibration import CalibrationSample
from ..generator import GameDifficulty


class CalibrationVisualizer:
    """
    Chart generator for difficulty calibration sweeps.

    Shows the difficulty distribution with its tier cut points, the
    generation effort per grid, and the cage size mix.
    """

    # Color per tier band, easiest first
    TIER_COLORS = ["#2ecc71", "#3498db", "#9b59b6", "#f39c12", "#e74c3c"]

    def __init__(
        self,
        results: List[CalibrationSample],
        output_dir: str = "results/calibration",
        thresholds: Optional[Sequence[float]] = None
    ):
        """
        Initialize the visualizer.

        Args:
            results: Calibration samples.
            output_dir: Directory to save generated charts.
            thresholds: Optional tier cut points to mark on the histogram.
        """
        self.results = [r for r in results if r.generated]
        self.output_dir = output_dir
        self.thresholds = list(thresholds) if thresholds is not None else []
        os.makedirs(output_dir, exist_ok=True)

        # Set style
        plt.style.use('seaborn-v0_8-whitegrid')
        sns.set_palette("husl")

    def generate_all(self) -> List[str]:
        """
        Generate all charts.

        Returns:
            List of paths to generated chart files.
        """
        if not self.results:
            return []

        return [
            self.plot_difficulty_distribution(),
            self.plot_attempts_distribution(),
            self.plot_cage_sizes(),
            self.plot_difficulty_vs_attempts(),
        ]

    def plot_difficulty_distribution(self) -> str:
        """Histogram of difficulty scores with tier cut points."""
        fig, ax = plt.subplots(figsize=(10, 6))

        scores = [r.difficulty for r in self.results]
        sns.histplot(scores, bins=30, kde=True, ax=ax, color="#34495e")

        tiers = list(GameDifficulty)
        for i, cut in enumerate(self.thresholds):
            ax.axvline(cut, color=self.TIER_COLORS[i + 1], linestyle='--', linewidth=1.5,
                       label=f'{tiers[i + 1].value} from {cut:.1f}')

        ax.set_xlabel('Difficulty (ln of combinations)', fontsize=12)
        ax.set_ylabel('Grids', fontsize=12)
        ax.set_title('Difficulty Distribution', fontsize=14, fontweight='bold')
        if self.thresholds:
            ax.legend(title='Tier')

        plt.tight_layout()
        path = os.path.join(self.output_dir, "difficulty_distribution.png")
        plt.savefig(path, dpi=150, bbox_inches='tight')
        plt.close()

        return path

    def plot_attempts_distribution(self) -> str:
        """Bar chart of how many layouts each grid needed."""
        fig, ax = plt.subplots(figsize=(10, 6))

        counts = Counter(r.attempts for r in self.results)
        attempts = sorted(counts)
        ax.bar([str(a) for a in attempts], [counts[a] for a in attempts],
               color="#3498db", edgecolor='black', linewidth=0.5)

        ax.set_xlabel('Layouts tried', fontsize=12)
        ax.set_ylabel('Grids', fontsize=12)
        ax.set_title('Generation Attempts per Grid', fontsize=14, fontweight='bold')
        ax.set_ylim(bottom=0)

        plt.tight_layout()
        path = os.path.join(self.output_dir, "attempts_distribution.png")
        plt.savefig(path, dpi=150, bbox_inches='tight')
        plt.close()

        return path

    def plot_cage_sizes(self) -> str:
        """Bar chart of the share of cages per cage size."""
        fig, ax = plt.subplots(figsize=(10, 6))

        counts = Counter(size for r in self.results for size in r.cage_sizes)
        total = sum(counts.values())
        sizes = sorted(counts)
        shares = [counts[s] / total * 100 for s in sizes]

        bars = ax.bar([str(s) for s in sizes], shares,
                      color="#9b59b6", edgecolor='black', linewidth=0.5)

        # Add value labels on bars
        for bar, share in zip(bars, shares):
            height = bar.get_height()
            ax.annotate(f'{share:.1f}%',
                        xy=(bar.get_x() + bar.get_width() / 2, height),
                        xytext=(0, 3),
                        textcoords="offset points",
                        ha='center', va='bottom', fontsize=10)

        ax.set_xlabel('Cage size (cells)', fontsize=12)
        ax.set_ylabel('Share of cages (%)', fontsize=12)
        ax.set_title('Cage Size Distribution', fontsize=14, fontweight='bold')
        ax.set_ylim(bottom=0)

        plt.tight_layout()
        path = os.path.join(self.output_dir, "cage_sizes.png")
        plt.savefig(path, dpi=150, bbox_inches='tight')
        plt.close()

        return path

    def plot_difficulty_vs_attempts(self) -> str:
        """Scatter of difficulty against generation attempts."""
        fig, ax = plt.subplots(figsize=(10, 6))

        scores = np.array([r.difficulty for r in self.results])
        attempts = np.array([r.attempts for r in self.results])
        sns.scatterplot(x=scores, y=attempts, ax=ax, alpha=0.6)

        ax.set_xlabel('Difficulty', fontsize=12)
        ax.set_ylabel('Layouts tried', fontsize=12)
        ax.set_title('Difficulty vs Generation Effort', fontsize=14, fontweight='bold')

        plt.tight_layout()
        path = os.path.join(self.output_dir, "difficulty_vs_attempts.png")
        plt.savefig(path, dpi=150, bbox_inches='tight')
        plt.close()

        return path

    def generate_summary_table(self) -> str:
        """Generate a markdown summary table."""
        scores = np.array([r.difficulty for r in self.results])
        attempts = np.array([r.attempts for r in self.results])
        times = np.array([r.time_seconds for r in self.results])

        lines = [
            "# Calibration Summary\n",
            "| Grids | Mean Difficulty | Std | Avg Attempts | Avg Time |",
            "|-------|-----------------|-----|--------------|----------|",
        ]
        if len(scores):
            lines.append(
                f"| {len(scores)} | {scores.mean():.2f} | {scores.std():.2f} | "
                f"{attempts.mean():.1f} | {times.mean():.4f}s |"
            )

        if self.thresholds:
            lines.append("\n| Tier | From |")
            lines.append("|------|------|")
            tiers = list(GameDifficulty)
            lines.append(f"| {tiers[0].value} | - |")
            for tier, cut in zip(tiers[1:], self.thresholds):
                lines.append(f"| {tier.value} | {cut:.2f} |")

        content = "\n".join(lines)

        path = os.path.join(self.output_dir, "calibration_summary.md")
        with open(path, "w") as f:
            f.write(content)

        return path

"""Exception hierarchy for puzzle generation and solving."""

from __future__ import annotations
from typing import Optional


class MathDokuError(Exception):
    """Base class for all engine errors."""
    pass


class UnsupportedVariant(MathDokuError, ValueError):
    """Raised when a variant is outside the supported shapes or rules."""
    pass


class RetryableLayoutFailure(MathDokuError):
    """
    A cage layout did not produce exactly one solution.

    Only raised inside the generation loop, which recovers by trying
    another layout.
    """

    def __init__(self, solution_count: Optional[int], message: Optional[str] = None):
        self.solution_count = solution_count
        super().__init__(message or f"Layout has {solution_count} solutions, expected 1")


class SolverExhausted(RetryableLayoutFailure):
    """Raised when a search hits its iteration, time or cancellation bound."""

    def __init__(self, iterations: int, solutions_found: int, reason: str = "iteration bound"):
        self.iterations = iterations
        self.solutions_found = solutions_found
        self.reason = reason
        super().__init__(
            None,
            f"Solver stopped by {reason} after {iterations:,} iterations "
            f"({solutions_found} solutions found)"
        )


class GenerationFailed(MathDokuError):
    """Raised when every generation attempt failed to yield a unique puzzle."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"No unique puzzle found after {attempts} attempts")

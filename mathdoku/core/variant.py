"""Puzzle variant: grid shape, cage operations and cage-size policy."""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from functools import reduce
from typing import Dict, Any, FrozenSet, Iterable, Optional, Sequence

from .errors import UnsupportedVariant


MIN_SIZE = 3
MAX_SIZE = 9


class Operation(Enum):
    """Arithmetic operation attached to a cage."""
    NONE = "none"
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"

    @property
    def symbol(self) -> str:
        """Symbol shown next to the cage target."""
        symbols = {
            Operation.NONE: "",
            Operation.ADD: "+",
            Operation.SUBTRACT: "-",
            Operation.MULTIPLY: "x",
            Operation.DIVIDE: "/",
        }
        return symbols[self]

    @property
    def is_binary(self) -> bool:
        """Subtraction and division are only defined for two operands."""
        return self in (Operation.SUBTRACT, Operation.DIVIDE)

    def apply(self, values: Sequence[int]) -> Optional[int]:
        """
        Compute the cage result for the given values.

        Subtraction and division order the operands as max - min and
        max / min. Returns None when the operation does not apply, e.g.
        a division that leaves a remainder.
        """
        if not values:
            return None
        if self is Operation.NONE:
            return values[0] if len(values) == 1 else None
        if self is Operation.ADD:
            return sum(values)
        if self is Operation.MULTIPLY:
            return reduce(lambda a, b: a * b, values, 1)

        if len(values) != 2:
            return None
        high, low = max(values), min(values)
        if self is Operation.SUBTRACT:
            return high - low
        if low == 0 or high % low != 0:
            return None
        return high // low


class CageOperations(Enum):
    """Operation presets offered by the game."""
    ALL = "all"
    ADD_SUB = "add_sub"
    ADD_MULT = "add_mult"
    MULT = "mult"

    @property
    def operations(self) -> FrozenSet[Operation]:
        presets = {
            CageOperations.ALL: frozenset({
                Operation.ADD, Operation.SUBTRACT, Operation.MULTIPLY, Operation.DIVIDE
            }),
            CageOperations.ADD_SUB: frozenset({Operation.ADD, Operation.SUBTRACT}),
            CageOperations.ADD_MULT: frozenset({Operation.ADD, Operation.MULTIPLY}),
            CageOperations.MULT: frozenset({Operation.MULTIPLY}),
        }
        return presets[self]

    @classmethod
    def from_operations(cls, operations: Iterable[Operation]) -> Optional[CageOperations]:
        """Find the preset matching an operation set, if any."""
        wanted = frozenset(operations)
        for preset in cls:
            if preset.operations == wanted:
                return preset
        return None


class SingleCageUsage(Enum):
    """How single-cell cages are placed."""
    FIXED_NUMBER = "fixed_number"
    DYNAMIC = "dynamic"
    NO_SINGLE_CAGES = "no_single_cages"


@dataclass(frozen=True)
class Variant:
    """
    Immutable description of a puzzle request.

    Only square grids are supported; digits run from 1 to size.
    """
    size: int = 6
    operations: FrozenSet[Operation] = field(
        default_factory=lambda: CageOperations.ALL.operations
    )
    single_cage_usage: SingleCageUsage = SingleCageUsage.DYNAMIC
    max_cage_size: int = 6
    show_operators: bool = True

    def __post_init__(self):
        if not isinstance(self.size, int) or not MIN_SIZE <= self.size <= MAX_SIZE:
            raise UnsupportedVariant(
                f"Size must be between {MIN_SIZE} and {MAX_SIZE}, got {self.size}"
            )
        # normalise to a frozenset so equality and hashing are stable
        object.__setattr__(self, "operations", frozenset(self.operations))
        if not self.operations:
            raise UnsupportedVariant("At least one cage operation is required")
        if not all(isinstance(op, Operation) for op in self.operations):
            raise UnsupportedVariant(f"Unknown cage operations: {sorted(map(repr, self.operations))}")
        if Operation.NONE in self.operations:
            raise UnsupportedVariant("Operation.NONE is reserved for single cages")
        if self.max_cage_size < 1:
            raise UnsupportedVariant(f"Max cage size must be positive, got {self.max_cage_size}")

    @classmethod
    def classic(cls, size: int = 9) -> Variant:
        """All four operations with dynamic single cages."""
        return cls(size=size)

    @classmethod
    def square(cls, width: int, height: int, **kwargs) -> Variant:
        """Build a variant from explicit dimensions, rejecting rectangles."""
        if width != height:
            raise UnsupportedVariant(f"Grid must be square, got {width}x{height}")
        return cls(size=width, **kwargs)

    @property
    def width(self) -> int:
        return self.size

    @property
    def height(self) -> int:
        return self.size

    @property
    def surface_area(self) -> int:
        return self.size * self.size

    @property
    def digits(self) -> range:
        return range(1, self.size + 1)

    @property
    def preset(self) -> Optional[CageOperations]:
        return CageOperations.from_operations(self.operations)

    @property
    def effective_max_cage_size(self) -> int:
        """Largest cage that can carry an allowed operation."""
        if Operation.ADD in self.operations or Operation.MULTIPLY in self.operations:
            return min(self.max_cage_size, self.surface_area)
        return min(self.max_cage_size, 2)

    def operations_for_size(self, cage_size: int) -> FrozenSet[Operation]:
        """Operations usable on a cage with the given number of cells."""
        if cage_size == 1:
            return frozenset({Operation.NONE})
        if cage_size == 2:
            return self.operations
        return frozenset(op for op in self.operations if not op.is_binary)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "size": self.size,
            "operations": sorted(op.value for op in self.operations),
            "single_cage_usage": self.single_cage_usage.value,
            "max_cage_size": self.max_cage_size,
            "show_operators": self.show_operators,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Variant:
        """Create a variant from its dictionary form."""
        try:
            operations = frozenset(Operation(name) for name in data["operations"])
            usage = SingleCageUsage(data.get("single_cage_usage", SingleCageUsage.DYNAMIC.value))
        except ValueError as e:
            raise UnsupportedVariant(str(e)) from e
        return cls(
            size=data["size"],
            operations=operations,
            single_cage_usage=usage,
            max_cage_size=data.get("max_cage_size", 6),
            show_operators=data.get("show_operators", True),
        )

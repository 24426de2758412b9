"""
Pattern module - a cutting pattern is a column of the cutting stock master.

A pattern states how many pieces of each demanded width are cut from one raw
roll. In the master problem every pattern owns one variable x_j (the number
of rolls cut with it), and its counts are the coefficients of x_j in the
demand rows.

This module provides:
- Pattern: Immutable cutting pattern
- PatternPool: Ordered, append-only store of patterns

Pattern Lifecycle:
-----------------
1. Created as a singleton when the master is built, or by the knapsack pricing
2. Appended to the master (becomes a variable with an implied upper bound)
3. May be used in the final MIP solution
"""

import math
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

from rootgen.config import EPS


@dataclass(frozen=True)
class Pattern:
    """
    A cutting pattern: piece counts per demanded width.

    Attributes:
        counts: Number of pieces of each width cut from one roll
        pattern_id: Position of the pattern in the master (None until added)
        marginal_cost: z* - 1 from the pricing that found it (None for initial patterns)

    Example:
        >>> pattern = Pattern(counts=(0, 1, 0, 3))
        >>> pattern.used_width([17, 21, 22.5, 24])
        93.0
        >>> pattern.upper_bound([150, 96, 48, 108])
        96
    """
    counts: Tuple[int, ...]
    pattern_id: Optional[int] = None
    marginal_cost: Optional[float] = None

    def __post_init__(self):
        """Ensure counts is a tuple of non-negative ints."""
        if not isinstance(self.counts, tuple):
            object.__setattr__(self, 'counts', tuple(self.counts))
        if any(c < 0 for c in self.counts):
            raise ValueError(f"Pattern counts must be non-negative, got {self.counts}")

    # =========================================================================
    # Constructors
    # =========================================================================

    @classmethod
    def singleton(cls, item: int, num_items: int, copies: int) -> 'Pattern':
        """Homogeneous pattern cutting `copies` pieces of a single width."""
        counts = [0] * num_items
        counts[item] = copies
        return cls(counts=tuple(counts))

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def num_items(self) -> int:
        return len(self.counts)

    @property
    def num_pieces(self) -> int:
        return sum(self.counts)

    @property
    def is_empty(self) -> bool:
        return all(c == 0 for c in self.counts)

    # =========================================================================
    # Methods
    # =========================================================================

    def used_width(self, widths: Sequence[float]) -> float:
        """Total width consumed by this pattern on one roll."""
        return float(sum(w * c for w, c in zip(widths, self.counts)))

    def is_feasible(self, widths: Sequence[float], roll_width: float, tol: float = EPS) -> bool:
        """Check that the pattern fits on one roll."""
        return self.used_width(widths) <= roll_width + tol

    def covered_items(self, tol: float = EPS) -> List[int]:
        """Indices of widths the pattern actually cuts."""
        return [i for i, c in enumerate(self.counts) if c > tol]

    def upper_bound(self, demands: Sequence[int], tol: float = EPS) -> int:
        """
        Tightest useful number of rolls for this pattern.

        No pattern needs to be cut more often than it takes to satisfy, on its
        own, the covered demand that needs the most rolls:
            max over i with counts[i] > 0 of ceil(d[i] / counts[i])

        Args:
            demands: Demand per width
            tol: Counts at or below this are ignored

        Returns:
            Upper bound on the pattern variable (0 for an empty pattern)
        """
        bound = 0
        for i in self.covered_items(tol):
            bound = max(bound, math.ceil(demands[i] / self.counts[i]))
        return bound

    def with_id(self, pattern_id: int) -> 'Pattern':
        """
        Create a copy with pattern_id set.

        Args:
            pattern_id: Position in the master

        Returns:
            New Pattern with pattern_id set
        """
        return Pattern(
            counts=self.counts,
            pattern_id=pattern_id,
            marginal_cost=self.marginal_cost,
        )

    def __repr__(self) -> str:
        mc_str = f", marginal_cost={self.marginal_cost:.4f}" if self.marginal_cost is not None else ""
        return f"Pattern(id={self.pattern_id}, counts={list(self.counts)}{mc_str})"


# =============================================================================
# Pattern Pool
# =============================================================================


class PatternPool:
    """
    Append-only container for the patterns of a master problem.

    Patterns get consecutive ids in insertion order, which is also the order
    of their variables in the master. Nothing is ever removed.

    Example:
        >>> pool = PatternPool()
        >>> p = pool.add(Pattern(counts=(5, 0)))
        >>> p.pattern_id
        0
    """

    def __init__(self):
        """Create an empty pattern pool."""
        self._patterns: List[Pattern] = []

    @property
    def size(self) -> int:
        """Number of patterns in the pool."""
        return len(self._patterns)

    def add(self, pattern: Pattern) -> Pattern:
        """
        Add a pattern to the pool, assigning the next id.

        Args:
            pattern: Pattern to add

        Returns:
            Pattern with its id set
        """
        pattern = pattern.with_id(len(self._patterns))
        self._patterns.append(pattern)
        return pattern

    def get(self, pattern_id: int) -> Pattern:
        return self._patterns[pattern_id]

    def all_patterns(self) -> List[Pattern]:
        """Get all patterns in the pool."""
        return self._patterns.copy()

    def generated(self) -> List[Pattern]:
        """Patterns found by pricing (those with a marginal cost)."""
        return [p for p in self._patterns if p.marginal_cost is not None]

    def __len__(self) -> int:
        return self.size

    def __iter__(self) -> Iterator[Pattern]:
        return iter(self._patterns)

    def __repr__(self) -> str:
        return f"PatternPool(size={self.size})"

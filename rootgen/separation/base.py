"""
Separation oracle abstract base class.

A separation oracle receives a fractional LP point and returns the
inequalities of some valid family that the point violates. The cut
generation driver adds them as new rows of the master and re-solves.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Generic, List, Sequence, TypeVar

from rootgen.config import EPS

CutT = TypeVar("CutT")


@dataclass
class SeparationResult(Generic[CutT]):
    """
    Cuts found in one separation round.

    Attributes:
        cuts: Violated inequalities, in the order they should be added
        max_violation: Largest violation among them (0 if none)
    """
    cuts: List[CutT] = field(default_factory=list)
    max_violation: float = 0.0

    @property
    def num_cuts(self) -> int:
        return len(self.cuts)

    @property
    def found_cuts(self) -> bool:
        return bool(self.cuts)

    def __repr__(self) -> str:
        return f"SeparationResult(cuts={self.num_cuts}, max_violation={self.max_violation:.4g})"


class SeparationOracle(ABC, Generic[CutT]):
    """
    Abstract base class for separation oracles.

    Attributes:
        tolerance: A cut is reported only if violated by more than this
    """

    def __init__(self, tolerance: float = EPS):
        self._tolerance = tolerance

    @property
    def tolerance(self) -> float:
        return self._tolerance

    @abstractmethod
    def separate(
        self,
        prod: Sequence[float],
        setup: Sequence[float],
        first_index: int = 1,
    ) -> SeparationResult[CutT]:
        """
        Find inequalities violated by a point.

        Args:
            prod: Production values of the point
            setup: Setup values of the point
            first_index: Number used to name the first returned cut

        Returns:
            SeparationResult with the violated cuts
        """
        pass

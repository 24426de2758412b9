"""
Pricing problem abstract base class.

This module defines the interface pricing oracles implement for the column
generation driver.

The pricing problem finds patterns (columns) with negative reduced cost.
For a pattern P priced with the demand-row duals pi, the reduced cost is:

    1 - sum_i pi_i * P_i

since every pattern costs one roll. Equivalently, with
z* = max{pi . P : P a feasible pattern}, a profitable pattern exists iff
z* > 1 + eps.

Customization Guide:
-------------------
To create a custom pricing oracle:

1. Subclass PricingProblem
2. Implement _solve_impl
3. Optionally override the hooks (_on_duals_updated, _before_solve, _after_solve)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional, Sequence

from rootgen.config import EPS
from rootgen.core.instance import CuttingStockInstance
from rootgen.core.pattern import Pattern


class PricingStatus(Enum):
    """
    Status of the pricing problem solution.
    """
    COLUMNS_FOUND = auto()    # Found a pattern with negative reduced cost
    NO_COLUMNS = auto()       # z* <= 1 + eps: current LP is optimal


@dataclass
class PricingSolution:
    """
    Result of solving the pricing problem.

    Attributes:
        status: Solution status
        z_star: Optimal knapsack value max{pi . P}
        pattern: The argmax pattern (None if every profit was non-positive)
        solve_time: Time spent solving in seconds
        nodes: Branch-and-bound nodes used by the knapsack MIP
    """
    status: PricingStatus = PricingStatus.NO_COLUMNS
    z_star: float = 0.0
    pattern: Optional[Pattern] = None
    solve_time: float = 0.0
    nodes: int = 0

    @property
    def has_profitable_pattern(self) -> bool:
        """Check if a pattern with negative reduced cost was found."""
        return self.status == PricingStatus.COLUMNS_FOUND and self.pattern is not None

    @property
    def reduced_cost(self) -> float:
        """Reduced cost 1 - z* of the best pattern."""
        return 1.0 - self.z_star

    @property
    def marginal_cost(self) -> float:
        """Improvement z* - 1 offered by the best pattern."""
        return self.z_star - 1.0

    def summary(self) -> str:
        """Return a human-readable summary."""
        lines = [
            "PricingSolution:",
            f"  Status: {self.status.name}",
            f"  z*: {self.z_star:.6f}",
            f"  Reduced cost: {self.reduced_cost:.6f}",
        ]
        if self.pattern is not None:
            lines.append(f"  Pattern: {list(self.pattern.counts)}")
        lines.append(f"  Solve time: {self.solve_time:.3f}s")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"PricingSolution({self.status.name}, z*={self.z_star:.4f})"


@dataclass
class PricingConfig:
    """
    Configuration for pricing problem solving.

    Attributes:
        tolerance: A pattern is profitable iff z* > 1 + tolerance
        time_limit: Knapsack MIP time limit in seconds (None = unlimited)
        verbosity: HiGHS output level for the knapsack MIP
    """
    tolerance: float = EPS
    time_limit: Optional[float] = None
    verbosity: int = 0


class PricingProblem(ABC):
    """
    Abstract base class for cutting stock pricing oracles.

    Lifecycle:
    ---------
    1. Create: pricing = KnapsackPricing(instance)
    2. Set duals: pricing.set_dual_values(duals)
    3. Solve: solution = pricing.solve()
    4. Add solution.pattern to the master, re-solve and repeat

    Attributes:
        instance: The cutting stock instance
        config: Pricing configuration
    """

    def __init__(
        self,
        instance: CuttingStockInstance,
        config: Optional[PricingConfig] = None,
    ):
        """
        Initialize the pricing problem.

        Args:
            instance: The cutting stock instance
            config: Optional configuration (uses defaults if not provided)
        """
        self._instance = instance
        self._config = config or PricingConfig()

        # Dual value per demand row, in item order
        self._dual_values: List[float] = [0.0] * instance.num_items

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def instance(self) -> CuttingStockInstance:
        return self._instance

    @property
    def config(self) -> PricingConfig:
        """Pricing configuration."""
        return self._config

    @property
    def dual_values(self) -> List[float]:
        """Current dual values."""
        return self._dual_values.copy()

    # =========================================================================
    # Public API
    # =========================================================================

    def set_dual_values(self, dual_values: Sequence[float]) -> None:
        """
        Set dual values from the master problem.

        Args:
            dual_values: One dual per demand row, in item order
        """
        if len(dual_values) != self._instance.num_items:
            raise ValueError(
                f"Expected {self._instance.num_items} dual values, got {len(dual_values)}"
            )
        self._dual_values = [float(pi) for pi in dual_values]
        self._on_duals_updated()

    def solve(self) -> PricingSolution:
        """
        Solve the pricing problem with the current duals.

        Returns:
            PricingSolution with z*, the best pattern and the verdict
        """
        self._before_solve()
        solution = self._solve_impl()
        return self._after_solve(solution)

    def reduced_cost(self, pattern: Pattern) -> float:
        """
        Reduced cost 1 - pi . P of a pattern under the current duals.

        Args:
            pattern: The pattern to price

        Returns:
            Reduced cost
        """
        return 1.0 - sum(pi * c for pi, c in zip(self._dual_values, pattern.counts))

    # =========================================================================
    # Abstract Methods
    # =========================================================================

    @abstractmethod
    def _solve_impl(self) -> PricingSolution:
        """
        Implementation of the pricing algorithm.

        Returns:
            PricingSolution
        """
        pass

    # =========================================================================
    # Hooks (override for custom behavior)
    # =========================================================================

    def _on_duals_updated(self) -> None:
        """Hook called when dual values are updated."""
        pass

    def _before_solve(self) -> None:
        """Hook called before solving."""
        pass

    def _after_solve(self, solution: PricingSolution) -> PricingSolution:
        """
        Hook called after solving.

        Args:
            solution: The raw solution

        Returns:
            Possibly modified solution
        """
        return solution

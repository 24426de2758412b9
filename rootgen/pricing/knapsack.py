"""
Bounded integer knapsack pricing for cutting stock.

The pricing problem for a cutting stock master with demand-row duals pi is:

    z* = max  sum_i pi_i * x_i
         s.t. sum_i W_i * x_i <= R
              0 <= x_i <= d_i
              x_i integer

It is solved exactly as a small MIP in a HiGHS instance that lives only for
the duration of one call (KnapsackSubproblem). Relative MIP gap is zero, so
a pattern is reported profitable exactly when z* > 1 + eps.
"""

import logging
import math
import time
from typing import List, Optional, Sequence, Tuple

try:
    import highspy
    HIGHS_AVAILABLE = True
except ImportError:
    HIGHS_AVAILABLE = False

from rootgen.core.instance import CuttingStockInstance
from rootgen.core.pattern import Pattern
from rootgen.exceptions import ResourceExhaustedError, SolverFailureError
from rootgen.master.highs import _map_highs_status
from rootgen.master.solution import SolutionStatus
from rootgen.pricing.base import (
    PricingConfig,
    PricingProblem,
    PricingSolution,
    PricingStatus,
)

logger = logging.getLogger(__name__)


class KnapsackSubproblem:
    """
    One bounded integer knapsack, solved in its own HiGHS instance.

    Use it as a context manager: the HiGHS instance is created on entry and
    cleared on exit, whatever the exit path.

    Example:
        >>> with KnapsackSubproblem([0.1, 0.3], [17, 21], 94, [150, 96]) as knapsack:
        ...     z, x = knapsack.solve()
        >>> x
        [0, 4]
    """

    def __init__(
        self,
        profits: Sequence[float],
        weights: Sequence[float],
        capacity: float,
        bounds: Sequence[int],
        time_limit: Optional[float] = None,
        verbosity: int = 0,
    ):
        if not HIGHS_AVAILABLE:
            raise ImportError(
                "HiGHS is not available. Install it with: pip install highspy"
            )
        if not (len(profits) == len(weights) == len(bounds)):
            raise ValueError("profits, weights and bounds must have same length")

        self._profits = [float(c) for c in profits]
        self._weights = [float(a) for a in weights]
        self._capacity = float(capacity)
        self._bounds = [int(u) for u in bounds]
        self._time_limit = time_limit
        self._verbosity = verbosity
        self._highs = None
        self._nodes = 0

    @property
    def nodes(self) -> int:
        """Branch-and-bound nodes used by the last solve."""
        return self._nodes

    def __enter__(self) -> 'KnapsackSubproblem':
        try:
            self._highs = highspy.Highs()
            self._build()
        except MemoryError as exc:
            self._release()
            raise ResourceExhaustedError(
                f"Allocating the knapsack subproblem ({len(self._profits)} items) failed"
            ) from exc
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._release()

    def _build(self) -> None:
        h = self._highs
        h.setOptionValue('output_flag', self._verbosity > 0)
        h.setOptionValue('log_to_console', self._verbosity > 0)
        h.setOptionValue('mip_rel_gap', 0.0)
        if self._time_limit is not None:
            h.setOptionValue('time_limit', float(self._time_limit))
        h.changeObjectiveSense(highspy.ObjSense.kMaximize)

        n = len(self._profits)
        for j in range(n):
            h.addCol(self._profits[j], 0.0, float(self._bounds[j]), 0, [], [])
            h.changeColIntegrality(j, highspy.HighsVarType.kInteger)

        # Capacity row: sum_j a_j * x_j <= R
        h.addRow(-highspy.kHighsInf, self._capacity, n, list(range(n)), self._weights)

    def _release(self) -> None:
        if self._highs is not None:
            self._highs.clear()
            self._highs = None

    def solve(self) -> Tuple[float, List[int]]:
        """
        Solve the knapsack.

        Returns:
            (z*, x*) with x* rounded to the nearest integers

        Raises:
            RuntimeError: If called outside the with block
            SolverFailureError: If HiGHS does not prove optimality
            ResourceExhaustedError: If HiGHS runs out of memory
        """
        if self._highs is None:
            raise RuntimeError("KnapsackSubproblem.solve() called outside its with block")

        logger.debug(
            "Solving z = max{cx : ax <= b; x in Z^n}\n"
            f"   c   = {self._profits}\n"
            f"   a   = {self._weights}\n"
            f"   b   = {self._capacity:g}"
        )

        try:
            self._highs.run()
        except MemoryError as exc:
            raise ResourceExhaustedError("Knapsack subproblem ran out of memory") from exc

        status = _map_highs_status(self._highs.getModelStatus())
        if status != SolutionStatus.OPTIMAL:
            raise SolverFailureError("pricing", "knapsack MIP not solved to optimality", status)

        info = self._highs.getInfo()
        self._nodes = info.mip_node_count
        values = self._highs.getSolution().col_value
        x = [int(math.floor(v + 0.5)) for v in values]
        z = info.objective_function_value

        logger.debug(f"   z = {z:g}\n   x = {x}")
        return z, x


class KnapsackPricing(PricingProblem):
    """
    Pricing oracle for cutting stock (bounded integer knapsack).

    Finds the pattern of largest dual value:

        max  sum_i pi_i * P_i
        s.t. sum_i W_i * P_i <= R
             0 <= P_i <= d_i, P_i integer

    Example:
        >>> pricing = KnapsackPricing(CuttingStockInstance.canonical())
        >>> pricing.set_dual_values(duals)
        >>> result = pricing.solve()
        >>> if result.has_profitable_pattern:
        ...     master.add_pattern(result.pattern)
    """

    def __init__(
        self,
        instance: CuttingStockInstance,
        config: Optional[PricingConfig] = None,
    ):
        super().__init__(instance, config)
        self._num_solves = 0

    @property
    def num_solves(self) -> int:
        """Number of knapsack MIPs solved so far."""
        return self._num_solves

    def _solve_impl(self) -> PricingSolution:
        """Solve the knapsack pricing problem."""
        start_time = time.time()
        instance = self._instance

        # No positive profit: the empty pattern is optimal with z* = 0
        if all(pi <= 0.0 for pi in self._dual_values):
            return PricingSolution(
                status=PricingStatus.NO_COLUMNS,
                z_star=0.0,
                pattern=None,
                solve_time=time.time() - start_time,
            )

        with KnapsackSubproblem(
            self._dual_values,
            instance.item_widths,
            instance.roll_width,
            instance.item_demands,
            time_limit=self._config.time_limit,
            verbosity=self._config.verbosity,
        ) as knapsack:
            z_star, x = knapsack.solve()
            nodes = knapsack.nodes
        self._num_solves += 1

        pattern = Pattern(counts=tuple(x), marginal_cost=z_star - 1.0)
        if not pattern.is_feasible(instance.item_widths, instance.roll_width):
            raise SolverFailureError(
                "pricing",
                f"rounded knapsack solution {x} exceeds the roll width {instance.roll_width:g}",
            )

        profitable = z_star > 1.0 + self._config.tolerance and not pattern.is_empty
        return PricingSolution(
            status=PricingStatus.COLUMNS_FOUND if profitable else PricingStatus.NO_COLUMNS,
            z_star=z_star,
            pattern=pattern,
            solve_time=time.time() - start_time,
            nodes=nodes,
        )

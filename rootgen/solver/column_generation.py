"""
Column generation driver for the cutting stock root node.

This module implements the root-node loop that grows a cutting stock master
pattern by pattern until knapsack pricing proves the LP relaxation optimal,
then solves the final master as a MIP.

Algorithm Overview:
------------------
1. Solve the master LP; read the objective and the demand-row duals
2. Save the basis (scoped)
3. Price with the duals; if z* <= 1 + eps, the LP is optimal: stop
4. Append the new pattern as an integer variable, bounded by
   max over covered widths of ceil(d_i / P_i)
5. Reload the master, restore the saved basis, release it
6. Repeat, at most K passes; then solve the master as a MIP

Key Features:
------------
- Warm start of every LP from the previous basis
- Iteration history and callback hooks
- LoopLimitWarning when K passes elapse without an optimality proof
"""

import logging
import time
import warnings
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List, Optional

from rootgen.config import EPS
from rootgen.exceptions import LoopLimitWarning, SolverFailureError
from rootgen.master.solution import MasterSolution
from rootgen.pricing import KnapsackPricing, PricingConfig, PricingProblem, PricingSolution
from rootgen.solver.solution import LoopIteration, LoopSolution, LoopStatus
from rootgen.solver.state import LoopState, LoopStateMachine

if TYPE_CHECKING:
    from rootgen.applications.cutting_stock import CuttingStockMaster

logger = logging.getLogger(__name__)


@dataclass
class CGConfig:
    """
    Configuration for the column generation driver.

    Attributes:
        max_passes: Pricing iteration cap K (None = the instance's max_passes)
        tolerance: A pattern is added only if z* > 1 + tolerance
        solve_ip: Whether to solve the final master as a MIP
        verbose: Log the pass lines at INFO (DEBUG otherwise)
        pricing_config: Configuration for the knapsack pricing
    """
    max_passes: Optional[int] = None
    tolerance: float = EPS
    solve_ip: bool = True
    verbose: bool = True
    pricing_config: Optional[PricingConfig] = None


# Type alias for callback functions
CGCallback = Callable[['ColumnGeneration', LoopIteration], bool]


class ColumnGeneration:
    """
    Column generation driver.

    The driver owns neither the master nor the pricing: both are passed in,
    and the master keeps every pattern added here after solve() returns.

    Example:
        >>> from rootgen.applications.cutting_stock import build_cutting_stock_master
        >>> master = build_cutting_stock_master(CuttingStockInstance.canonical())
        >>> cg = ColumnGeneration(master)
        >>> solution = cg.solve()
        >>> print(solution.summary())

    Callbacks:
        Register callbacks to monitor progress:

        >>> def my_callback(cg, iteration):
        ...     print(f"Pass {iteration.iteration}: obj={iteration.lp_objective}")
        ...     return True  # Continue solving
        >>> cg.add_callback(my_callback)
    """

    def __init__(
        self,
        master: 'CuttingStockMaster',
        pricing: Optional[PricingProblem] = None,
        config: Optional[CGConfig] = None,
    ):
        """
        Initialize the driver.

        Args:
            master: A built cutting stock master (reloaded, ready to solve)
            pricing: Pricing oracle (default: KnapsackPricing on the master's instance)
            config: Configuration options (uses defaults if not provided)
        """
        self._master = master
        self._config = config or CGConfig()
        if pricing is None:
            pricing_config = self._config.pricing_config or PricingConfig(
                tolerance=self._config.tolerance
            )
            pricing = KnapsackPricing(master.instance, pricing_config)
        self._pricing = pricing

        self._callbacks: List[CGCallback] = []
        self._state = LoopStateMachine()
        self._solution: Optional[LoopSolution] = None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def master(self) -> 'CuttingStockMaster':
        return self._master

    @property
    def pricing(self) -> PricingProblem:
        return self._pricing

    @property
    def config(self) -> CGConfig:
        return self._config

    @property
    def state(self) -> LoopState:
        """Current loop state."""
        return self._state.state

    @property
    def solution(self) -> Optional[LoopSolution]:
        """The solution (None if not yet solved)."""
        return self._solution

    @property
    def max_passes(self) -> int:
        if self._config.max_passes is not None:
            return self._config.max_passes
        return self._master.instance.max_passes

    def add_callback(self, callback: CGCallback) -> None:
        """
        Add a callback function.

        Callbacks are called after each pass with the driver and the pass
        info. Return False to stop the loop.

        Args:
            callback: Function taking (ColumnGeneration, LoopIteration) -> bool
        """
        self._callbacks.append(callback)

    # =========================================================================
    # Main Algorithm
    # =========================================================================

    def solve(self) -> LoopSolution:
        """
        Run column generation, then the final MIP.

        Returns:
            LoopSolution with results and statistics

        Raises:
            SolverFailureError: If an LP, the pricing or the final MIP fails
            RuntimeError: If solve() is called twice on the same driver
        """
        if self._solution is not None:
            raise RuntimeError("ColumnGeneration.solve() may only be called once")

        start_time = time.time()
        start_ms = self._master.now_ms()

        solution = self._run_column_generation(start_ms)

        if self._config.solve_ip:
            self._solve_ip(solution)
        else:
            solution.objective_value = solution.lp_objective

        solution.total_time = time.time() - start_time
        solution.metadata["elapsed_ms"] = self._master.now_ms() - start_ms
        self._solution = solution
        return solution

    def _run_column_generation(self, start_ms: int) -> LoopSolution:
        """
        Run the pricing loop.

        Args:
            start_ms: Loop start time (adapter clock)

        Returns:
            LoopSolution with LP results
        """
        history: List[LoopIteration] = []
        total_master_time = 0.0
        total_pricing_time = 0.0
        total_added = 0
        status = LoopStatus.NOT_SOLVED
        lp_solution: Optional[MasterSolution] = None

        for npass in range(1, self.max_passes + 1):
            master_start = time.time()
            lp_solution = self._master.solve_lp()
            master_time = time.time() - master_start
            total_master_time += master_time

            if not lp_solution.is_optimal:
                self._state.terminate()
                raise SolverFailureError(
                    "master", f"LP relaxation at pass {npass}", lp_solution.status
                )
            self._state.advance(LoopState.ORACLING)

            with self._master.save_basis() as basis:
                pricing_start = time.time()
                self._pricing.set_dual_values(self._master.demand_duals())
                priced = self._pricing.solve()
                pricing_time = time.time() - pricing_start
                total_pricing_time += pricing_time

                elapsed = (self._master.now_ms() - start_ms) / 1000.0
                if not priced.has_profitable_pattern:
                    self._log(f"({elapsed:.3f} sec) Pass {npass}: no profitable column found.")
                    self._state.terminate()
                    status = LoopStatus.OPTIMAL
                    history.append(self._record(
                        npass, elapsed, lp_solution, 0, total_added, priced,
                        master_time, pricing_time,
                    ))
                    self._invoke_callbacks(history[-1])
                    break

                self._state.advance(LoopState.AMENDING)
                pattern = self._master.add_pattern(priced.pattern)
                self._master.reload()
                self._master.load_basis(basis)
            total_added += 1
            self._state.advance(LoopState.SOLVING)

            self._log_pattern(elapsed, npass, pattern)
            iteration = self._record(
                npass, elapsed, lp_solution, 1, total_added, priced,
                master_time, pricing_time,
            )
            history.append(iteration)
            if not self._invoke_callbacks(iteration):
                self._state.terminate()
                status = LoopStatus.STOPPED
                break
        else:
            self._state.terminate()
            status = LoopStatus.ITERATION_LIMIT
            logger.warning(
                f"Column generation stopped after {self.max_passes} passes "
                "without proving the LP optimal"
            )
            warnings.warn(
                f"Pricing cap of {self.max_passes} passes reached; "
                "solving the MIP on the current patterns",
                LoopLimitWarning,
                stacklevel=3,
            )

        return LoopSolution(
            status=status,
            lp_objective=lp_solution.objective_value if lp_solution else None,
            final_solution=lp_solution,
            iterations=len(history),
            total_added=total_added,
            master_time=total_master_time,
            oracle_time=total_pricing_time,
            iteration_history=history,
            metadata={"num_patterns": self._master.num_patterns},
        )

    def _solve_ip(self, solution: LoopSolution) -> None:
        """
        Solve the final master as a MIP and update the solution in place.

        Raises:
            SolverFailureError: If no integer solution is found
        """
        ip_start = time.time()
        ip_solution = self._master.solve_mip()
        solution.master_time += time.time() - ip_start

        if not ip_solution.has_solution:
            raise SolverFailureError("final", "MIP on the final master", ip_solution.status)

        solution.ip_objective = ip_solution.objective_value
        solution.objective_value = ip_solution.objective_value
        solution.final_solution = ip_solution
        solution.used_mip = True
        if solution.status == LoopStatus.OPTIMAL and ip_solution.is_optimal:
            solution.status = LoopStatus.INTEGER_OPTIMAL

    # =========================================================================
    # Helpers
    # =========================================================================

    def _record(
        self,
        npass: int,
        elapsed: float,
        lp_solution: MasterSolution,
        num_added: int,
        total_added: int,
        priced: PricingSolution,
        master_time: float,
        pricing_time: float,
    ) -> LoopIteration:
        return LoopIteration(
            iteration=npass,
            elapsed=elapsed,
            lp_objective=lp_solution.objective_value,
            num_added=num_added,
            total_added=total_added,
            oracle_value=priced.z_star,
            master_time=master_time,
            oracle_time=pricing_time,
            master_size=self._master.size,
        )

    def _log(self, message: str) -> None:
        logger.log(logging.INFO if self._config.verbose else logging.DEBUG, message)

    def _log_pattern(self, elapsed: float, npass: int, pattern) -> None:
        widths = self._master.instance.item_widths
        distribution = "".join(f"{w:g}:{c}  " for w, c in zip(widths, pattern.counts))
        self._log(
            f"({elapsed:.3f} sec) Pass {npass}: new pattern found with marginal cost "
            f"{pattern.marginal_cost:g}"
        )
        self._log(
            f"   Widths distribution: {distribution}"
            f"Total width: {pattern.used_width(widths):g}"
        )

    def _invoke_callbacks(self, iteration: LoopIteration) -> bool:
        """
        Invoke all callbacks.

        Args:
            iteration: Current pass info

        Returns:
            True to continue, False to stop
        """
        for callback in self._callbacks:
            if not callback(self, iteration):
                return False
        return True

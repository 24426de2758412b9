"""
Cut generation driver for the lot sizing root node.

This module implements the root-node loop that strengthens the LP
relaxation of an uncapacitated lot sizing master with (l,S)-inequalities
until none is violated.

Algorithm Overview:
------------------
1. Solve the master LP (primal simplex); save the basis (scoped)
2. Read production and setup values
3. Separate; if no (l,S)-inequality is violated, stop
4. Add every violated inequality as a named row
5. Reload the master, restore the saved basis, release it
6. Repeat; the (l,S) family is finite, so the loop ends

With all (l,S)-inequalities the LP relaxation of uncapacitated lot sizing
has integral vertices, so the last LP solution is normally integral. If
setups remain fractional the driver solves the master as a MIP instead.
"""

import logging
import time
import warnings
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List, Optional

from rootgen.config import EPS, config as global_config
from rootgen.exceptions import LoopLimitWarning, SolverFailureError
from rootgen.master.solution import MasterSolution
from rootgen.separation import LSSeparator, SeparationOracle
from rootgen.solver.solution import LoopIteration, LoopSolution, LoopStatus
from rootgen.solver.state import LoopState, LoopStateMachine

if TYPE_CHECKING:
    from rootgen.applications.lot_sizing import LotSizingMaster

logger = logging.getLogger(__name__)


@dataclass
class CutConfig:
    """
    Configuration for the cut generation driver.

    Attributes:
        max_rounds: Safety cap on separation rounds (None = config.max_rounds)
        tolerance: A cut is added only if violated by more than this
        mip_safety_net: Solve the MIP if setups are fractional at the end
        verbose: Log the pass lines at INFO (DEBUG otherwise)
    """
    max_rounds: Optional[int] = None
    tolerance: float = EPS
    mip_safety_net: bool = True
    verbose: bool = True


# Type alias for callback functions
CutCallback = Callable[['CutGeneration', LoopIteration], bool]


class CutGeneration:
    """
    Cut generation driver.

    Example:
        >>> from rootgen.applications.lot_sizing import build_lot_sizing_master
        >>> master = build_lot_sizing_master(LotSizingInstance.canonical())
        >>> solution = CutGeneration(master).solve()
        >>> solution.objective_value
        73.0
    """

    def __init__(
        self,
        master: 'LotSizingMaster',
        separator: Optional[SeparationOracle] = None,
        config: Optional[CutConfig] = None,
    ):
        """
        Initialize the driver.

        Args:
            master: A built lot sizing master (reloaded, ready to solve)
            separator: Separation oracle (default: LSSeparator on the master's instance)
            config: Configuration options (uses defaults if not provided)
        """
        self._master = master
        self._config = config or CutConfig()
        self._separator = separator or LSSeparator(master.instance, self._config.tolerance)

        self._callbacks: List[CutCallback] = []
        self._state = LoopStateMachine()
        self._solution: Optional[LoopSolution] = None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def master(self) -> 'LotSizingMaster':
        return self._master

    @property
    def separator(self) -> SeparationOracle:
        return self._separator

    @property
    def config(self) -> CutConfig:
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
    def max_rounds(self) -> int:
        if self._config.max_rounds is not None:
            return self._config.max_rounds
        return global_config.max_rounds

    def add_callback(self, callback: CutCallback) -> None:
        """
        Add a callback function.

        Callbacks are called after each pass with the driver and the pass
        info. Return False to stop the loop.
        """
        self._callbacks.append(callback)

    # =========================================================================
    # Main Algorithm
    # =========================================================================

    def solve(self) -> LoopSolution:
        """
        Run cut generation and report the strengthened formulation.

        Returns:
            LoopSolution with results and statistics

        Raises:
            SolverFailureError: If an LP or the safety-net MIP fails
        """
        if self._solution is not None:
            raise RuntimeError("CutGeneration.solve() may only be called once")

        start_time = time.time()
        start_ms = self._master.now_ms()

        solution = self._run_cut_generation(start_ms)
        self._finalize(solution)

        solution.total_time = time.time() - start_time
        solution.metadata["elapsed_ms"] = self._master.now_ms() - start_ms
        self._solution = solution
        return solution

    def _run_cut_generation(self, start_ms: int) -> LoopSolution:
        history: List[LoopIteration] = []
        total_master_time = 0.0
        total_separation_time = 0.0
        total_cuts = 0
        status = LoopStatus.NOT_SOLVED
        lp_solution: Optional[MasterSolution] = None

        for npass in range(1, self.max_rounds + 1):
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
                separation_start = time.time()
                prod = self._master.production()
                setup = self._master.setups()
                result = self._separator.separate(prod, setup, first_index=total_cuts + 1)
                separation_time = time.time() - separation_start
                total_separation_time += separation_time

                elapsed = (self._master.now_ms() - start_ms) / 1000.0
                self._log(
                    f"Pass {npass} ({elapsed:.3f} sec), objective value "
                    f"{lp_solution.objective_value:g}, cuts added: {result.num_cuts} "
                    f"(total {total_cuts + result.num_cuts})"
                )

                if result.found_cuts:
                    self._state.advance(LoopState.AMENDING)
                    for cut in result.cuts:
                        self._master.add_cut(cut)
                    self._master.reload()
                    self._master.load_basis(basis)
                    total_cuts += result.num_cuts

            iteration = LoopIteration(
                iteration=npass,
                elapsed=elapsed,
                lp_objective=lp_solution.objective_value,
                num_added=result.num_cuts,
                total_added=total_cuts,
                oracle_value=result.max_violation,
                master_time=master_time,
                oracle_time=separation_time,
                master_size=self._master.size,
            )
            history.append(iteration)

            if not result.found_cuts:
                self._state.terminate()
                status = LoopStatus.OPTIMAL
                self._invoke_callbacks(iteration)
                break

            self._state.advance(LoopState.SOLVING)
            if not self._invoke_callbacks(iteration):
                self._state.terminate()
                status = LoopStatus.STOPPED
                break
        else:
            self._state.terminate()
            status = LoopStatus.ITERATION_LIMIT
            logger.warning(f"Cut generation stopped after {self.max_rounds} rounds")
            warnings.warn(
                f"Separation cap of {self.max_rounds} rounds reached with violated cuts left",
                LoopLimitWarning,
                stacklevel=3,
            )

        return LoopSolution(
            status=status,
            lp_objective=lp_solution.objective_value if lp_solution else None,
            final_solution=lp_solution,
            iterations=len(history),
            total_added=total_cuts,
            master_time=total_master_time,
            oracle_time=total_separation_time,
            iteration_history=history,
            metadata={"num_cuts": total_cuts},
        )

    def _finalize(self, solution: LoopSolution) -> None:
        """
        Settle the reported solution after the loop.

        If the loop stopped with cuts added since the last LP, the LP is
        solved once more. If setups are fractional, the MIP safety net runs.
        """
        if not self._master.has_current_solution:
            lp_solution = self._master.solve_lp()
            if not lp_solution.is_optimal:
                raise SolverFailureError("final", "LP on the final master", lp_solution.status)
            solution.lp_objective = lp_solution.objective_value
            solution.final_solution = lp_solution

        solution.objective_value = solution.lp_objective

        if self._master.setups_integral():
            if solution.status == LoopStatus.OPTIMAL:
                self._log("Optimal integer solution found:")
            return

        if not self._config.mip_safety_net:
            return

        logger.warning("Setups are fractional after separation; solving the master as a MIP")
        mip_start = time.time()
        mip_solution = self._master.solve_mip()
        solution.master_time += time.time() - mip_start

        if not mip_solution.has_solution:
            raise SolverFailureError("final", "MIP safety net", mip_solution.status)

        solution.ip_objective = mip_solution.objective_value
        solution.objective_value = mip_solution.objective_value
        solution.final_solution = mip_solution
        solution.used_mip = True
        if solution.status == LoopStatus.OPTIMAL and mip_solution.is_optimal:
            solution.status = LoopStatus.INTEGER_OPTIMAL

    # =========================================================================
    # Helpers
    # =========================================================================

    def _log(self, message: str) -> None:
        logger.log(logging.INFO if self._config.verbose else logging.DEBUG, message)

    def _invoke_callbacks(self, iteration: LoopIteration) -> bool:
        for callback in self._callbacks:
            if not callback(self, iteration):
                return False
        return True

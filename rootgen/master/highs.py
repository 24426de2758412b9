"""
HiGHS implementation of the solver adapter.

This module provides the adapter the root loops use by default, built on
HiGHS through the highspy Python bindings.

Usage:
    >>> from rootgen.master import HiGHSMasterProblem, VarKind, Sense
    >>> master = HiGHSMasterProblem("demo")
    >>> x = master.add_variable("x", VarKind.INTEGER, 0, 10)
    >>> master.set_objective([(x, 1.0)])
    >>> row = master.add_constraint("cover", [(x, 2.0)], Sense.GE, 3)
    >>> master.reload()
    >>> master.solve_lp().objective_value
    1.5
"""

import logging
import time
from typing import Any, List, Optional, Sequence, Tuple

try:
    import highspy
    HIGHS_AVAILABLE = True
except ImportError:
    HIGHS_AVAILABLE = False

from rootgen.config import config
from rootgen.exceptions import SolverFailureError
from rootgen.master.base import (
    BasisSnapshot,
    MasterProblem,
    ObjectiveSense,
    SolverControls,
    VarKind,
)
from rootgen.master.solution import MasterSolution, SolutionStatus

logger = logging.getLogger(__name__)

# simplex_strategy option values
_DUAL_SIMPLEX = 1
_PRIMAL_SIMPLEX = 4


def _map_highs_status(status: Any) -> SolutionStatus:
    """Map HiGHS model status to our SolutionStatus."""
    if not HIGHS_AVAILABLE:
        return SolutionStatus.ERROR

    status_map = {
        highspy.HighsModelStatus.kNotset: SolutionStatus.NOT_SOLVED,
        highspy.HighsModelStatus.kLoadError: SolutionStatus.ERROR,
        highspy.HighsModelStatus.kModelError: SolutionStatus.ERROR,
        highspy.HighsModelStatus.kPresolveError: SolutionStatus.ERROR,
        highspy.HighsModelStatus.kSolveError: SolutionStatus.ERROR,
        highspy.HighsModelStatus.kPostsolveError: SolutionStatus.ERROR,
        highspy.HighsModelStatus.kModelEmpty: SolutionStatus.ERROR,
        highspy.HighsModelStatus.kOptimal: SolutionStatus.OPTIMAL,
        highspy.HighsModelStatus.kInfeasible: SolutionStatus.INFEASIBLE,
        highspy.HighsModelStatus.kUnbounded: SolutionStatus.UNBOUNDED,
        highspy.HighsModelStatus.kUnboundedOrInfeasible: SolutionStatus.INF_OR_UNBOUNDED,
        highspy.HighsModelStatus.kTimeLimit: SolutionStatus.TIME_LIMIT,
        highspy.HighsModelStatus.kIterationLimit: SolutionStatus.ITERATION_LIMIT,
    }

    return status_map.get(status, SolutionStatus.ERROR)


class HiGHSMasterProblem(MasterProblem):
    """
    Solver adapter using HiGHS.

    Columns are always added to HiGHS as continuous. Integrality of INTEGER
    and BINARY variables is switched on for solve_mip() and off again for
    the next solve_lp(), so the same model serves both the root loop and
    the final MIP.

    Example:
        >>> master = HiGHSMasterProblem("cutstock")
        >>> x = master.add_variable("pat_1", VarKind.INTEGER, 0, 30)
        >>> master.set_objective([(x, 1.0)])
        >>> demand = master.add_constraint("Demand_1", [(x, 5.0)], Sense.GE, 150)
        >>> master.reload()
        >>> lp = master.solve_lp()
        >>> master.get_dual(demand)
        0.2

    Attributes:
        time_limit: Maximum solve time in seconds (None = no limit)
        verbosity: HiGHS output level (0 = silent, 1 = normal)
    """

    def __init__(
        self,
        name: str = "master",
        time_limit: Optional[float] = None,
        verbosity: Optional[int] = None,
    ):
        """
        Initialize the HiGHS adapter.

        Args:
            name: Problem name
            time_limit: Maximum solve time in seconds (default from config)
            verbosity: HiGHS output level (default from config)

        Raises:
            ImportError: If highspy is not installed
        """
        if not HIGHS_AVAILABLE:
            raise ImportError(
                "HiGHS is not available. Install it with: pip install highspy"
            )

        self._time_limit = time_limit if time_limit is not None else config.time_limit
        self._verbosity = verbosity if verbosity is not None else config.verbosity

        # HiGHS model (created in _build_model)
        self._highs: Optional[highspy.Highs] = None

        # Integrality currently switched on in HiGHS
        self._is_mip_mode: bool = False

        super().__init__(name)

    # =========================================================================
    # Abstract Method Implementations
    # =========================================================================

    def _build_model(self) -> None:
        """Create an empty HiGHS model."""
        self._highs = highspy.Highs()

        self._highs.setOptionValue('output_flag', self._verbosity > 0)
        self._highs.setOptionValue('log_to_console', self._verbosity > 0)
        self._highs.setOptionValue('mip_rel_gap', 0.0)

        if self._time_limit is not None:
            self._highs.setOptionValue('time_limit', float(self._time_limit))

        self._highs.changeObjectiveSense(highspy.ObjSense.kMinimize)

    def _add_column_impl(
        self,
        cost: float,
        lower: float,
        upper: float,
        rows: Sequence[int],
        values: Sequence[float],
    ) -> None:
        # addCol(cost, lower, upper, num_nz, indices, values)
        self._highs.addCol(
            cost,
            _to_highs_bound(lower),
            _to_highs_bound(upper),
            len(rows),
            list(rows),
            list(values),
        )
        if self._is_mip_mode:
            # Keep new columns consistent with the rest of the model
            index = self._highs.getNumCol() - 1
            if self._variables[index].is_integer:
                self._highs.changeColIntegrality(index, highspy.HighsVarType.kInteger)

    def _add_row_impl(
        self,
        lower: float,
        upper: float,
        cols: Sequence[int],
        values: Sequence[float],
    ) -> None:
        self._highs.addRow(
            _to_highs_bound(lower),
            _to_highs_bound(upper),
            len(cols),
            list(cols),
            list(values),
        )

    def _change_coefficient_impl(self, row: int, col: int, value: float) -> None:
        self._highs.changeCoeff(row, col, value)

    def _change_bounds_impl(self, col: int, lower: float, upper: float) -> None:
        self._highs.changeColBounds(col, _to_highs_bound(lower), _to_highs_bound(upper))

    def _change_cost_impl(self, col: int, cost: float) -> None:
        self._highs.changeColCost(col, cost)

    def _set_sense_impl(self, sense: ObjectiveSense) -> None:
        if sense == ObjectiveSense.MINIMIZE:
            self._highs.changeObjectiveSense(highspy.ObjSense.kMinimize)
        else:
            self._highs.changeObjectiveSense(highspy.ObjSense.kMaximize)

    def _solve_lp_impl(self) -> MasterSolution:
        """Solve the LP relaxation."""
        start_time = time.time()

        # Ensure we're in LP mode (columns are continuous)
        if self._is_mip_mode:
            self._set_integrality(False)

        self._highs.run()

        solve_time = time.time() - start_time
        status = _map_highs_status(self._highs.getModelStatus())
        info = self._highs.getInfo()

        solution = MasterSolution(
            status=status,
            is_mip=False,
            solve_time=solve_time,
            iterations=info.simplex_iteration_count,
        )

        if status == SolutionStatus.OPTIMAL:
            solution.objective_value = info.objective_function_value
            sol = self._highs.getSolution()
            solution.variable_values = _nonzero(sol.col_value)
            solution.dual_values = {
                row: dual for row, dual in enumerate(sol.row_dual)
            }

        return solution

    def _solve_mip_impl(self) -> MasterSolution:
        """Solve with integrality enforced."""
        start_time = time.time()

        self._set_integrality(True)

        self._highs.run()

        solve_time = time.time() - start_time
        status = _map_highs_status(self._highs.getModelStatus())
        info = self._highs.getInfo()

        solution = MasterSolution(
            status=status,
            is_mip=True,
            solve_time=solve_time,
            iterations=info.simplex_iteration_count,
            nodes=info.mip_node_count,
        )

        if solution.status in (
            SolutionStatus.OPTIMAL,
            SolutionStatus.TIME_LIMIT,
            SolutionStatus.ITERATION_LIMIT,
        ):
            sol = self._highs.getSolution()
            if sol.value_valid:
                solution.objective_value = info.objective_function_value
                solution.gap = info.mip_gap
                solution.variable_values = _nonzero(sol.col_value)

        return solution

    def _get_basis_impl(self) -> Optional[Tuple[List[Any], List[Any]]]:
        basis = self._highs.getBasis()
        if basis is None or not basis.valid:
            return None
        return list(basis.col_status), list(basis.row_status)

    def _set_basis_impl(self, col_status: List[Any], row_status: List[Any]) -> None:
        highs_basis = highspy.HighsBasis()
        highs_basis.col_status = col_status
        highs_basis.row_status = row_status
        if self._highs.setBasis(highs_basis) == highspy.HighsStatus.kError:
            raise SolverFailureError("warm start", f"{self._name}: HiGHS rejected the basis")

    def _extend_basis_impl(
        self,
        snapshot: BasisSnapshot,
    ) -> Tuple[List[Any], List[Any]]:
        col_status = list(snapshot.col_status)
        for index in range(snapshot.num_columns, self._num_loaded_cols):
            if self._lower[index] == float('-inf'):
                col_status.append(highspy.HighsBasisStatus.kZero)
            else:
                col_status.append(highspy.HighsBasisStatus.kLower)

        row_status = list(snapshot.row_status)
        row_status.extend(
            highspy.HighsBasisStatus.kBasic
            for _ in range(snapshot.num_rows, self._num_loaded_rows)
        )
        return col_status, row_status

    def _set_controls_impl(self, controls: SolverControls) -> None:
        # Probing is part of HiGHS presolve: all three must be on to keep it
        presolve_on = controls.presolve and controls.mip_presolve and controls.probing
        self._highs.setOptionValue('presolve', 'choose' if presolve_on else 'off')
        self._highs.setOptionValue(
            'simplex_strategy',
            _PRIMAL_SIMPLEX if controls.primal_simplex else _DUAL_SIMPLEX,
        )
        logger.debug(
            f"{self._name}: presolve={'choose' if presolve_on else 'off'}, "
            f"simplex={'primal' if controls.primal_simplex else 'dual'}, "
            f"automatic_cuts={controls.automatic_cuts} (no HiGHS switch, ignored)"
        )

    # =========================================================================
    # HiGHS-specific Methods
    # =========================================================================

    def _set_integrality(self, enforce: bool) -> None:
        """Switch integrality of INTEGER/BINARY columns on or off."""
        var_type = (
            highspy.HighsVarType.kInteger if enforce
            else highspy.HighsVarType.kContinuous
        )
        for var in self._variables[:self._num_loaded_cols]:
            if var.kind is not VarKind.CONTINUOUS:
                self._highs.changeColIntegrality(var.index, var_type)
        self._is_mip_mode = enforce


def _to_highs_bound(value: float) -> float:
    if value == float('inf'):
        return highspy.kHighsInf
    if value == float('-inf'):
        return -highspy.kHighsInf
    return value


def _nonzero(values: Sequence[float]) -> dict:
    """Index -> value for entries above the value tolerance."""
    tol = config.get_tolerance("value")
    return {index: value for index, value in enumerate(values) if abs(value) > tol}

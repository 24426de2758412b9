"""
Solver adapter abstract base class.

This module defines the boundary between the root-node loops and an LP/MIP
engine. The loops only ever talk to a MasterProblem; HiGHSMasterProblem is
the implementation shipped with rootgen.

Design Philosophy:
-----------------
- The Python side owns the model: variables, bounds, costs and rows are
  recorded here, and engine-specific subclasses only mirror them
- Structural changes (new columns, new rows, coefficient updates) are queued
  and pushed to the engine by reload(), the equivalent of reloading the matrix
  after amending it
- Solving with queued changes is an error, so a basis can never be loaded
  into a model whose shape it was not extended to
- Primal and dual values are only readable between a solve and the next
  structural change

Lifecycle:
---------
1. Create: master = HiGHSMasterProblem()
2. Build: add_variable / add_constraint / set_objective, then reload()
3. Solve LP: solution = master.solve_lp()
4. Snapshot: with master.save_basis() as basis: ...
5. Amend: add_variable / add_term / add_constraint, then reload()
6. Warm start: master.load_basis(basis)
7. Repeat 3-6, then solve_mip() if needed

Customization Guide:
-------------------
To wrap another engine, subclass MasterProblem and implement the _*_impl
methods. Column and row indices handed to the implementation methods are
dense and in insertion order.
"""

import logging
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from rootgen.exceptions import SolverFailureError
from rootgen.master.solution import MasterSolution

logger = logging.getLogger(__name__)

INF = math.inf


class VarKind(Enum):
    """Variable kinds supported by the adapter."""
    CONTINUOUS = auto()
    INTEGER = auto()    # unsigned integer (lower bound 0 unless stated)
    BINARY = auto()


class Sense(Enum):
    """Constraint sense."""
    LE = '<='
    GE = '>='
    EQ = '='


class ObjectiveSense(Enum):
    """Optimization direction."""
    MINIMIZE = auto()
    MAXIMIZE = auto()


@dataclass(frozen=True)
class Variable:
    """
    Handle to a master variable.

    Attributes:
        index: Column index in the model (dense, insertion order)
        name: Unique variable name
        kind: CONTINUOUS, INTEGER or BINARY
    """
    index: int
    name: str
    kind: VarKind = VarKind.CONTINUOUS

    @property
    def is_integer(self) -> bool:
        return self.kind is not VarKind.CONTINUOUS


@dataclass(eq=False)
class Constraint:
    """
    Handle to a master row.

    Attributes:
        index: Row index in the model (dense, insertion order)
        name: Unique row name, used to look duals up by name
        sense: LE, GE or EQ
        rhs: Right-hand side
        coefficients: Mapping from variable index to coefficient
    """
    index: int
    name: str
    sense: Sense
    rhs: float
    coefficients: Dict[int, float] = field(default_factory=dict)

    @property
    def bounds(self) -> Tuple[float, float]:
        """Row activity bounds (lower, upper) implied by sense and rhs."""
        if self.sense is Sense.LE:
            return -INF, self.rhs
        if self.sense is Sense.GE:
            return self.rhs, INF
        return self.rhs, self.rhs

    def __repr__(self) -> str:
        return f"Constraint({self.name!r}, nnz={len(self.coefficients)}, {self.sense.value} {self.rhs:g})"


@dataclass
class SolverControls:
    """
    Engine knobs the loops may switch off.

    Attributes:
        automatic_cuts: Let the engine add its own cuts in MIP solves
        presolve: LP presolve
        mip_presolve: MIP presolve
        probing: Probing during MIP preprocessing
        primal_simplex: Prefer the primal simplex for LP solves
    """
    automatic_cuts: bool = True
    presolve: bool = True
    mip_presolve: bool = True
    probing: bool = True
    primal_simplex: bool = False

    @classmethod
    def for_separation(cls) -> 'SolverControls':
        """Everything off, primal simplex: keeps the LP stable between cut rounds."""
        return cls(
            automatic_cuts=False,
            presolve=False,
            mip_presolve=False,
            probing=False,
            primal_simplex=True,
        )


class BasisSnapshot:
    """
    Scoped copy of an LP basis, bound to the model shape it was saved from.

    A snapshot is released explicitly with release() or by leaving a with
    block. Once released it can no longer be loaded. A master holds at most
    one live snapshot at a time.

    Example:
        >>> solution = master.solve_lp()
        >>> with master.save_basis() as basis:
        ...     master.add_variable("pat_6", VarKind.INTEGER)
        ...     master.reload()
        ...     master.load_basis(basis)
    """

    def __init__(
        self,
        owner: 'MasterProblem',
        col_status: List[Any],
        row_status: List[Any],
    ):
        self._owner = owner
        self._col_status: Optional[List[Any]] = list(col_status)
        self._row_status: Optional[List[Any]] = list(row_status)

    @property
    def owner(self) -> 'MasterProblem':
        return self._owner

    @property
    def released(self) -> bool:
        return self._col_status is None

    @property
    def num_columns(self) -> int:
        return len(self._col_status) if self._col_status is not None else 0

    @property
    def num_rows(self) -> int:
        return len(self._row_status) if self._row_status is not None else 0

    @property
    def col_status(self) -> List[Any]:
        if self._col_status is None:
            raise RuntimeError("Basis snapshot has been released")
        return self._col_status

    @property
    def row_status(self) -> List[Any]:
        if self._row_status is None:
            raise RuntimeError("Basis snapshot has been released")
        return self._row_status

    def release(self) -> None:
        """Drop the stored statuses. Safe to call more than once."""
        if self._col_status is None:
            return
        self._col_status = None
        self._row_status = None
        self._owner._on_basis_released(self)

    def __enter__(self) -> 'BasisSnapshot':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        if self.released:
            return "BasisSnapshot(released)"
        return f"BasisSnapshot(cols={self.num_columns}, rows={self.num_rows})"


class MasterProblem(ABC):
    """
    Abstract base class for the solver adapter.

    Attributes:
        name: Problem name (for logs and summaries)
        sense: Objective sense
        controls: Current solver controls
    """

    def __init__(self, name: str = "master"):
        """
        Initialize the adapter and build the engine model.

        Args:
            name: Problem name
        """
        self._name = name
        self._sense = ObjectiveSense.MINIMIZE
        self._controls = SolverControls()

        # Column data, indexed by Variable.index
        self._variables: List[Variable] = []
        self._lower: List[float] = []
        self._upper: List[float] = []
        self._cost: List[float] = []
        self._variable_by_name: Dict[str, Variable] = {}

        # Row data, indexed by Constraint.index
        self._constraints: List[Constraint] = []
        self._constraint_by_name: Dict[str, Constraint] = {}

        # How much of the model the engine has seen
        self._num_loaded_cols = 0
        self._num_loaded_rows = 0
        self._pending_coefficients: Dict[Tuple[int, int], float] = {}
        self._num_reloads = 0

        self._last_solution: Optional[MasterSolution] = None
        self._solution_valid = False
        self._live_basis: Optional[BasisSnapshot] = None

        self._build_model()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def name(self) -> str:
        return self._name

    @property
    def sense(self) -> ObjectiveSense:
        return self._sense

    @property
    def controls(self) -> SolverControls:
        return self._controls

    @property
    def num_variables(self) -> int:
        """Number of variables (loaded or pending)."""
        return len(self._variables)

    @property
    def num_constraints(self) -> int:
        """Number of constraints (loaded or pending)."""
        return len(self._constraints)

    @property
    def variables(self) -> List[Variable]:
        return self._variables.copy()

    @property
    def constraints(self) -> List[Constraint]:
        return self._constraints.copy()

    @property
    def num_reloads(self) -> int:
        """How many times reload() pushed changes to the engine."""
        return self._num_reloads

    @property
    def has_pending_changes(self) -> bool:
        """True if structural changes are waiting for reload()."""
        return (
            self._num_loaded_cols < len(self._variables)
            or self._num_loaded_rows < len(self._constraints)
            or bool(self._pending_coefficients)
        )

    @property
    def last_solution(self) -> Optional[MasterSolution]:
        return self._last_solution

    @property
    def has_current_solution(self) -> bool:
        """True between a solve and the next structural change."""
        return self._last_solution is not None and self._solution_valid

    # =========================================================================
    # Abstract Methods (MUST be implemented by subclasses)
    # =========================================================================

    @abstractmethod
    def _build_model(self) -> None:
        """Create the (empty) engine model and apply base options."""
        pass

    @abstractmethod
    def _add_column_impl(
        self,
        cost: float,
        lower: float,
        upper: float,
        rows: Sequence[int],
        values: Sequence[float],
    ) -> None:
        """Append a continuous column with entries in already loaded rows."""
        pass

    @abstractmethod
    def _add_row_impl(
        self,
        lower: float,
        upper: float,
        cols: Sequence[int],
        values: Sequence[float],
    ) -> None:
        """Append a row over already loaded columns."""
        pass

    @abstractmethod
    def _change_coefficient_impl(self, row: int, col: int, value: float) -> None:
        """Overwrite one matrix entry of loaded row/column."""
        pass

    @abstractmethod
    def _change_bounds_impl(self, col: int, lower: float, upper: float) -> None:
        pass

    @abstractmethod
    def _change_cost_impl(self, col: int, cost: float) -> None:
        pass

    @abstractmethod
    def _set_sense_impl(self, sense: ObjectiveSense) -> None:
        pass

    @abstractmethod
    def _solve_lp_impl(self) -> MasterSolution:
        """
        Solve the LP relaxation (integrality ignored).

        Returns:
            MasterSolution with status, objective, primal and dual values
        """
        pass

    @abstractmethod
    def _solve_mip_impl(self) -> MasterSolution:
        """
        Solve with integrality enforced for INTEGER and BINARY variables.

        Returns:
            MasterSolution with status, objective and primal values
        """
        pass

    @abstractmethod
    def _get_basis_impl(self) -> Optional[Tuple[List[Any], List[Any]]]:
        """Current (column statuses, row statuses), or None if no valid basis."""
        pass

    @abstractmethod
    def _set_basis_impl(self, col_status: List[Any], row_status: List[Any]) -> None:
        """Install a basis of the current model's shape."""
        pass

    @abstractmethod
    def _extend_basis_impl(
        self,
        snapshot: BasisSnapshot,
    ) -> Tuple[List[Any], List[Any]]:
        """
        Extend a snapshot to the current shape.

        New columns become nonbasic at a bound, new rows become basic.
        """
        pass

    @abstractmethod
    def _set_controls_impl(self, controls: SolverControls) -> None:
        pass

    # =========================================================================
    # Public API - Building
    # =========================================================================

    def add_variable(
        self,
        name: str,
        kind: VarKind = VarKind.CONTINUOUS,
        lower: float = 0.0,
        upper: float = INF,
    ) -> Variable:
        """
        Add a variable. It reaches the engine on the next reload().

        Args:
            name: Unique variable name
            kind: CONTINUOUS, INTEGER or BINARY (BINARY forces bounds [0, 1])
            lower: Lower bound
            upper: Upper bound

        Returns:
            Handle to the new variable

        Raises:
            ValueError: If the name is taken or the bounds are inconsistent
        """
        if name in self._variable_by_name:
            raise ValueError(f"Variable {name!r} already exists")
        if kind is VarKind.BINARY:
            lower, upper = 0.0, 1.0
        if lower > upper:
            raise ValueError(f"Variable {name!r} has lower bound {lower} > upper bound {upper}")

        var = Variable(index=len(self._variables), name=name, kind=kind)
        self._variables.append(var)
        self._lower.append(float(lower))
        self._upper.append(float(upper))
        self._cost.append(0.0)
        self._variable_by_name[name] = var
        self._invalidate_solution()
        return var

    def set_upper_bound(self, var: Variable, upper: float) -> None:
        """
        Change a variable's upper bound after creation.

        Bound changes are not structural, so a loaded variable is updated in
        the engine immediately.
        """
        self._check_variable(var)
        if upper < self._lower[var.index]:
            raise ValueError(
                f"Upper bound {upper} below lower bound {self._lower[var.index]} for {var.name!r}"
            )
        self._upper[var.index] = float(upper)
        if var.index < self._num_loaded_cols:
            self._change_bounds_impl(var.index, self._lower[var.index], float(upper))

    def get_bounds(self, var: Variable) -> Tuple[float, float]:
        self._check_variable(var)
        return self._lower[var.index], self._upper[var.index]

    def add_constraint(
        self,
        name: str,
        terms: Iterable[Tuple[Variable, float]],
        sense: Sense,
        rhs: float,
    ) -> Constraint:
        """
        Add a linear constraint. It reaches the engine on the next reload().

        Args:
            name: Unique row name
            terms: (variable, coefficient) pairs; repeated variables are summed
            sense: LE, GE or EQ
            rhs: Right-hand side

        Returns:
            Handle to the new constraint
        """
        if name in self._constraint_by_name:
            raise ValueError(f"Constraint {name!r} already exists")

        coefficients: Dict[int, float] = {}
        for var, coeff in terms:
            self._check_variable(var)
            coefficients[var.index] = coefficients.get(var.index, 0.0) + float(coeff)

        constraint = Constraint(
            index=len(self._constraints),
            name=name,
            sense=sense,
            rhs=float(rhs),
            coefficients=coefficients,
        )
        self._constraints.append(constraint)
        self._constraint_by_name[name] = constraint
        self._invalidate_solution()
        return constraint

    def add_term(self, constraint: Constraint, var: Variable, coefficient: float) -> None:
        """
        Augment a constraint by coefficient * var.

        Args:
            constraint: The row to augment
            var: The variable of the new term
            coefficient: Added to any existing coefficient of var in the row
        """
        self._check_constraint(constraint)
        self._check_variable(var)
        value = constraint.coefficients.get(var.index, 0.0) + float(coefficient)
        constraint.coefficients[var.index] = value

        # Entries of rows or columns not yet loaded are sent with them on reload
        if constraint.index < self._num_loaded_rows and var.index < self._num_loaded_cols:
            self._pending_coefficients[(constraint.index, var.index)] = value
        self._invalidate_solution()

    def set_objective(self, terms: Iterable[Tuple[Variable, float]]) -> None:
        """Replace the objective with a linear expression."""
        new_cost = [0.0] * len(self._variables)
        for var, coeff in terms:
            self._check_variable(var)
            new_cost[var.index] += float(coeff)

        for index, cost in enumerate(new_cost):
            if cost != self._cost[index]:
                self._cost[index] = cost
                if index < self._num_loaded_cols:
                    self._change_cost_impl(index, cost)

    def add_objective_term(self, var: Variable, coefficient: float) -> None:
        """Add coefficient * var to the objective."""
        self._check_variable(var)
        self._cost[var.index] += float(coefficient)
        if var.index < self._num_loaded_cols:
            self._change_cost_impl(var.index, self._cost[var.index])

    def get_cost(self, var: Variable) -> float:
        self._check_variable(var)
        return self._cost[var.index]

    def set_sense(self, sense: ObjectiveSense) -> None:
        self._sense = sense
        self._set_sense_impl(sense)

    def set_controls(self, controls: SolverControls) -> None:
        """Apply solver controls (see SolverControls)."""
        self._controls = controls
        self._set_controls_impl(controls)

    def variable(self, name: str) -> Variable:
        """Look a variable up by name."""
        return self._variable_by_name[name]

    def constraint(self, name: str) -> Constraint:
        """Look a constraint up by name."""
        return self._constraint_by_name[name]

    # =========================================================================
    # Public API - Reload
    # =========================================================================

    def reload(self) -> int:
        """
        Push queued structural changes to the engine.

        New columns go first (with their entries in loaded rows), then new
        rows (over all columns), then coefficient updates on loaded entries.

        Returns:
            Number of structural changes pushed
        """
        first_new_row = self._num_loaded_rows
        num_changes = 0

        for index in range(self._num_loaded_cols, len(self._variables)):
            rows, values = [], []
            for row in self._constraints[:first_new_row]:
                coeff = row.coefficients.get(index)
                if coeff:
                    rows.append(row.index)
                    values.append(coeff)
            self._add_column_impl(
                self._cost[index], self._lower[index], self._upper[index], rows, values
            )
            self._num_loaded_cols += 1
            num_changes += 1

        for row in self._constraints[first_new_row:]:
            cols = [c for c, v in row.coefficients.items() if v != 0.0]
            values = [row.coefficients[c] for c in cols]
            lower, upper = row.bounds
            self._add_row_impl(lower, upper, cols, values)
            self._num_loaded_rows += 1
            num_changes += 1

        for (row, col), value in self._pending_coefficients.items():
            self._change_coefficient_impl(row, col, value)
            num_changes += 1
        self._pending_coefficients.clear()

        if num_changes:
            self._num_reloads += 1
            logger.debug(
                f"{self._name}: reload #{self._num_reloads} pushed {num_changes} changes "
                f"({self._num_loaded_cols} cols, {self._num_loaded_rows} rows)"
            )
        return num_changes

    # =========================================================================
    # Public API - Solving
    # =========================================================================

    def solve_lp(self) -> MasterSolution:
        """
        Solve the LP relaxation of the loaded model.

        Returns:
            MasterSolution with status, objective, primals and duals

        Raises:
            RuntimeError: If structural changes have not been reloaded
        """
        self._require_loaded("solve_lp")
        solution = self._solve_lp_impl()
        self._store_solution(solution)
        return solution

    def solve_mip(self) -> MasterSolution:
        """
        Solve the loaded model with integrality enforced.

        Returns:
            MasterSolution with status, objective and primals
        """
        self._require_loaded("solve_mip")
        solution = self._solve_mip_impl()
        self._store_solution(solution)
        return solution

    def get_objective_value(self) -> float:
        solution = self._current_solution()
        if solution.objective_value is None:
            raise RuntimeError(f"No objective value available (status {solution.status.name})")
        return solution.objective_value

    def get_value(self, var: Variable) -> float:
        """Primal value of a variable in the current solution."""
        self._check_variable(var)
        return self._current_solution().value(var.index)

    def get_dual(self, constraint: Constraint) -> float:
        """Dual value of a constraint in the current LP solution."""
        self._check_constraint(constraint)
        solution = self._current_solution()
        if solution.is_mip:
            raise RuntimeError("Dual values are only available after an LP solve")
        return solution.get_dual(constraint.index)

    # =========================================================================
    # Public API - Warm Starting
    # =========================================================================

    def save_basis(self) -> BasisSnapshot:
        """
        Snapshot the current basis.

        Returns:
            A scoped BasisSnapshot (use it as a context manager)

        Raises:
            RuntimeError: If another snapshot of this master is still live
            SolverFailureError: If the engine has no valid basis
        """
        if self._live_basis is not None:
            raise RuntimeError("Release the previous basis snapshot before saving another")
        self._require_loaded("save_basis")

        statuses = self._get_basis_impl()
        if statuses is None:
            raise SolverFailureError("warm start", "no valid basis to save")

        snapshot = BasisSnapshot(self, statuses[0], statuses[1])
        self._live_basis = snapshot
        logger.debug(f"{self._name}: saved {snapshot!r}")
        return snapshot

    def load_basis(self, snapshot: BasisSnapshot) -> None:
        """
        Restore a snapshot, extended to the current (grown) model shape.

        Args:
            snapshot: A live snapshot saved from this master

        Raises:
            RuntimeError: If the snapshot is released, foreign, or the model
                has changes that were not reloaded
            SolverFailureError: If the solver rejects the restored basis
        """
        if snapshot.owner is not self:
            raise RuntimeError("Basis snapshot belongs to a different master")
        if snapshot.released:
            raise RuntimeError("Basis snapshot has been released")
        self._require_loaded("load_basis")
        if snapshot.num_columns > self._num_loaded_cols or snapshot.num_rows > self._num_loaded_rows:
            raise RuntimeError("Basis snapshot is larger than the current model")

        col_status, row_status = self._extend_basis_impl(snapshot)
        self._set_basis_impl(col_status, row_status)
        logger.debug(
            f"{self._name}: loaded basis ({snapshot.num_columns}->{len(col_status)} cols, "
            f"{snapshot.num_rows}->{len(row_status)} rows)"
        )

    # =========================================================================
    # Utilities
    # =========================================================================

    @staticmethod
    def now_ms() -> int:
        """Current wall-clock time in milliseconds."""
        return int(time.time() * 1000)

    def summary(self) -> str:
        """
        Return a human-readable summary.

        Returns:
            Summary string
        """
        num_int = sum(1 for v in self._variables if v.is_integer)
        lines = [
            f"MasterProblem: {self._name}",
            f"  Variables: {self.num_variables} ({num_int} integer)",
            f"  Constraints: {self.num_constraints}",
            f"  Objective: {self._sense.name}",
            f"  Reloads: {self._num_reloads}",
        ]
        if self.has_pending_changes:
            lines.append("  Pending changes: yes")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"variables={self.num_variables}, "
            f"constraints={self.num_constraints})"
        )

    # =========================================================================
    # Internal Methods
    # =========================================================================

    def _check_variable(self, var: Variable) -> None:
        if var.index >= len(self._variables) or self._variables[var.index] != var:
            raise ValueError(f"Variable {var.name!r} does not belong to this master")

    def _check_constraint(self, constraint: Constraint) -> None:
        if (
            constraint.index >= len(self._constraints)
            or self._constraints[constraint.index] is not constraint
        ):
            raise ValueError(f"Constraint {constraint.name!r} does not belong to this master")

    def _require_loaded(self, operation: str) -> None:
        if self.has_pending_changes:
            raise RuntimeError(f"{operation}: structural changes pending, call reload() first")

    def _invalidate_solution(self) -> None:
        self._solution_valid = False

    def _store_solution(self, solution: MasterSolution) -> None:
        solution.num_variables = len(self._variables)
        solution.num_constraints = len(self._constraints)
        self._last_solution = solution
        self._solution_valid = True

    def _current_solution(self) -> MasterSolution:
        if self._last_solution is None or not self._solution_valid:
            raise RuntimeError("No current solution: solve after the last structural change")
        return self._last_solution

    def _on_basis_released(self, snapshot: BasisSnapshot) -> None:
        if self._live_basis is snapshot:
            self._live_basis = None

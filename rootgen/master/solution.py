"""
Master problem solution module.

This module defines the data structures for representing solutions
returned by the solver adapter.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Iterable, List, Optional


class SolutionStatus(Enum):
    """
    Status of a master problem solve.

    These statuses cover both LP and MIP outcomes.
    """
    OPTIMAL = auto()           # Optimal solution found
    INFEASIBLE = auto()        # Problem is infeasible
    UNBOUNDED = auto()         # Problem is unbounded
    INF_OR_UNBOUNDED = auto()  # Infeasible or unbounded (solver couldn't determine)
    TIME_LIMIT = auto()        # Time limit reached (may have feasible solution)
    ITERATION_LIMIT = auto()   # Iteration limit reached
    NOT_SOLVED = auto()        # Solve not called yet
    ERROR = auto()             # Solver error occurred


@dataclass
class MasterSolution:
    """
    Result of solving the master problem (or a subproblem).

    Attributes:
        status: Solution status (OPTIMAL, INFEASIBLE, etc.)
        objective_value: Objective function value (None if not solved/infeasible)
        variable_values: Mapping from variable index to its primal value
        dual_values: Mapping from constraint index to its dual value (LP only)
        is_mip: Whether this came from a MIP solve
        solve_time: Time spent solving in seconds
        iterations: Number of simplex iterations
        nodes: Number of B&B nodes explored (MIP only)
        num_variables: Number of variables in the model when solved
        num_constraints: Number of constraints in the model when solved
        gap: Relative MIP gap (None for LP)

    Example:
        >>> solution = master.solve_lp()
        >>> if solution.is_optimal:
        ...     print(f"Objective: {solution.objective_value}")
        ...     for row, dual in solution.dual_values.items():
        ...         print(f"  Dual[{row}] = {dual}")
    """
    # Solution status
    status: SolutionStatus = SolutionStatus.NOT_SOLVED

    # Objective value
    objective_value: Optional[float] = None

    # Primal solution: variable index -> value
    variable_values: Dict[int, float] = field(default_factory=dict)

    # Dual solution: constraint index -> dual value
    dual_values: Dict[int, float] = field(default_factory=dict)

    is_mip: bool = False

    # Solver statistics
    solve_time: float = 0.0
    iterations: int = 0
    nodes: int = 0
    num_variables: int = 0
    num_constraints: int = 0

    gap: Optional[float] = None

    # =========================================================================
    # Convenience Properties
    # =========================================================================

    @property
    def is_optimal(self) -> bool:
        """Check if solution is optimal."""
        return self.status == SolutionStatus.OPTIMAL

    @property
    def is_infeasible(self) -> bool:
        """Check if problem is infeasible."""
        return self.status == SolutionStatus.INFEASIBLE

    @property
    def is_unbounded(self) -> bool:
        """Check if problem is unbounded."""
        return self.status == SolutionStatus.UNBOUNDED

    @property
    def has_solution(self) -> bool:
        """Check if a feasible solution is available."""
        return self.status in (
            SolutionStatus.OPTIMAL,
            SolutionStatus.TIME_LIMIT,
            SolutionStatus.ITERATION_LIMIT,
        ) and self.objective_value is not None

    @property
    def is_integer(self) -> bool:
        """
        Check if the solution is integer.

        Returns True if all variable values are (nearly) integer.
        """
        return self.is_integer_on(self.variable_values)

    # =========================================================================
    # Methods
    # =========================================================================

    def value(self, index: int, default: float = 0.0) -> float:
        """Primal value of a variable by index."""
        return self.variable_values.get(index, default)

    def get_dual(self, index: int, default: float = 0.0) -> float:
        """
        Get dual value for a specific constraint.

        Args:
            index: The constraint index
            default: Default value if not found

        Returns:
            Dual value for the constraint
        """
        return self.dual_values.get(index, default)

    def is_integer_on(self, indices: Iterable[int], tol: float = 1e-6) -> bool:
        """Check integrality of a subset of variables."""
        for index in indices:
            value = self.variable_values.get(index, 0.0)
            if abs(value - round(value)) > tol:
                return False
        return True

    def get_active_variables(self, tol: float = 1e-6) -> List[int]:
        """
        Get variable indices with positive value in solution.

        Args:
            tol: Tolerance for considering a value positive

        Returns:
            List of variable indices with value > tol
        """
        return [
            index for index, value in self.variable_values.items()
            if value > tol
        ]

    def get_fractional_variables(self, tol: float = 1e-6) -> List[int]:
        """
        Get variable indices with fractional value in solution.

        Args:
            tol: Tolerance for integrality check

        Returns:
            List of variable indices with fractional values
        """
        fractional = []
        for index, value in self.variable_values.items():
            if value > tol and abs(value - round(value)) > tol:
                fractional.append(index)
        return fractional

    def summary(self) -> str:
        """
        Return a human-readable summary of the solution.

        Returns:
            Summary string
        """
        lines = [
            f"MasterSolution ({'MIP' if self.is_mip else 'LP'}):",
            f"  Status: {self.status.name}",
        ]

        if self.objective_value is not None:
            lines.append(f"  Objective: {self.objective_value:.6f}")

        if self.gap is not None:
            lines.append(f"  Gap: {self.gap:.4%}")

        active = self.get_active_variables()
        lines.append(f"  Active variables: {len(active)} / {self.num_variables}")
        lines.append(f"  Constraints: {self.num_constraints}")

        if not self.is_integer:
            fractional = self.get_fractional_variables()
            lines.append(f"  Fractional variables: {len(fractional)}")
        else:
            lines.append("  Solution is integer")

        lines.extend([
            f"  Solve time: {self.solve_time:.3f}s",
            f"  Iterations: {self.iterations}",
        ])

        if self.nodes > 0:
            lines.append(f"  Nodes: {self.nodes}")

        return "\n".join(lines)

    def __repr__(self) -> str:
        obj_str = f", obj={self.objective_value:.4f}" if self.objective_value is not None else ""
        return f"MasterSolution({self.status.name}{obj_str})"

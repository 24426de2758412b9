"""
Root loop solution module.

This module defines the data structures for representing the results of
the column generation and cut generation drivers.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional

from rootgen.master.solution import MasterSolution


class LoopStatus(Enum):
    """
    Status of a root-node loop run.
    """
    OPTIMAL = auto()           # Oracle proved the LP optimal
    INTEGER_OPTIMAL = auto()   # Final MIP solved to optimality
    ITERATION_LIMIT = auto()   # Pass cap reached without a proof
    STOPPED = auto()           # A callback asked to stop
    INFEASIBLE = auto()        # Master problem is infeasible
    UNBOUNDED = auto()         # Master problem is unbounded
    NOT_SOLVED = auto()        # Not yet solved
    ERROR = auto()             # Error occurred


@dataclass
class LoopIteration:
    """
    Information about a single pass of a root loop.

    Attributes:
        iteration: Pass number (1-based)
        elapsed: Seconds since the loop started, at the end of the pass
        lp_objective: LP objective value of the pass
        num_added: Columns or cuts added in this pass
        total_added: Columns or cuts added so far
        oracle_value: Pricing z* (column generation) or largest violation (cut generation)
        master_time: Time spent in the LP solve
        oracle_time: Time spent in pricing or separation
        master_size: Variables plus constraints of the master after the pass
    """
    iteration: int
    elapsed: float
    lp_objective: float
    num_added: int
    total_added: int
    oracle_value: Optional[float] = None
    master_time: float = 0.0
    oracle_time: float = 0.0
    master_size: int = 0


@dataclass
class LoopSolution:
    """
    Result of a root loop run.

    Attributes:
        status: Loop status
        objective_value: Reported objective (MIP if one was solved, else LP)
        lp_objective: Objective of the last LP solved in the loop
        ip_objective: MIP objective (if solved)
        final_solution: The master solution the report is based on
        iterations: Number of passes
        total_added: Columns or cuts added by the loop
        total_time: Total solve time
        master_time: Time spent on LP and MIP solves
        oracle_time: Time spent in pricing or separation
        used_mip: Whether a MIP solve produced the final solution
        iteration_history: One LoopIteration per pass
        metadata: Driver-specific extras

    Example:
        >>> solution = cg.solve()
        >>> if solution.is_optimal:
        ...     print(f"Optimal value: {solution.objective_value}")
    """
    # Status
    status: LoopStatus = LoopStatus.NOT_SOLVED

    # Objective values
    objective_value: Optional[float] = None
    lp_objective: Optional[float] = None
    ip_objective: Optional[float] = None

    final_solution: Optional[MasterSolution] = None

    # Statistics
    iterations: int = 0
    total_added: int = 0
    total_time: float = 0.0
    master_time: float = 0.0
    oracle_time: float = 0.0
    used_mip: bool = False

    # Iteration history
    iteration_history: List[LoopIteration] = field(default_factory=list)

    # Additional info
    metadata: Dict[str, Any] = field(default_factory=dict)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def is_optimal(self) -> bool:
        """Check if the loop converged (and the MIP, if any, is optimal)."""
        return self.status in (LoopStatus.OPTIMAL, LoopStatus.INTEGER_OPTIMAL)

    @property
    def is_feasible(self) -> bool:
        """Check if a solution is available."""
        return self.objective_value is not None and self.status in (
            LoopStatus.OPTIMAL,
            LoopStatus.INTEGER_OPTIMAL,
            LoopStatus.ITERATION_LIMIT,
            LoopStatus.STOPPED,
        )

    @property
    def gap(self) -> Optional[float]:
        """Relative gap between the MIP and the last LP objective."""
        if self.ip_objective is None or self.lp_objective is None:
            return None
        return (self.ip_objective - self.lp_objective) / max(abs(self.ip_objective), 1e-6)

    # =========================================================================
    # Methods
    # =========================================================================

    def get_convergence_history(self) -> List[float]:
        """
        Get LP objective values over passes.

        Returns:
            List of objective values, one per pass
        """
        return [it.lp_objective for it in self.iteration_history]

    def summary(self) -> str:
        """
        Return a human-readable summary.

        Returns:
            Summary string
        """
        lines = [
            "Root Loop Solution:",
            f"  Status: {self.status.name}",
        ]

        if self.objective_value is not None:
            lines.append(f"  Objective: {self.objective_value:.6f}")

        if self.lp_objective is not None and self.lp_objective != self.objective_value:
            lines.append(f"  LP Objective: {self.lp_objective:.6f}")

        if self.ip_objective is not None:
            lines.append(f"  IP Objective: {self.ip_objective:.6f}")

        if self.gap is not None:
            lines.append(f"  Gap: {self.gap:.4%}")

        lines.extend([
            "",
            f"  Passes: {self.iterations}",
            f"  Added: {self.total_added}",
            "",
            f"  Total time: {self.total_time:.3f}s",
            f"  Master time: {self.master_time:.3f}s ({100*self.master_time/max(self.total_time, 1e-6):.1f}%)",
            f"  Oracle time: {self.oracle_time:.3f}s ({100*self.oracle_time/max(self.total_time, 1e-6):.1f}%)",
        ])

        if self.used_mip:
            lines.append("\n  Final solution from MIP")

        return "\n".join(lines)

    def __repr__(self) -> str:
        obj_str = f", obj={self.objective_value:.4f}" if self.objective_value is not None else ""
        return f"LoopSolution({self.status.name}{obj_str}, passes={self.iterations})"

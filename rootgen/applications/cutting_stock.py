"""
Cutting Stock Problem (CSP) solved at the root node by column generation.

The Cutting Stock Problem:
- Given: raw rolls of width R, and demand d_i for strips of width W_i
- Goal: cut the demand from the fewest rolls

Master Problem:
    min  sum_j x_j
    s.t. sum_j P_ji * x_j >= d_i     for each width i   (Demand_<i+1>)
         0 <= x_j <= u_j, x_j integer                    (pat_<j+1>)

where P_j is a cutting pattern and u_j = max over covered i of ceil(d_i / P_ji).

Pricing Problem (Bounded Knapsack):
    max  sum_i pi_i * P_i
    s.t. sum_i W_i * P_i <= R
         0 <= P_i <= d_i, P_i integer

The master starts from one homogeneous pattern per width, grows by one
pattern per pass, and is finally solved as a MIP.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from rootgen.config import EPS, get_tolerance
from rootgen.core.instance import CuttingStockInstance
from rootgen.core.pattern import Pattern, PatternPool
from rootgen.master import (
    BasisSnapshot,
    Constraint,
    HiGHSMasterProblem,
    MasterProblem,
    MasterSolution,
    Sense,
    Variable,
    VarKind,
)
from rootgen.solver.column_generation import CGCallback, CGConfig, ColumnGeneration
from rootgen.solver.solution import LoopSolution, LoopStatus

logger = logging.getLogger(__name__)


class CuttingStockMaster:
    """
    Cutting stock master problem on top of a solver adapter.

    Keeps the pattern pool, one variable per pattern and one demand row per
    width, and translates between patterns and the adapter's rows and columns.

    Example:
        >>> master = CuttingStockMaster(CuttingStockInstance.canonical())
        >>> master.num_patterns
        5
        >>> lp = master.solve_lp()
        >>> duals = master.demand_duals()
    """

    def __init__(
        self,
        instance: CuttingStockInstance,
        master: Optional[MasterProblem] = None,
        verbosity: Optional[int] = None,
    ):
        """
        Build the initial master.

        Args:
            instance: The cutting stock instance
            master: Empty solver adapter to build into (default: a new HiGHSMasterProblem)
            verbosity: HiGHS output level for the default adapter
        """
        self._instance = instance
        self._master = master if master is not None else HiGHSMasterProblem(
            instance.name, verbosity=verbosity
        )
        self._pool = PatternPool()
        self._variables: List[Variable] = []
        self._demand_rows: List[Constraint] = []
        self._build()

    def _build(self) -> None:
        instance = self._instance
        n = instance.num_items

        for j in range(n):
            pattern = self._pool.add(Pattern.singleton(j, n, instance.max_copies(j)))
            self._variables.append(self._master.add_variable(
                f"pat_{pattern.pattern_id + 1}",
                VarKind.INTEGER,
                0.0,
                pattern.upper_bound(instance.item_demands),
            ))

        self._master.set_objective([(var, 1.0) for var in self._variables])

        for i in range(n):
            terms = [
                (var, float(pattern.counts[i]))
                for var, pattern in zip(self._variables, self._pool)
                if pattern.counts[i] > 0
            ]
            self._demand_rows.append(self._master.add_constraint(
                f"Demand_{i + 1}", terms, Sense.GE, instance.item_demands[i]
            ))

        self._master.reload()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def instance(self) -> CuttingStockInstance:
        return self._instance

    @property
    def adapter(self) -> MasterProblem:
        """The underlying solver adapter."""
        return self._master

    @property
    def pool(self) -> PatternPool:
        return self._pool

    @property
    def patterns(self) -> List[Pattern]:
        return self._pool.all_patterns()

    @property
    def num_patterns(self) -> int:
        return len(self._pool)

    @property
    def variables(self) -> List[Variable]:
        return self._variables.copy()

    @property
    def demand_rows(self) -> List[Constraint]:
        return self._demand_rows.copy()

    @property
    def size(self) -> int:
        """Variables plus constraints."""
        return self._master.num_variables + self._master.num_constraints

    @property
    def has_current_solution(self) -> bool:
        return self._master.has_current_solution

    # =========================================================================
    # Amendment
    # =========================================================================

    def add_pattern(self, pattern: Pattern) -> Pattern:
        """
        Append a pattern as a new integer variable.

        The variable enters the objective with cost 1 and every demand row
        with its piece count, and is bounded by pattern.upper_bound. Call
        reload() before the next solve.

        Args:
            pattern: The pattern to add

        Returns:
            The pattern with its id set

        Raises:
            ValueError: If the pattern does not fit on a roll
        """
        instance = self._instance
        if len(pattern.counts) != instance.num_items:
            raise ValueError(
                f"Pattern has {len(pattern.counts)} counts, expected {instance.num_items}"
            )
        if not pattern.is_feasible(instance.item_widths, instance.roll_width):
            raise ValueError(f"{pattern!r} exceeds the roll width {instance.roll_width:g}")

        pattern = self._pool.add(pattern)
        var = self._master.add_variable(f"pat_{pattern.pattern_id + 1}", VarKind.INTEGER)
        self._variables.append(var)

        self._master.add_objective_term(var, 1.0)
        for i in pattern.covered_items(EPS):
            self._master.add_term(self._demand_rows[i], var, float(pattern.counts[i]))
        self._master.set_upper_bound(var, pattern.upper_bound(instance.item_demands))

        logger.debug(f"Added {var.name}: {pattern!r}")
        return pattern

    # =========================================================================
    # Adapter delegation
    # =========================================================================

    def reload(self) -> int:
        return self._master.reload()

    def solve_lp(self) -> MasterSolution:
        return self._master.solve_lp()

    def solve_mip(self) -> MasterSolution:
        return self._master.solve_mip()

    def save_basis(self) -> BasisSnapshot:
        return self._master.save_basis()

    def load_basis(self, snapshot: BasisSnapshot) -> None:
        self._master.load_basis(snapshot)

    def now_ms(self) -> int:
        return self._master.now_ms()

    # =========================================================================
    # Solution access
    # =========================================================================

    def demand_duals(self) -> List[float]:
        """Dual value of each demand row in the current LP solution."""
        return [self._master.get_dual(row) for row in self._demand_rows]

    def pattern_values(self, solution: Optional[MasterSolution] = None) -> List[float]:
        """
        Value of each pattern variable.

        Args:
            solution: Read values from this solution instead of the current one
                (patterns added after it count as 0)
        """
        if solution is not None:
            return [solution.value(var.index) for var in self._variables]
        return [self._master.get_value(var) for var in self._variables]

    def pattern_bounds(self) -> List[Tuple[float, float]]:
        return [self._master.get_bounds(var) for var in self._variables]

    def __repr__(self) -> str:
        return f"CuttingStockMaster({self._instance.name!r}, patterns={self.num_patterns})"


def build_cutting_stock_master(
    instance: CuttingStockInstance,
    master: Optional[MasterProblem] = None,
    verbosity: Optional[int] = None,
) -> CuttingStockMaster:
    """
    Build the initial cutting stock master (singleton patterns, reloaded).

    Args:
        instance: The cutting stock instance
        master: Empty solver adapter to build into (default: HiGHS)
        verbosity: HiGHS output level for the default adapter

    Returns:
        CuttingStockMaster ready for its first LP solve
    """
    return CuttingStockMaster(instance, master=master, verbosity=verbosity)


# =============================================================================
# Solution
# =============================================================================


@dataclass
class CuttingStockSolution:
    """
    Solution to a cutting stock problem.

    Attributes:
        status: Loop status
        lp_objective: Last LP relaxation value of the loop
        ip_objective: MIP objective (None if the MIP was not solved)
        rolls_per_pattern: Value of every pattern variable, in pattern order
        patterns: All patterns of the final master
        passes: Number of pricing passes
        solve_time: Total time in seconds
        material_lower_bound: ceil(sum W_i d_i / R)
        loop: The driver's LoopSolution (history, timings)
    """
    status: LoopStatus
    lp_objective: Optional[float]
    ip_objective: Optional[float]
    rolls_per_pattern: List[float]
    patterns: List[Pattern]
    passes: int
    solve_time: float
    material_lower_bound: int
    loop: Optional[LoopSolution] = field(default=None, repr=False)

    @property
    def objective_value(self) -> Optional[float]:
        return self.ip_objective if self.ip_objective is not None else self.lp_objective

    @property
    def num_rolls(self) -> Optional[int]:
        """Integer number of rolls (None without a MIP solution)."""
        return None if self.ip_objective is None else int(round(self.ip_objective))

    @property
    def num_patterns(self) -> int:
        return len(self.patterns)

    @property
    def generated_patterns(self) -> List[Pattern]:
        """Patterns found by pricing."""
        return [p for p in self.patterns if p.marginal_cost is not None]

    def used_patterns(self, tol: float = EPS) -> List[Tuple[Pattern, float]]:
        """(pattern, rolls) for every pattern cut at least once."""
        return [
            (pattern, value)
            for pattern, value in zip(self.patterns, self.rolls_per_pattern)
            if value > tol
        ]

    def report_lines(self) -> List[str]:
        """Final report: objective, pattern count and rolls per pattern."""
        values = ", ".join(_format_value(v) for v in self.rolls_per_pattern)
        label = _REPORT_LABELS.get(self.status, "Best solution")
        return [
            f"({self.solve_time:.3f} sec) {label}: "
            f"{_format_value(self.objective_value)} rolls, {self.num_patterns} patterns",
            f"   Rolls per pattern: {values}",
        ]

    def summary(self) -> str:
        """Return a human-readable summary."""
        lines = [
            "Cutting Stock Solution:",
            f"  Status: {self.status.name}",
        ]
        if self.lp_objective is not None:
            lines.append(f"  LP objective: {self.lp_objective:.4f}")
        if self.ip_objective is not None:
            lines.append(f"  Rolls (MIP): {self.num_rolls}")
        lines.extend([
            f"  Material lower bound: {self.material_lower_bound}",
            f"  Patterns: {self.num_patterns} ({len(self.generated_patterns)} generated)",
            f"  Passes: {self.passes}",
            f"  Time: {self.solve_time:.3f}s",
        ])
        for pattern, value in self.used_patterns():
            lines.append(f"    {_format_value(value)} x {list(pattern.counts)}")
        return "\n".join(lines)


# Opening of the final report line by loop status
_REPORT_LABELS = {
    LoopStatus.OPTIMAL: "Optimal solution",
    LoopStatus.INTEGER_OPTIMAL: "Optimal solution",
    LoopStatus.ITERATION_LIMIT: "Best solution at pass limit",
    LoopStatus.STOPPED: "Best solution when stopped",
}


def _format_value(value: Optional[float]) -> str:
    if value is None:
        return "n/a"
    nearest = round(value)
    if abs(value - nearest) <= get_tolerance("integrality"):
        value = nearest
    return f"{value:g}"


# =============================================================================
# Solve
# =============================================================================


def solve_cutting_stock(
    instance: Optional[CuttingStockInstance] = None,
    config: Optional[CGConfig] = None,
    master: Optional[MasterProblem] = None,
    callbacks: Optional[Iterable[CGCallback]] = None,
) -> CuttingStockSolution:
    """
    Solve a cutting stock problem by root-node column generation.

    Args:
        instance: The problem instance (default: the canonical instance)
        config: Driver configuration
        master: Empty solver adapter to build the master into (default: HiGHS)
        callbacks: Per-pass callbacks (driver, iteration) -> bool

    Returns:
        CuttingStockSolution with results

    Raises:
        SolverFailureError: If an LP, the pricing or the final MIP fails
    """
    if instance is None:
        instance = CuttingStockInstance.canonical()

    cs_master = build_cutting_stock_master(instance, master=master)
    cg = ColumnGeneration(cs_master, config=config)
    for callback in callbacks or ():
        cg.add_callback(callback)

    loop = cg.solve()

    solution = CuttingStockSolution(
        status=loop.status,
        lp_objective=loop.lp_objective,
        ip_objective=loop.ip_objective,
        rolls_per_pattern=cs_master.pattern_values(loop.final_solution),
        patterns=cs_master.patterns,
        passes=loop.iterations,
        solve_time=loop.total_time,
        material_lower_bound=instance.material_lower_bound,
        loop=loop,
    )

    for line in solution.report_lines():
        logger.info(line)
    return solution

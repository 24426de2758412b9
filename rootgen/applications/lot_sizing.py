"""
Uncapacitated Economic Lot Sizing (ELS) solved at the root node by cut generation.

The Economic Lot Sizing Problem:
- Given: T periods with demand D_t, setup cost F_t and unit production cost C_t
- Goal: decide when to set up and how much to produce, at minimum cost

Master Problem:
    min  sum_t F_t * setup_t + C_t * prod_t
    s.t. prod_t <= S[t,T-1] * setup_t             for each t   (Production_<t+1>)
         sum_{s <= t} prod_s >= S[0,t]            for each t   (Demand_<t+1>)
         prod_t >= 0, setup_t binary

where S[s,t] is the total demand of periods s..t. The LP relaxation is
strengthened with (l,S)-inequalities (rows 'cut<k>') until none is violated.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from rootgen.config import get_tolerance
from rootgen.core.cut import LSCut, TermKind
from rootgen.core.instance import LotSizingInstance
from rootgen.master import (
    BasisSnapshot,
    Constraint,
    HiGHSMasterProblem,
    MasterProblem,
    MasterSolution,
    Sense,
    SolverControls,
    Variable,
    VarKind,
)
from rootgen.solver.cut_generation import CutCallback, CutConfig, CutGeneration
from rootgen.solver.solution import LoopSolution, LoopStatus

logger = logging.getLogger(__name__)


class LotSizingMaster:
    """
    Lot sizing master problem on top of a solver adapter.

    Example:
        >>> master = LotSizingMaster(LotSizingInstance.canonical())
        >>> lp = master.solve_lp()
        >>> len(master.setups())
        6
    """

    def __init__(
        self,
        instance: LotSizingInstance,
        master: Optional[MasterProblem] = None,
        verbosity: Optional[int] = None,
    ):
        """
        Build the base formulation.

        Args:
            instance: The lot sizing instance
            master: Empty solver adapter to build into (default: a new HiGHSMasterProblem)
            verbosity: HiGHS output level for the default adapter
        """
        self._instance = instance
        self._master = master if master is not None else HiGHSMasterProblem(
            instance.name, verbosity=verbosity
        )
        self._prod: List[Variable] = []
        self._setup: List[Variable] = []
        self._production_rows: List[Constraint] = []
        self._demand_rows: List[Constraint] = []
        self._cuts: List[LSCut] = []
        self._cut_rows: List[Constraint] = []
        self._build()

    def _build(self) -> None:
        instance = self._instance
        horizon = instance.horizon
        last = horizon - 1

        for t in range(horizon):
            self._prod.append(self._master.add_variable(f"prod{t + 1}", VarKind.CONTINUOUS))
        for t in range(horizon):
            self._setup.append(self._master.add_variable(f"setup{t + 1}", VarKind.BINARY))

        objective = []
        for t in range(horizon):
            objective.append((self._setup[t], instance.setup_cost[t]))
            objective.append((self._prod[t], instance.production_cost[t]))
        self._master.set_objective(objective)

        # Production in t only if there is a setup in t
        for t in range(horizon):
            self._production_rows.append(self._master.add_constraint(
                f"Production_{t + 1}",
                [(self._prod[t], 1.0), (self._setup[t], -instance.cumulative_demand(t, last))],
                Sense.LE,
                0.0,
            ))

        # Production in periods 0..t must cover demand of periods 0..t
        for t in range(horizon):
            self._demand_rows.append(self._master.add_constraint(
                f"Demand_{t + 1}",
                [(self._prod[s], 1.0) for s in range(t + 1)],
                Sense.GE,
                instance.cumulative_demand(0, t),
            ))

        self._master.set_controls(SolverControls.for_separation())
        self._master.reload()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def instance(self) -> LotSizingInstance:
        return self._instance

    @property
    def adapter(self) -> MasterProblem:
        """The underlying solver adapter."""
        return self._master

    @property
    def prod_variables(self) -> List[Variable]:
        return self._prod.copy()

    @property
    def setup_variables(self) -> List[Variable]:
        return self._setup.copy()

    @property
    def production_rows(self) -> List[Constraint]:
        return self._production_rows.copy()

    @property
    def demand_rows(self) -> List[Constraint]:
        return self._demand_rows.copy()

    @property
    def cut_rows(self) -> List[Constraint]:
        return self._cut_rows.copy()

    @property
    def cuts(self) -> List[LSCut]:
        """Every cut added so far, in order."""
        return self._cuts.copy()

    @property
    def num_cuts(self) -> int:
        return len(self._cuts)

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

    def add_cut(self, cut: LSCut) -> Constraint:
        """
        Append an (l,S)-inequality as a named row. Call reload() before the next solve.

        Args:
            cut: The cut to add (its name must be unused)

        Returns:
            The new constraint
        """
        terms = []
        for term in cut.terms:
            if term.kind is TermKind.PROD:
                terms.append((self._prod[term.period], term.coefficient))
            else:
                terms.append((self._setup[term.period], term.coefficient))

        name = cut.name or f"cut{len(self._cuts) + 1}"
        row = self._master.add_constraint(name, terms, Sense.GE, cut.rhs)
        self._cuts.append(cut)
        self._cut_rows.append(row)
        return row

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

    def production(self, solution: Optional[MasterSolution] = None) -> List[float]:
        """Production per period, from the current solution or a given one."""
        if solution is not None:
            return [solution.value(var.index) for var in self._prod]
        return [self._master.get_value(var) for var in self._prod]

    def setups(self, solution: Optional[MasterSolution] = None) -> List[float]:
        """Setup value per period, from the current solution or a given one."""
        if solution is not None:
            return [solution.value(var.index) for var in self._setup]
        return [self._master.get_value(var) for var in self._setup]

    def setups_integral(self, tol: Optional[float] = None) -> bool:
        """Check that every setup of the current solution is 0 or 1 within tol."""
        if tol is None:
            tol = get_tolerance("integrality")
        return all(abs(s - round(s)) <= tol for s in self.setups())

    def __repr__(self) -> str:
        return f"LotSizingMaster({self._instance.name!r}, cuts={self.num_cuts})"


def build_lot_sizing_master(
    instance: LotSizingInstance,
    master: Optional[MasterProblem] = None,
    verbosity: Optional[int] = None,
) -> LotSizingMaster:
    """
    Build the base lot sizing master (controls set for separation, reloaded).

    Args:
        instance: The lot sizing instance
        master: Empty solver adapter to build into (default: HiGHS)
        verbosity: HiGHS output level for the default adapter

    Returns:
        LotSizingMaster ready for its first LP solve
    """
    return LotSizingMaster(instance, master=master, verbosity=verbosity)


# =============================================================================
# Solution
# =============================================================================


@dataclass
class LotSizingSolution:
    """
    Solution to an economic lot sizing problem.

    Attributes:
        instance: The solved instance
        status: Loop status
        objective_value: Reported objective (MIP if the safety net ran, else LP)
        lp_objective: Objective of the strengthened LP
        production: Production per period
        setup: Setup value per period
        cuts: (l,S)-inequalities added by the loop
        passes: Number of separation passes
        solve_time: Total time in seconds
        used_mip: Whether the MIP safety net produced the solution
        loop: The driver's LoopSolution (history, timings)
    """
    instance: LotSizingInstance
    status: LoopStatus
    objective_value: Optional[float]
    lp_objective: Optional[float]
    production: List[float]
    setup: List[float]
    cuts: List[LSCut]
    passes: int
    solve_time: float
    used_mip: bool = False
    loop: Optional[LoopSolution] = field(default=None, repr=False)

    @property
    def num_cuts(self) -> int:
        return len(self.cuts)

    @property
    def setup_periods(self) -> List[int]:
        """0-based periods with a setup."""
        tol = get_tolerance("integrality")
        return [t for t, s in enumerate(self.setup) if s > 1.0 - tol]

    @property
    def is_integral(self) -> bool:
        tol = get_tolerance("integrality")
        return all(abs(s - round(s)) <= tol for s in self.setup)

    def report_lines(self) -> List[str]:
        """One line per period: production, demand and costs."""
        instance = self.instance
        return [
            f"Period {t + 1}: prod {_clean(self.production[t]):g} "
            f"(demand: {instance.demand[t]:g}, cost: {instance.production_cost[t]:g}), "
            f"setup {_clean(self.setup[t]):g} (cost: {instance.setup_cost[t]:g})"
            for t in range(instance.horizon)
        ]

    def summary(self) -> str:
        """Return a human-readable summary."""
        lines = [
            "Lot Sizing Solution:",
            f"  Status: {self.status.name}",
        ]
        if self.objective_value is not None:
            lines.append(f"  Objective: {self.objective_value:.4f}")
        lines.extend([
            f"  Setup periods: {[t + 1 for t in self.setup_periods]}",
            f"  Cuts: {self.num_cuts}",
            f"  Passes: {self.passes}",
            f"  Time: {self.solve_time:.3f}s",
        ])
        if self.used_mip:
            lines.append("  Solved by the MIP safety net")
        return "\n".join(lines)


def _clean(value: float) -> float:
    """Snap values within tolerance of an integer to it."""
    nearest = round(value)
    if abs(value - nearest) <= get_tolerance("integrality"):
        return float(nearest)
    return value


# =============================================================================
# Solve
# =============================================================================


def solve_lot_sizing(
    instance: Optional[LotSizingInstance] = None,
    config: Optional[CutConfig] = None,
    master: Optional[MasterProblem] = None,
    callbacks: Optional[Iterable[CutCallback]] = None,
) -> LotSizingSolution:
    """
    Solve an economic lot sizing problem by root-node (l,S) cut generation.

    Args:
        instance: The problem instance (default: the canonical instance)
        config: Driver configuration
        master: Empty solver adapter to build the master into (default: HiGHS)
        callbacks: Per-pass callbacks (driver, iteration) -> bool

    Returns:
        LotSizingSolution with results

    Raises:
        SolverFailureError: If an LP or the MIP safety net fails
    """
    if instance is None:
        instance = LotSizingInstance.canonical()

    els_master = build_lot_sizing_master(instance, master=master)
    driver = CutGeneration(els_master, config=config)
    for callback in callbacks or ():
        driver.add_callback(callback)

    loop = driver.solve()

    solution = LotSizingSolution(
        instance=instance,
        status=loop.status,
        objective_value=loop.objective_value,
        lp_objective=loop.lp_objective,
        production=els_master.production(loop.final_solution),
        setup=els_master.setups(loop.final_solution),
        cuts=els_master.cuts,
        passes=loop.iterations,
        solve_time=loop.total_time,
        used_mip=loop.used_mip,
        loop=loop,
    )

    for line in solution.report_lines():
        logger.info(line)
    return solution

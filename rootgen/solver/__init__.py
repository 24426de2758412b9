"""
Solver module - the two root-node reformulation loops.

This module provides:
- ColumnGeneration / CGConfig: Cutting stock pricing loop plus final MIP
- CutGeneration / CutConfig: Lot sizing (l,S) separation loop
- LoopSolution / LoopStatus / LoopIteration: Results and per-pass history
- LoopState / LoopStateMachine: The SOLVING -> ORACLING -> AMENDING cycle

Usage:
------
    >>> from rootgen.applications.cutting_stock import build_cutting_stock_master
    >>> from rootgen.solver import ColumnGeneration, CGConfig
    >>> master = build_cutting_stock_master(instance)
    >>> cg = ColumnGeneration(master, config=CGConfig(max_passes=20))
    >>> solution = cg.solve()

With callbacks for monitoring:

    >>> def progress_callback(driver, iteration):
    ...     print(f"Pass {iteration.iteration}: obj={iteration.lp_objective:.2f}")
    ...     return iteration.iteration < 5  # Stop after 5 passes
    >>> cg.add_callback(progress_callback)
"""

from rootgen.solver.column_generation import CGCallback, CGConfig, ColumnGeneration
from rootgen.solver.cut_generation import CutCallback, CutConfig, CutGeneration
from rootgen.solver.solution import LoopIteration, LoopSolution, LoopStatus
from rootgen.solver.state import LoopState, LoopStateMachine


__all__ = [
    # Drivers
    'ColumnGeneration',
    'CGConfig',
    'CGCallback',
    'CutGeneration',
    'CutConfig',
    'CutCallback',

    # Solution
    'LoopSolution',
    'LoopStatus',
    'LoopIteration',

    # State
    'LoopState',
    'LoopStateMachine',
]

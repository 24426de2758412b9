"""
Master problem module - the solver adapter used by both root loops.

This module provides:
- MasterProblem: Abstract base class (Python-side model, reload, warm start)
- HiGHSMasterProblem: Default implementation using HiGHS
- MasterSolution / SolutionStatus: Solve results
- Variable / Constraint: Handles returned when building a model
- VarKind / Sense / ObjectiveSense / SolverControls: Model options
- BasisSnapshot: Scoped warm-start basis

Usage:
------
    >>> from rootgen.master import HiGHSMasterProblem, VarKind, Sense
    >>> master = HiGHSMasterProblem("demo")
    >>> x = master.add_variable("x", VarKind.INTEGER, 0, 4)
    >>> row = master.add_constraint("cover", [(x, 3.0)], Sense.GE, 7)
    >>> master.set_objective([(x, 1.0)])
    >>> master.reload()
    >>> lp = master.solve_lp()
    >>> with master.save_basis() as basis:
    ...     y = master.add_variable("y", VarKind.INTEGER, 0, 2)
    ...     master.add_objective_term(y, 1.0)
    ...     master.add_term(row, y, 4.0)
    ...     master.reload()
    ...     master.load_basis(basis)

Customization Points:
--------------------
Subclasses implement the _*_impl hooks of MasterProblem: building the
engine model, adding columns and rows, changing coefficients, bounds,
costs and sense, LP and MIP solves, reading, extending and installing a
basis, and applying SolverControls.
"""

from rootgen.master.solution import MasterSolution, SolutionStatus
from rootgen.master.base import (
    BasisSnapshot,
    Constraint,
    MasterProblem,
    ObjectiveSense,
    Sense,
    SolverControls,
    Variable,
    VarKind,
)
from rootgen.master.highs import HiGHSMasterProblem, HIGHS_AVAILABLE


__all__ = [
    # Solution
    'MasterSolution',
    'SolutionStatus',

    # Base class and model handles
    'MasterProblem',
    'Variable',
    'Constraint',
    'VarKind',
    'Sense',
    'ObjectiveSense',
    'SolverControls',
    'BasisSnapshot',

    # HiGHS implementation
    'HiGHSMasterProblem',
    'HIGHS_AVAILABLE',
]

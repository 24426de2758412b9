"""
Error taxonomy for the root-node loops.

Every fatal condition raised by rootgen derives from RootgenError, and also
from the builtin exception a caller would naturally expect (ValueError for bad
data, RuntimeError for solver trouble), so ``except ValueError`` keeps working.

- InstanceInvalidError: rejected before any master is built
- SolverFailureError: an LP or MIP solve did not reach optimality
- ResourceExhaustedError: allocation failure inside a pricing subproblem
- LoopLimitWarning: the pricing cap was hit without an optimality proof
"""

from typing import Any, Optional


class RootgenError(Exception):
    """Base class for all rootgen errors."""


class InstanceInvalidError(RootgenError, ValueError):
    """Instance data violates the model's preconditions."""


class SolverFailureError(RootgenError, RuntimeError):
    """
    A solve returned infeasible, unbounded, or failed numerically.

    Attributes:
        phase: Where the failure happened ('master', 'pricing', 'final', 'warm start')
        status: The SolutionStatus reported by the adapter, if any
    """

    def __init__(self, phase: str, message: str, status: Optional[Any] = None):
        self.phase = phase
        self.status = status
        detail = f" (status {status.name})" if status is not None else ""
        super().__init__(f"{phase} solve failed: {message}{detail}")


class ResourceExhaustedError(RootgenError, MemoryError):
    """Allocation failure inside a subproblem."""


class LoopLimitWarning(UserWarning):
    """Column generation stopped at its pass cap without proving LP optimality."""

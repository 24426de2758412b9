"""
Root loop state machine.

Both drivers move through the same four states:

    SOLVING ──LP optimal──> ORACLING ──progress──> AMENDING ──> SOLVING
       │                       │
       └──LP failed──┐         └──no progress──┐
                     v                         v
                 TERMINATED <──────────────────┘

AMENDING always returns to SOLVING. Any other move is a programming error
and raises RuntimeError.
"""

import logging
from enum import Enum, auto
from typing import Dict, FrozenSet, List

logger = logging.getLogger(__name__)


class LoopState(Enum):
    """Phase of a root-node reformulation loop."""
    SOLVING = auto()      # LP solve of the current master
    ORACLING = auto()     # pricing or separation on the LP solution
    AMENDING = auto()     # adding columns/rows, reload, basis restore
    TERMINATED = auto()   # loop finished (converged, capped, stopped or failed)


_TRANSITIONS: Dict[LoopState, FrozenSet[LoopState]] = {
    LoopState.SOLVING: frozenset({LoopState.ORACLING, LoopState.TERMINATED}),
    LoopState.ORACLING: frozenset({LoopState.AMENDING, LoopState.TERMINATED}),
    LoopState.AMENDING: frozenset({LoopState.SOLVING}),
    LoopState.TERMINATED: frozenset(),
}


class LoopStateMachine:
    """
    Tracks the state of one loop run and rejects invalid transitions.

    A loop that stops right after an amendment (pass cap reached or a
    callback asked to stop) goes back to SOLVING first and terminates from
    there.

    Example:
        >>> machine = LoopStateMachine()
        >>> machine.state
        <LoopState.SOLVING: 1>
        >>> machine.advance(LoopState.ORACLING)
        >>> machine.advance(LoopState.SOLVING)
        Traceback (most recent call last):
        ...
        RuntimeError: Invalid loop transition ORACLING -> SOLVING
    """

    def __init__(self):
        self._state = LoopState.SOLVING
        self._history: List[LoopState] = [LoopState.SOLVING]

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def history(self) -> List[LoopState]:
        """Every state visited, in order."""
        return self._history.copy()

    @property
    def is_terminated(self) -> bool:
        return self._state is LoopState.TERMINATED

    def can_advance(self, target: LoopState) -> bool:
        return target in _TRANSITIONS[self._state]

    def advance(self, target: LoopState) -> None:
        """
        Move to another state.

        Raises:
            RuntimeError: If the transition is not allowed
        """
        if not self.can_advance(target):
            raise RuntimeError(
                f"Invalid loop transition {self._state.name} -> {target.name}"
            )
        logger.debug(f"Loop state {self._state.name} -> {target.name}")
        self._state = target
        self._history.append(target)

    def terminate(self) -> None:
        """Move to TERMINATED if not there already."""
        if self._state is not LoopState.TERMINATED:
            self.advance(LoopState.TERMINATED)

    def __repr__(self) -> str:
        return f"LoopStateMachine({self._state.name})"

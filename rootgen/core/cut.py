"""
(l,S)-inequalities for uncapacitated lot sizing.

For a horizon endpoint l and a choice, per period t <= l, between the actual
production prod[t] and the setup-bounded capacity S[t,l] * setup[t]:

    sum_{t <= l} y_t >= S[0,l]

where S[s,t] is the total demand of periods s..t. A cut is stored as a tuple
of tagged terms so it can be evaluated on a point and emitted into a master
as a single linear expression.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Sequence, Tuple


class TermKind(Enum):
    """Which variable a cut term refers to."""
    PROD = auto()           # prod[t], coefficient 1
    SETUP_SCALED = auto()   # S[t,l] * setup[t]


@dataclass(frozen=True)
class CutTerm:
    """
    One term of an (l,S)-cut.

    Attributes:
        kind: PROD or SETUP_SCALED
        period: The period t the term refers to
        coefficient: 1.0 for PROD, S[t,l] for SETUP_SCALED
    """
    kind: TermKind
    period: int
    coefficient: float

    def value(self, prod: Sequence[float], setup: Sequence[float]) -> float:
        """Evaluate the term at a point."""
        if self.kind is TermKind.PROD:
            return self.coefficient * prod[self.period]
        return self.coefficient * setup[self.period]


@dataclass(frozen=True)
class LSCut:
    """
    An (l,S)-inequality: sum of terms >= rhs.

    Attributes:
        endpoint: The horizon endpoint l
        terms: One term per period 0..l, in period order
        rhs: Cumulative demand S[0,l]
        name: Row name in the master (e.g. 'cut3')
    """
    endpoint: int
    terms: Tuple[CutTerm, ...]
    rhs: float
    name: str = ""

    def __post_init__(self):
        if not isinstance(self.terms, tuple):
            object.__setattr__(self, 'terms', tuple(self.terms))

    def activity(self, prod: Sequence[float], setup: Sequence[float]) -> float:
        """Left-hand side of the cut at a point."""
        return sum(term.value(prod, setup) for term in self.terms)

    def violation(self, prod: Sequence[float], setup: Sequence[float]) -> float:
        """How far the point falls short of the rhs (negative if satisfied)."""
        return self.rhs - self.activity(prod, setup)

    def is_violated(
        self,
        prod: Sequence[float],
        setup: Sequence[float],
        tol: float,
    ) -> bool:
        return self.violation(prod, setup) > tol

    @property
    def setup_periods(self) -> Tuple[int, ...]:
        """Periods whose term uses the setup variable."""
        return tuple(t.period for t in self.terms if t.kind is TermKind.SETUP_SCALED)

    def __repr__(self) -> str:
        parts = []
        for term in self.terms:
            if term.kind is TermKind.PROD:
                parts.append(f"prod{term.period + 1}")
            else:
                parts.append(f"{term.coefficient:g}*setup{term.period + 1}")
        return f"LSCut({self.name or 'l=' + str(self.endpoint)}: {' + '.join(parts)} >= {self.rhs:g})"

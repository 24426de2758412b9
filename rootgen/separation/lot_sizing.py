"""
(l,S) separation for uncapacitated lot sizing.

For every horizon endpoint l the (l,S)-inequality with the smallest
left-hand side at a point (prod, setup) picks, period by period, the smaller
of prod[t] and S[t,l] * setup[t]:

    sum_{t <= l} min(prod[t], S[t,l] * setup[t]) >= S[0,l]

If even that choice falls short of S[0,l] by more than eps, the point
violates the (l,S) family and the corresponding inequality is returned.
Endpoints are scanned in increasing order, so the cuts of one round come out
sorted by l.
"""

import logging
from typing import List, Sequence

from rootgen.config import EPS
from rootgen.core.cut import CutTerm, LSCut, TermKind
from rootgen.core.instance import LotSizingInstance
from rootgen.separation.base import SeparationOracle, SeparationResult

logger = logging.getLogger(__name__)


class LSSeparator(SeparationOracle[LSCut]):
    """
    Exact separation of (l,S)-inequalities.

    Example:
        >>> separator = LSSeparator(LotSizingInstance.canonical())
        >>> result = separator.separate(prod, setup, first_index=1)
        >>> [cut.name for cut in result.cuts]
        ['cut1', 'cut2']
    """

    def __init__(self, instance: LotSizingInstance, tolerance: float = EPS):
        super().__init__(tolerance)
        self._instance = instance

    @property
    def instance(self) -> LotSizingInstance:
        return self._instance

    def most_violated_terms(
        self,
        endpoint: int,
        prod: Sequence[float],
        setup: Sequence[float],
    ) -> List[CutTerm]:
        """
        Terms of the (l,S)-inequality for endpoint l with the smallest activity.

        prod[t] is chosen when prod[t] < S[t,l] * setup[t] + eps, otherwise
        the setup-bounded term.
        """
        instance = self._instance
        terms = []
        for t in range(endpoint + 1):
            capacity = instance.cumulative_demand(t, endpoint)
            if prod[t] < capacity * setup[t] + self._tolerance:
                terms.append(CutTerm(TermKind.PROD, t, 1.0))
            else:
                terms.append(CutTerm(TermKind.SETUP_SCALED, t, capacity))
        return terms

    def separate(
        self,
        prod: Sequence[float],
        setup: Sequence[float],
        first_index: int = 1,
    ) -> SeparationResult[LSCut]:
        """
        Find the (l,S)-inequalities violated by (prod, setup).

        Args:
            prod: Production per period
            setup: Setup per period
            first_index: k of the first cut name 'cut<k>'

        Returns:
            SeparationResult with at most one cut per endpoint, in increasing l
        """
        horizon = self._instance.horizon
        if len(prod) != horizon or len(setup) != horizon:
            raise ValueError(
                f"Expected {horizon} production and setup values, "
                f"got {len(prod)} and {len(setup)}"
            )

        result: SeparationResult[LSCut] = SeparationResult()
        for endpoint in range(horizon):
            terms = self.most_violated_terms(endpoint, prod, setup)
            rhs = self._instance.cumulative_demand(0, endpoint)
            activity = sum(term.value(prod, setup) for term in terms)

            if activity < rhs - self._tolerance:
                cut = LSCut(
                    endpoint=endpoint,
                    terms=tuple(terms),
                    rhs=rhs,
                    name=f"cut{first_index + result.num_cuts}",
                )
                result.cuts.append(cut)
                result.max_violation = max(result.max_violation, rhs - activity)
                logger.debug(f"Violated by {rhs - activity:.6g}: {cut!r}")

        return result

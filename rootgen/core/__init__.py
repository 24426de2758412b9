"""
Core module - instance data and the objects the root loops add to a master.

Components:
----------
- CuttingStockInstance / LotSizingInstance: Validated, immutable instance data
- Pattern / PatternPool: Cutting patterns (columns of the cutting stock master)
- LSCut / CutTerm / TermKind: (l,S)-inequalities (rows added to the lot sizing master)
"""

from rootgen.core.cut import CutTerm, LSCut, TermKind
from rootgen.core.instance import CuttingStockInstance, LotSizingInstance
from rootgen.core.pattern import Pattern, PatternPool

__all__ = [
    # Instances
    "CuttingStockInstance",
    "LotSizingInstance",
    # Columns
    "Pattern",
    "PatternPool",
    # Cuts
    "LSCut",
    "CutTerm",
    "TermKind",
]

"""
Separation module - oracles that propose new rows for cut generation.

This module provides:
- SeparationOracle: Abstract base class
- SeparationResult: Cuts found in one round
- LSSeparator: Exact (l,S) separation for uncapacitated lot sizing

Usage:
------
    >>> from rootgen.separation import LSSeparator
    >>> separator = LSSeparator(instance)
    >>> result = separator.separate(prod, setup, first_index=total_cuts + 1)
    >>> for cut in result.cuts:
    ...     master.add_cut(cut)
"""

from rootgen.separation.base import SeparationOracle, SeparationResult
from rootgen.separation.lot_sizing import LSSeparator


__all__ = [
    'SeparationOracle',
    'SeparationResult',
    'LSSeparator',
]

"""
Pricing module - oracles that propose new columns for column generation.

For cutting stock the pricing problem is a bounded integer knapsack over
the demand-row duals. A pattern is profitable iff its dual value exceeds
its cost (one roll) by more than eps.

This module provides:
- PricingProblem: Abstract base class for custom oracles
- KnapsackPricing: Exact knapsack pricing solved as a small HiGHS MIP
- KnapsackSubproblem: The scoped knapsack MIP itself
- PricingSolution / PricingStatus / PricingConfig

Usage:
------
    >>> from rootgen.pricing import KnapsackPricing
    >>> pricing = KnapsackPricing(instance)
    >>> pricing.set_dual_values(master.demand_duals())
    >>> result = pricing.solve()
    >>> if result.has_profitable_pattern:
    ...     master.add_pattern(result.pattern)
"""

from rootgen.pricing.base import (
    PricingConfig,
    PricingProblem,
    PricingSolution,
    PricingStatus,
)
from rootgen.pricing.knapsack import KnapsackPricing, KnapsackSubproblem


__all__ = [
    # Base class
    'PricingProblem',
    'PricingSolution',
    'PricingStatus',
    'PricingConfig',

    # Knapsack pricing
    'KnapsackPricing',
    'KnapsackSubproblem',
]

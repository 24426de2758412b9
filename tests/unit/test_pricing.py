"""
Tests for the pricing module.

This module tests:
- PricingSolution dataclass
- KnapsackSubproblem (bounded integer knapsack in a scoped HiGHS instance)
- KnapsackPricing (profitability verdict, shortcut on non-positive duals)
"""

import pytest

from rootgen.core import Pattern
from rootgen.master import HIGHS_AVAILABLE
from rootgen.pricing import (
    KnapsackPricing,
    KnapsackSubproblem,
    PricingConfig,
    PricingSolution,
    PricingStatus,
)


# =============================================================================
# Test PricingSolution
# =============================================================================

class TestPricingSolution:
    """Tests for PricingSolution dataclass."""

    def test_default_values(self):
        sol = PricingSolution()
        assert sol.status == PricingStatus.NO_COLUMNS
        assert sol.pattern is None
        assert not sol.has_profitable_pattern

    def test_costs(self):
        """Test reduced and marginal cost derive from z*."""
        sol = PricingSolution(
            status=PricingStatus.COLUMNS_FOUND,
            z_star=1.25,
            pattern=Pattern(counts=(1, 2)),
        )
        assert sol.has_profitable_pattern
        assert sol.reduced_cost == pytest.approx(-0.25)
        assert sol.marginal_cost == pytest.approx(0.25)
        assert "COLUMNS_FOUND" in sol.summary()


# =============================================================================
# Test KnapsackSubproblem
# =============================================================================

@pytest.mark.skipif(not HIGHS_AVAILABLE, reason="HiGHS not installed")
class TestKnapsackSubproblem:
    """Tests for KnapsackSubproblem."""

    def test_solve(self):
        """Test a small knapsack with a unique optimum."""
        with KnapsackSubproblem([0.1, 0.3], [17, 21], 94, [150, 96]) as knapsack:
            z, x = knapsack.solve()
        assert z == pytest.approx(1.2)
        assert x == [0, 4]

    def test_bounds_bind(self):
        """Test that the copy bound is enforced."""
        with KnapsackSubproblem([1.0], [10], 30, [2]) as knapsack:
            z, x = knapsack.solve()
        assert z == pytest.approx(2.0)
        assert x == [2]

    def test_solve_outside_block_raises(self):
        """Test that solve() requires the with block."""
        knapsack = KnapsackSubproblem([1.0], [10], 30, [2])
        with pytest.raises(RuntimeError):
            knapsack.solve()

        with knapsack:
            knapsack.solve()
        with pytest.raises(RuntimeError):
            knapsack.solve()

    def test_mismatched_lengths(self):
        with pytest.raises(ValueError):
            KnapsackSubproblem([1.0, 2.0], [10], 30, [2])


# =============================================================================
# Test KnapsackPricing
# =============================================================================

@pytest.mark.skipif(not HIGHS_AVAILABLE, reason="HiGHS not installed")
class TestKnapsackPricing:
    """Tests for KnapsackPricing."""

    def test_profitable_pattern(self, tight_cs):
        """Test that the combined pattern is found with z* = 1.5."""
        pricing = KnapsackPricing(tight_cs)
        pricing.set_dual_values([1.0, 0.5])
        result = pricing.solve()

        assert result.status == PricingStatus.COLUMNS_FOUND
        assert result.has_profitable_pattern
        assert result.z_star == pytest.approx(1.5)
        assert result.pattern.counts == (1, 1)
        assert result.pattern.marginal_cost == pytest.approx(0.5)
        assert result.reduced_cost == pytest.approx(-0.5)
        assert pricing.num_solves == 1

    def test_no_profitable_pattern(self, trivial_cs):
        """Test that z* = 1 does not count as profitable."""
        pricing = KnapsackPricing(trivial_cs)
        pricing.set_dual_values([1.0 / 3.0])
        result = pricing.solve()

        assert result.status == PricingStatus.NO_COLUMNS
        assert not result.has_profitable_pattern
        assert result.z_star == pytest.approx(1.0)
        assert result.pattern.counts == (3,)

    def test_non_positive_duals_skip_solver(self, tight_cs):
        """Test that z* = 0 is returned without a knapsack solve."""
        pricing = KnapsackPricing(tight_cs)
        pricing.set_dual_values([0.0, -1.0])
        result = pricing.solve()

        assert result.status == PricingStatus.NO_COLUMNS
        assert result.z_star == 0.0
        assert result.pattern is None
        assert pricing.num_solves == 0

    def test_found_pattern_is_feasible(self, canonical_cs):
        """Test that a priced pattern fits on the roll."""
        pricing = KnapsackPricing(canonical_cs)
        pricing.set_dual_values([0.2, 0.25, 0.25, 0.3, 0.35])
        result = pricing.solve()

        assert result.pattern.is_feasible(canonical_cs.item_widths, canonical_cs.roll_width)
        assert result.z_star == pytest.approx(
            sum(pi * c for pi, c in zip(pricing.dual_values, result.pattern.counts))
        )

    def test_tolerance_from_config(self, tight_cs):
        """Test that a large tolerance rejects the pattern."""
        pricing = KnapsackPricing(tight_cs, PricingConfig(tolerance=1.0))
        pricing.set_dual_values([1.0, 0.5])
        assert pricing.solve().status == PricingStatus.NO_COLUMNS

    def test_wrong_number_of_duals(self, tight_cs):
        pricing = KnapsackPricing(tight_cs)
        with pytest.raises(ValueError):
            pricing.set_dual_values([1.0])

    def test_reduced_cost_of_pattern(self, tight_cs):
        pricing = KnapsackPricing(tight_cs)
        pricing.set_dual_values([1.0, 0.5])
        assert pricing.reduced_cost(Pattern(counts=(1, 1))) == pytest.approx(-0.5)
        assert pricing.reduced_cost(Pattern(counts=(0, 2))) == pytest.approx(0.0)

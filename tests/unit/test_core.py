"""
Tests for the core module.

This module tests:
- CuttingStockInstance and LotSizingInstance (validation, derived data)
- Pattern and PatternPool
- CutTerm and LSCut
"""

import pytest

from rootgen.core import (
    CutTerm,
    CuttingStockInstance,
    LotSizingInstance,
    LSCut,
    Pattern,
    PatternPool,
    TermKind,
)
from rootgen.exceptions import InstanceInvalidError


# =============================================================================
# Test CuttingStockInstance
# =============================================================================

class TestCuttingStockInstance:
    """Tests for CuttingStockInstance."""

    def test_canonical(self, canonical_cs):
        assert canonical_cs.item_widths == (17.0, 21.0, 22.5, 24.0, 29.5)
        assert canonical_cs.item_demands == (150, 96, 48, 108, 227)
        assert canonical_cs.roll_width == 94.0
        assert canonical_cs.max_passes == 10
        assert canonical_cs.num_items == 5

    def test_max_copies(self, canonical_cs):
        assert [canonical_cs.max_copies(i) for i in range(5)] == [5, 4, 4, 3, 3]

    def test_total_demand(self, canonical_cs):
        assert canonical_cs.total_demand == 629

    def test_material_lower_bound(self, canonical_cs):
        # sum W*d = 14934.5, 14934.5 / 94 = 158.88...
        assert canonical_cs.material_lower_bound == 159

    def test_default_item_names(self, tight_cs):
        assert tight_cs.item_names == ("width_50", "width_40")

    def test_immutable(self, canonical_cs):
        with pytest.raises(AttributeError):
            canonical_cs.roll_width = 100

    @pytest.mark.parametrize("kwargs", [
        dict(item_widths=(), item_demands=(), roll_width=10),
        dict(item_widths=(5, 6), item_demands=(1,), roll_width=10),
        dict(item_widths=(0,), item_demands=(1,), roll_width=10),
        dict(item_widths=(5,), item_demands=(0,), roll_width=10),
        dict(item_widths=(5,), item_demands=(1.5,), roll_width=10),
        dict(item_widths=(10,), item_demands=(1,), roll_width=10),
        dict(item_widths=(5,), item_demands=(1,), roll_width=10, max_passes=0),
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(InstanceInvalidError):
            CuttingStockInstance(**kwargs)

    def test_invalid_is_value_error(self):
        with pytest.raises(ValueError):
            CuttingStockInstance(item_widths=(-1,), item_demands=(1,), roll_width=10)


# =============================================================================
# Test LotSizingInstance
# =============================================================================

class TestLotSizingInstance:
    """Tests for LotSizingInstance."""

    def test_canonical(self, canonical_els):
        assert canonical_els.horizon == 6
        assert canonical_els.demand == (1.0, 3.0, 5.0, 3.0, 4.0, 2.0)
        assert canonical_els.setup_cost == (17.0, 16.0, 11.0, 6.0, 9.0, 6.0)
        assert canonical_els.production_cost == (5.0, 3.0, 2.0, 1.0, 3.0, 1.0)

    def test_cumulative_demand(self, canonical_els):
        assert canonical_els.cumulative_demand(0, 5) == 18.0
        assert canonical_els.cumulative_demand(2, 3) == 8.0
        assert canonical_els.cumulative_demand(4, 4) == 4.0

    def test_cumulative_demand_empty_range(self, canonical_els):
        assert canonical_els.cumulative_demand(3, 2) == 0.0

    def test_cumulative_table_shape(self, canonical_els):
        table = canonical_els.cumulative_table
        assert len(table) == 6
        assert all(len(row) == 6 for row in table)

    @pytest.mark.parametrize("kwargs", [
        dict(demand=(), setup_cost=(), production_cost=()),
        dict(demand=(1, 2), setup_cost=(1,), production_cost=(1, 1)),
        dict(demand=(-1,), setup_cost=(1,), production_cost=(1,)),
        dict(demand=(1,), setup_cost=(-1,), production_cost=(1,)),
        dict(demand=(1,), setup_cost=(1,), production_cost=(-1,)),
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(InstanceInvalidError):
            LotSizingInstance(**kwargs)

    def test_zero_demand_allowed(self, zero_demand_els):
        assert zero_demand_els.cumulative_demand(0, 2) == 0.0


# =============================================================================
# Test Pattern
# =============================================================================

class TestPattern:
    """Tests for Pattern and PatternPool."""

    def test_used_width(self):
        pattern = Pattern(counts=(0, 1, 0, 3))
        assert pattern.used_width([17, 21, 22.5, 24]) == 93.0

    def test_is_feasible(self):
        pattern = Pattern(counts=(0, 1, 0, 3))
        assert pattern.is_feasible([17, 21, 22.5, 24], 94)
        assert not pattern.is_feasible([17, 21, 22.5, 24], 92)

    def test_upper_bound(self):
        pattern = Pattern(counts=(0, 1, 0, 3))
        # max(ceil(96 / 1), ceil(108 / 3))
        assert pattern.upper_bound([150, 96, 48, 108]) == 96

    def test_upper_bound_empty(self):
        assert Pattern(counts=(0, 0)).upper_bound([3, 4]) == 0

    def test_singleton(self):
        pattern = Pattern.singleton(2, 4, 5)
        assert pattern.counts == (0, 0, 5, 0)
        assert pattern.covered_items() == [2]
        assert pattern.num_pieces == 5
        assert pattern.marginal_cost is None

    def test_counts_become_tuple(self):
        assert Pattern(counts=[1, 2]).counts == (1, 2)

    def test_negative_counts_rejected(self):
        with pytest.raises(ValueError):
            Pattern(counts=(1, -1))

    def test_pool_assigns_ids(self):
        pool = PatternPool()
        first = pool.add(Pattern(counts=(5, 0)))
        second = pool.add(Pattern(counts=(1, 1), marginal_cost=0.5))

        assert first.pattern_id == 0
        assert second.pattern_id == 1
        assert second.marginal_cost == 0.5
        assert len(pool) == 2
        assert pool.get(1) == second
        assert pool.generated() == [second]
        assert [p.pattern_id for p in pool] == [0, 1]


# =============================================================================
# Test LSCut
# =============================================================================

class TestLSCut:
    """Tests for CutTerm and LSCut."""

    def make_cut(self):
        # 2*setup1 + prod2 >= 4
        return LSCut(
            endpoint=1,
            terms=(
                CutTerm(TermKind.SETUP_SCALED, 0, 2.0),
                CutTerm(TermKind.PROD, 1, 1.0),
            ),
            rhs=4.0,
            name="cut1",
        )

    def test_activity(self):
        cut = self.make_cut()
        assert cut.activity(prod=[4.0, 1.0], setup=[0.5, 0.0]) == pytest.approx(2.0)

    def test_violation(self):
        cut = self.make_cut()
        assert cut.violation(prod=[4.0, 1.0], setup=[0.5, 0.0]) == pytest.approx(2.0)
        assert cut.is_violated([4.0, 1.0], [0.5, 0.0], 1e-6)
        assert not cut.is_violated([0.0, 2.0], [1.0, 0.0], 1e-6)

    def test_setup_periods(self):
        assert self.make_cut().setup_periods == (0,)

    def test_terms_become_tuple(self):
        cut = LSCut(endpoint=0, terms=[CutTerm(TermKind.PROD, 0, 1.0)], rhs=1.0)
        assert isinstance(cut.terms, tuple)

    def test_repr(self):
        assert "2*setup1 + prod2 >= 4" in repr(self.make_cut())

"""
Integration tests for lot sizing cut generation.

Tests the full loop: base formulation, (l,S) separation, warm-started LP
re-solves and the MIP safety net.
"""

import logging

import pytest

from rootgen.applications import (
    LotSizingSolution,
    build_lot_sizing_master,
    solve_lot_sizing,
)
from rootgen.config import EPS
from rootgen.exceptions import LoopLimitWarning
from rootgen.master import HIGHS_AVAILABLE
from rootgen.separation import LSSeparator
from rootgen.solver import CutConfig, CutGeneration, LoopStatus

pytestmark = pytest.mark.skipif(not HIGHS_AVAILABLE, reason="HiGHS not installed")


class RecordingSeparator(LSSeparator):
    """LSSeparator that keeps every point it was asked about."""

    def __init__(self, instance):
        super().__init__(instance)
        self.calls = []

    def separate(self, prod, setup, first_index=1):
        result = super().separate(prod, setup, first_index)
        self.calls.append((list(prod), list(setup), first_index, result))
        return result


# =============================================================================
# Master
# =============================================================================

class TestLotSizingMaster:
    """Tests for the lot sizing master."""

    def test_base_formulation(self, canonical_els):
        master = build_lot_sizing_master(canonical_els)

        assert [v.name for v in master.prod_variables] == [f"prod{t}" for t in range(1, 7)]
        assert [v.name for v in master.setup_variables] == [f"setup{t}" for t in range(1, 7)]
        assert [r.name for r in master.production_rows] == [
            f"Production_{t}" for t in range(1, 7)
        ]
        assert [r.name for r in master.demand_rows] == [f"Demand_{t}" for t in range(1, 7)]
        assert master.size == 24
        assert master.adapter.controls.primal_simplex
        assert not master.adapter.controls.presolve

    def test_base_lp_is_weak(self, canonical_els):
        """Test that the base relaxation has fractional setups."""
        master = build_lot_sizing_master(canonical_els)
        solution = master.solve_lp()

        assert solution.is_optimal
        assert solution.objective_value < 73.0
        assert not master.setups_integral()

    def test_add_cut(self, canonical_els):
        """Test that separated cuts become named rows."""
        master = build_lot_sizing_master(canonical_els)
        master.solve_lp()
        result = LSSeparator(canonical_els).separate(master.production(), master.setups())
        assert result.found_cuts

        for cut in result.cuts:
            master.add_cut(cut)
        master.reload()

        assert [r.name for r in master.cut_rows] == [cut.name for cut in result.cuts]
        assert master.num_cuts == result.num_cuts
        assert master.solve_lp().is_optimal


# =============================================================================
# Cut generation
# =============================================================================

class TestCutGeneration:
    """Tests for the cut generation driver."""

    def test_canonical_instance(self, canonical_els):
        """Test the classical instance end to end."""
        solution = solve_lot_sizing(canonical_els)

        assert isinstance(solution, LotSizingSolution)
        assert solution.status in (LoopStatus.OPTIMAL, LoopStatus.INTEGER_OPTIMAL)
        assert solution.objective_value == pytest.approx(73.0)
        assert solution.setup_periods == [0, 2, 3]
        assert solution.is_integral
        assert solution.num_cuts > 0

    def test_final_point_satisfies_all_cuts(self, canonical_els):
        """Test that no (l,S)-inequality is violated at the reported point."""
        solution = solve_lot_sizing(canonical_els)
        result = LSSeparator(canonical_els).separate(solution.production, solution.setup)
        assert not result.found_cuts

    def test_final_point_is_feasible(self, canonical_els):
        """Test demand coverage and setup linking at the reported point."""
        solution = solve_lot_sizing(canonical_els)

        produced = 0.0
        for t in range(canonical_els.horizon):
            produced += solution.production[t]
            assert produced >= canonical_els.cumulative_demand(0, t) - EPS
            capacity = canonical_els.cumulative_demand(t, canonical_els.horizon - 1)
            assert solution.production[t] <= capacity * solution.setup[t] + EPS

    def test_added_cuts_were_violated(self, canonical_els):
        """Test that every cut was violated by its triggering LP point."""
        master = build_lot_sizing_master(canonical_els)
        separator = RecordingSeparator(canonical_els)
        CutGeneration(master, separator=separator).solve()

        assert separator.calls
        for prod, setup, _, result in separator.calls:
            for cut in result.cuts:
                assert cut.violation(prod, setup) >= EPS
        assert not separator.calls[-1][3].found_cuts

    def test_cut_names_are_sequential(self, canonical_els):
        """Test names cut1..cutN across passes."""
        master = build_lot_sizing_master(canonical_els)
        separator = RecordingSeparator(canonical_els)
        CutGeneration(master, separator=separator).solve()

        names = [row.name for row in master.cut_rows]
        assert names == [f"cut{k}" for k in range(1, len(names) + 1)]

        total = 0
        for _, _, first_index, result in separator.calls:
            assert first_index == total + 1
            total += result.num_cuts

    def test_master_grows_monotonically(self, canonical_els):
        sizes = []
        objectives = []

        def record(driver, iteration):
            sizes.append(iteration.master_size)
            objectives.append(iteration.lp_objective)
            return True

        solve_lot_sizing(canonical_els, callbacks=[record])

        assert sizes == sorted(sizes)
        # Cuts only tighten the relaxation
        for before, after in zip(objectives, objectives[1:]):
            assert after >= before - EPS

    def test_zero_demand(self, zero_demand_els):
        """Test that nothing is produced and no cut is needed."""
        solution = solve_lot_sizing(zero_demand_els)

        assert solution.status == LoopStatus.OPTIMAL
        assert solution.objective_value == pytest.approx(0.0)
        assert solution.num_cuts == 0
        assert solution.passes == 1
        assert solution.production == pytest.approx([0.0, 0.0, 0.0])
        assert solution.setup_periods == []

    def test_single_period(self, single_period_els):
        """Test one setup and production equal to demand."""
        solution = solve_lot_sizing(single_period_els)

        assert solution.status == LoopStatus.OPTIMAL
        assert solution.objective_value == pytest.approx(20.0)
        assert solution.production == pytest.approx([5.0])
        assert solution.setup == pytest.approx([1.0])
        assert solution.num_cuts == 0
        assert not solution.used_mip

    def test_round_cap_warns(self, canonical_els):
        """Test that the round cap is reported and the result stays exact."""
        with pytest.warns(LoopLimitWarning):
            solution = solve_lot_sizing(canonical_els, config=CutConfig(max_rounds=1))

        assert solution.status == LoopStatus.ITERATION_LIMIT
        assert solution.passes == 1
        assert solution.objective_value == pytest.approx(73.0)

    def test_mip_safety_net(self, canonical_els):
        """Test that fractional setups after the cap are settled by the MIP."""
        with pytest.warns(LoopLimitWarning):
            solution = solve_lot_sizing(canonical_els, config=CutConfig(max_rounds=1))

        assert solution.used_mip
        assert solution.lp_objective < 73.0 - EPS
        assert solution.objective_value == pytest.approx(73.0)
        assert solution.is_integral

    def test_without_safety_net(self, canonical_els):
        """Test that the fractional LP is reported unchanged."""
        config = CutConfig(max_rounds=1, mip_safety_net=False)
        with pytest.warns(LoopLimitWarning):
            solution = solve_lot_sizing(canonical_els, config=config)

        assert solution.status == LoopStatus.ITERATION_LIMIT
        assert not solution.used_mip
        assert solution.objective_value == pytest.approx(solution.lp_objective)
        assert solution.objective_value < 73.0 - EPS
        assert not solution.is_integral

    def test_callback_stops_loop(self, canonical_els):
        solution = solve_lot_sizing(canonical_els, callbacks=[lambda driver, it: False])

        assert solution.status == LoopStatus.STOPPED
        assert solution.passes == 1
        assert solution.objective_value == pytest.approx(73.0)

    def test_driver_runs_once(self, single_period_els):
        driver = CutGeneration(build_lot_sizing_master(single_period_els))
        driver.solve()
        with pytest.raises(RuntimeError):
            driver.solve()

    def test_report_lines(self, single_period_els, caplog):
        """Test the pass line and the per-period report."""
        caplog.set_level(logging.INFO, logger="rootgen")
        solve_lot_sizing(single_period_els)
        messages = [record.getMessage() for record in caplog.records]

        assert any(
            m.startswith("Pass 1 (") and m.endswith("objective value 20, cuts added: 0 (total 0)")
            for m in messages
        )
        assert "Optimal integer solution found:" in messages
        assert "Period 1: prod 5 (demand: 5, cost: 2), setup 1 (cost: 10)" in messages

    @pytest.mark.slow
    def test_repeatable(self, canonical_els):
        first = solve_lot_sizing(canonical_els)
        second = solve_lot_sizing(canonical_els)

        assert first.objective_value == pytest.approx(second.objective_value)
        assert first.num_cuts == second.num_cuts
        assert first.setup_periods == second.setup_periods

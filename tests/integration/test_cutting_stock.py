"""
Integration tests for cutting stock column generation.

Tests the full loop: master build, knapsack pricing, warm-started LP
re-solves and the final MIP.
"""

import logging

import pytest

from rootgen.applications import (
    CuttingStockSolution,
    build_cutting_stock_master,
    solve_cutting_stock,
)
from rootgen.config import EPS
from rootgen.core import Pattern
from rootgen.exceptions import LoopLimitWarning
from rootgen.master import HIGHS_AVAILABLE
from rootgen.solver import CGConfig, ColumnGeneration, LoopStatus

pytestmark = pytest.mark.skipif(not HIGHS_AVAILABLE, reason="HiGHS not installed")


# =============================================================================
# Master
# =============================================================================

class TestCuttingStockMaster:
    """Tests for the cutting stock master."""

    def test_initial_patterns(self, canonical_cs):
        """Test one homogeneous pattern per width with its bound."""
        master = build_cutting_stock_master(canonical_cs)

        assert master.num_patterns == 5
        assert [p.counts[i] for i, p in enumerate(master.patterns)] == [5, 4, 4, 3, 3]
        assert [v.name for v in master.variables] == [f"pat_{j}" for j in range(1, 6)]
        assert [r.name for r in master.demand_rows] == [f"Demand_{i}" for i in range(1, 6)]
        # ceil(d_i / copies_i)
        assert [ub for _, ub in master.pattern_bounds()] == [30, 24, 12, 36, 76]

    def test_initial_lp(self, tight_cs):
        """Test LP value and duals of the singleton master."""
        master = build_cutting_stock_master(tight_cs)
        solution = master.solve_lp()

        assert solution.objective_value == pytest.approx(7.5)
        assert master.demand_duals() == pytest.approx([1.0, 0.5])

    def test_add_pattern(self, tight_cs):
        """Test that an added pattern becomes a bounded column."""
        master = build_cutting_stock_master(tight_cs)
        master.solve_lp()

        pattern = master.add_pattern(Pattern(counts=(1, 1), marginal_cost=0.5))
        master.reload()

        assert pattern.pattern_id == 2
        assert master.variables[-1].name == "pat_3"
        assert master.pattern_bounds()[-1] == (0.0, 5.0)
        assert master.solve_lp().objective_value == pytest.approx(5.0)

    def test_add_infeasible_pattern_rejected(self, tight_cs):
        master = build_cutting_stock_master(tight_cs)
        with pytest.raises(ValueError):
            master.add_pattern(Pattern(counts=(2, 0)))
        with pytest.raises(ValueError):
            master.add_pattern(Pattern(counts=(1,)))

    def test_basis_round_trip(self, tight_cs):
        """Test that restoring the saved basis reproduces the LP value."""
        master = build_cutting_stock_master(tight_cs)
        before = master.solve_lp().objective_value

        with master.save_basis() as basis:
            master.reload()
            master.load_basis(basis)

        assert master.solve_lp().objective_value == pytest.approx(before)


# =============================================================================
# Column generation
# =============================================================================

class TestColumnGeneration:
    """Tests for the column generation driver."""

    def test_trivial_instance(self, trivial_cs):
        """Test that the singleton pattern is already optimal."""
        solution = solve_cutting_stock(trivial_cs)

        assert isinstance(solution, CuttingStockSolution)
        assert solution.status == LoopStatus.INTEGER_OPTIMAL
        assert solution.passes == 1
        assert solution.num_patterns == 1
        assert solution.generated_patterns == []
        assert solution.lp_objective == pytest.approx(7.0 / 3.0)
        assert solution.num_rolls == 3

    def test_tight_instance(self, tight_cs):
        """Test that the combined pattern is priced in and used."""
        solution = solve_cutting_stock(tight_cs)

        assert solution.status == LoopStatus.INTEGER_OPTIMAL
        assert solution.lp_objective == pytest.approx(5.0)
        assert solution.num_rolls == 5
        assert solution.generated_patterns
        assert all(p.counts == (1, 1) for p in solution.generated_patterns)
        for pattern in solution.patterns:
            assert pattern.is_feasible(tight_cs.item_widths, tight_cs.roll_width)

        combined = sum(
            value for pattern, value in zip(solution.patterns, solution.rolls_per_pattern)
            if pattern.counts == (1, 1)
        )
        assert combined == pytest.approx(5.0)

        history = solution.loop.iteration_history
        for iteration in history:
            if iteration.num_added:
                assert iteration.oracle_value > 1.0 + EPS
        assert history[-1].num_added == 0

    def test_canonical_instance(self, canonical_cs):
        """Test the classical instance end to end."""
        solution = solve_cutting_stock(canonical_cs)

        assert solution.ip_objective is not None
        assert solution.ip_objective == pytest.approx(round(solution.ip_objective))
        assert solution.num_rolls >= canonical_cs.material_lower_bound == 159
        assert solution.passes <= canonical_cs.max_passes
        assert len(solution.generated_patterns) <= canonical_cs.max_passes

        for pattern in solution.patterns:
            assert pattern.is_feasible(canonical_cs.item_widths, canonical_cs.roll_width)

        # The rolls cut cover every demand
        for i, demand in enumerate(canonical_cs.item_demands):
            produced = sum(
                p.counts[i] * v for p, v in zip(solution.patterns, solution.rolls_per_pattern)
            )
            assert produced >= demand - EPS

        if solution.status == LoopStatus.INTEGER_OPTIMAL:
            assert solution.ip_objective >= solution.lp_objective - EPS

    def test_pricing_verdicts_in_history(self, canonical_cs):
        """Test that every added pattern had z* > 1 and a converged loop ends with z* <= 1."""
        solution = solve_cutting_stock(canonical_cs)
        history = solution.loop.iteration_history

        for iteration in history:
            if iteration.num_added:
                assert iteration.oracle_value > 1.0 + EPS
        if solution.status in (LoopStatus.OPTIMAL, LoopStatus.INTEGER_OPTIMAL):
            assert history[-1].num_added == 0
            assert history[-1].oracle_value <= 1.0 + EPS

    def test_lp_objective_never_increases(self, canonical_cs):
        """Test that adding columns never makes the LP worse."""
        solution = solve_cutting_stock(canonical_cs)
        objectives = [it.lp_objective for it in solution.loop.iteration_history]
        for before, after in zip(objectives, objectives[1:]):
            assert after <= before + EPS

    def test_master_grows_monotonically(self, canonical_cs):
        """Test master size across passes via a callback."""
        sizes = []

        def record(driver, iteration):
            sizes.append(iteration.master_size)
            return True

        solve_cutting_stock(canonical_cs, callbacks=[record])

        assert sizes
        assert sizes == sorted(sizes)

    def test_callback_stops_loop(self, tight_cs):
        """Test that a callback returning False stops after the first pass."""
        solution = solve_cutting_stock(tight_cs, callbacks=[lambda driver, it: False])

        assert solution.status == LoopStatus.STOPPED
        assert solution.passes == 1
        assert solution.num_patterns == 3
        assert solution.num_rolls == 5
        assert "Best solution when stopped: 5 rolls, 3 patterns" in solution.report_lines()[0]

    def test_pass_cap_warns(self, tight_cs):
        """Test that hitting the pass cap is reported and the MIP still runs."""
        with pytest.warns(LoopLimitWarning):
            solution = solve_cutting_stock(tight_cs, config=CGConfig(max_passes=1))

        assert solution.status == LoopStatus.ITERATION_LIMIT
        assert solution.passes == 1
        assert solution.num_patterns == 3
        assert solution.num_rolls == 5
        assert len(solution.rolls_per_pattern) == 3
        assert "Best solution at pass limit: 5 rolls, 3 patterns" in solution.report_lines()[0]
        assert "Optimal" not in solution.report_lines()[0]

    def test_without_final_mip(self, trivial_cs):
        """Test that solve_ip=False reports the LP value."""
        solution = solve_cutting_stock(trivial_cs, config=CGConfig(solve_ip=False))

        assert solution.status == LoopStatus.OPTIMAL
        assert solution.ip_objective is None
        assert solution.num_rolls is None
        assert solution.objective_value == pytest.approx(7.0 / 3.0)
        assert solution.rolls_per_pattern == pytest.approx([7.0 / 3.0])

    def test_driver_runs_once(self, trivial_cs):
        cg = ColumnGeneration(build_cutting_stock_master(trivial_cs))
        cg.solve()
        with pytest.raises(RuntimeError):
            cg.solve()

    def test_pass_lines(self, tight_cs, caplog):
        """Test the per-pass and final report lines."""
        caplog.set_level(logging.INFO, logger="rootgen")
        solve_cutting_stock(tight_cs)
        messages = [record.getMessage() for record in caplog.records]

        assert any(
            m.endswith("Pass 1: new pattern found with marginal cost 0.5") for m in messages
        )
        assert "   Widths distribution: 50:1  40:1  Total width: 90" in messages
        assert any(m.endswith(": no profitable column found.") for m in messages)
        assert any(
            "Optimal solution: 5 rolls, " in m and m.endswith(" patterns") for m in messages
        )
        assert any(m.startswith("   Rolls per pattern: ") for m in messages)

    def test_quiet_mode(self, tight_cs, caplog):
        """Test that verbose=False moves the pass lines to DEBUG."""
        caplog.set_level(logging.INFO, logger="rootgen")
        solve_cutting_stock(tight_cs, config=CGConfig(verbose=False))
        messages = [record.getMessage() for record in caplog.records]

        assert not any("Pass 1:" in m for m in messages)
        assert any("Optimal solution:" in m for m in messages)

    @pytest.mark.slow
    def test_repeatable(self, canonical_cs):
        """Test that two runs give the same result."""
        first = solve_cutting_stock(canonical_cs)
        second = solve_cutting_stock(canonical_cs)

        assert first.ip_objective == pytest.approx(second.ip_objective)
        assert first.lp_objective == pytest.approx(second.lp_objective)
        assert first.passes == second.passes

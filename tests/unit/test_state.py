"""
Tests for the loop state machine, configuration, logging and errors.
"""

import io
import logging

import pytest

from rootgen.config import EPS, RootgenConfig
from rootgen.exceptions import (
    InstanceInvalidError,
    ResourceExhaustedError,
    RootgenError,
    SolverFailureError,
)
from rootgen.log import configure_logging
from rootgen.master import SolutionStatus
from rootgen.solver import LoopState, LoopStateMachine


# =============================================================================
# Test LoopStateMachine
# =============================================================================

class TestLoopStateMachine:
    """Tests for LoopStateMachine."""

    def test_starts_solving(self):
        machine = LoopStateMachine()
        assert machine.state is LoopState.SOLVING
        assert not machine.is_terminated

    def test_full_cycle(self):
        """Test one pass that amends and one that converges."""
        machine = LoopStateMachine()
        for state in (
            LoopState.ORACLING,
            LoopState.AMENDING,
            LoopState.SOLVING,
            LoopState.ORACLING,
            LoopState.TERMINATED,
        ):
            machine.advance(state)

        assert machine.is_terminated
        assert machine.history == [
            LoopState.SOLVING,
            LoopState.ORACLING,
            LoopState.AMENDING,
            LoopState.SOLVING,
            LoopState.ORACLING,
            LoopState.TERMINATED,
        ]

    @pytest.mark.parametrize("path", [
        (LoopState.AMENDING,),
        (LoopState.ORACLING, LoopState.SOLVING),
        (LoopState.ORACLING, LoopState.AMENDING, LoopState.TERMINATED),
        (LoopState.TERMINATED, LoopState.SOLVING),
    ])
    def test_invalid_transitions(self, path):
        machine = LoopStateMachine()
        for state in path[:-1]:
            machine.advance(state)
        with pytest.raises(RuntimeError):
            machine.advance(path[-1])

    def test_terminate_is_idempotent(self):
        machine = LoopStateMachine()
        machine.terminate()
        machine.terminate()
        assert machine.history == [LoopState.SOLVING, LoopState.TERMINATED]


# =============================================================================
# Test configuration
# =============================================================================

class TestRootgenConfig:
    """Tests for RootgenConfig."""

    def test_defaults(self):
        cfg = RootgenConfig()
        assert cfg.get_tolerance("eps") == EPS
        assert cfg.max_rounds == 1000
        assert cfg.time_limit is None

    def test_unknown_tolerance_falls_back_to_eps(self):
        assert RootgenConfig().get_tolerance("missing") == EPS

    def test_negative_tolerance_rejected(self):
        with pytest.raises(ValueError):
            RootgenConfig().set_tolerance("eps", -1.0)

    def test_from_dict_keeps_default_tolerances(self):
        cfg = RootgenConfig.from_dict({"max_rounds": 5, "tolerances": {"eps": 1e-5}})
        assert cfg.max_rounds == 5
        assert cfg.get_tolerance("eps") == 1e-5
        assert cfg.get_tolerance("value") == 1e-10

    def test_to_dict_copies_tolerances(self):
        cfg = RootgenConfig(log_level="DEBUG", time_limit=30.0, max_rounds=7)
        data = cfg.to_dict()

        assert data["log_level"] == "DEBUG"
        assert data["time_limit"] == 30.0
        assert data["max_rounds"] == 7
        data["tolerances"]["eps"] = 0.5
        assert cfg.get_tolerance("eps") == EPS
        assert RootgenConfig.from_dict(cfg.to_dict()) == cfg


# =============================================================================
# Test logging
# =============================================================================

class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_messages_reach_stream(self):
        stream = io.StringIO()
        configure_logging("INFO", stream)
        logging.getLogger("rootgen.solver").info("Pass 1: hello")
        assert stream.getvalue() == "Pass 1: hello\n"

    def test_level_filters(self):
        stream = io.StringIO()
        configure_logging("WARNING", stream)
        logging.getLogger("rootgen.solver").info("hidden")
        assert stream.getvalue() == ""

    def test_single_handler(self):
        """Test that configuring twice keeps one console handler."""
        first = io.StringIO()
        second = io.StringIO()
        configure_logging("INFO", first)
        logger = configure_logging("INFO", second)
        logger.info("once")

        assert first.getvalue() == ""
        assert second.getvalue() == "once\n"


# =============================================================================
# Test errors
# =============================================================================

class TestErrors:
    """Tests for the error taxonomy."""

    def test_builtin_bases(self):
        assert issubclass(InstanceInvalidError, ValueError)
        assert issubclass(SolverFailureError, RuntimeError)
        assert issubclass(ResourceExhaustedError, MemoryError)
        for cls in (InstanceInvalidError, SolverFailureError, ResourceExhaustedError):
            assert issubclass(cls, RootgenError)

    def test_solver_failure_message(self):
        error = SolverFailureError("master", "LP not optimal", SolutionStatus.INFEASIBLE)
        assert error.phase == "master"
        assert error.status is SolutionStatus.INFEASIBLE
        assert str(error) == "master solve failed: LP not optimal (status INFEASIBLE)"

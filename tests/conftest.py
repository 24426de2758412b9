"""
Shared pytest fixtures for rootgen tests.
"""

import logging

import pytest

from rootgen.core.instance import CuttingStockInstance, LotSizingInstance
from rootgen.log import LOGGER_NAME, reset_logging


def pytest_configure(config):
    """Add custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")


@pytest.fixture(autouse=True)
def _detach_console_handler():
    """Drop the console handler a test (or the CLI) attached to the 'rootgen' logger."""
    yield
    reset_logging()
    logging.getLogger(LOGGER_NAME).setLevel(logging.NOTSET)


# =============================================================================
# Cutting stock instances
# =============================================================================

@pytest.fixture
def canonical_cs():
    """The classical five-width instance on a 94-wide roll."""
    return CuttingStockInstance.canonical()


@pytest.fixture
def trivial_cs():
    """One width, three pieces per roll: the singleton pattern is already optimal."""
    return CuttingStockInstance(
        item_widths=(10,),
        item_demands=(7,),
        roll_width=30,
        name="trivial",
    )


@pytest.fixture
def tight_cs():
    """Two widths that fit together exactly once per roll."""
    return CuttingStockInstance(
        item_widths=(50, 40),
        item_demands=(5, 5),
        roll_width=90,
        name="tight",
    )


# =============================================================================
# Lot sizing instances
# =============================================================================

@pytest.fixture
def canonical_els():
    """The classical six-period instance."""
    return LotSizingInstance.canonical()


@pytest.fixture
def zero_demand_els():
    """Three periods without demand."""
    return LotSizingInstance(
        demand=(0, 0, 0),
        setup_cost=(1, 2, 3),
        production_cost=(1, 1, 1),
        name="zero",
    )


@pytest.fixture
def single_period_els():
    """One period: produce the demand with one setup."""
    return LotSizingInstance(
        demand=(5,),
        setup_cost=(10,),
        production_cost=(2,),
        name="single",
    )


@pytest.fixture
def two_period_els():
    """Two periods of demand 2."""
    return LotSizingInstance(
        demand=(2, 2),
        setup_cost=(10, 10),
        production_cost=(1, 1),
        name="two",
    )

"""
Applications module - the two root-node workloads.

Each application provides:
- Instance data with a canonical constructor
- A master builder on top of the solver adapter
- A solve function running the root loop and logging the report
- A solution dataclass with summary()

Available Applications:
----------------------
- Cutting Stock: column generation with knapsack pricing, final MIP
- Economic Lot Sizing: (l,S) cut generation, MIP safety net

Usage:
------
    >>> from rootgen.applications import solve_cutting_stock, solve_lot_sizing
    >>> cs = solve_cutting_stock()
    >>> print(cs.summary())
    >>> els = solve_lot_sizing()
    >>> print(els.summary())
"""

from rootgen.applications.cutting_stock import (
    CuttingStockInstance,
    CuttingStockMaster,
    CuttingStockSolution,
    build_cutting_stock_master,
    solve_cutting_stock,
)
from rootgen.applications.lot_sizing import (
    LotSizingInstance,
    LotSizingMaster,
    LotSizingSolution,
    build_lot_sizing_master,
    solve_lot_sizing,
)

__all__ = [
    # Cutting Stock
    'CuttingStockInstance',
    'CuttingStockMaster',
    'CuttingStockSolution',
    'build_cutting_stock_master',
    'solve_cutting_stock',

    # Lot Sizing
    'LotSizingInstance',
    'LotSizingMaster',
    'LotSizingSolution',
    'build_lot_sizing_master',
    'solve_lot_sizing',
]

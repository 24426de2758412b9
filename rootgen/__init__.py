"""
rootgen: root-node reformulation loops

Two classical MIP workloads solved at the root node of an LP relaxation by
iterative reformulation with a warm-started HiGHS master:

- Cutting stock by column generation (bounded knapsack pricing, final MIP)
- Economic lot sizing by (l,S) cut generation
"""

__version__ = "0.1.0"

# Configuration
from rootgen.config import EPS, RootgenConfig, config

# Errors
from rootgen.exceptions import (
    InstanceInvalidError,
    LoopLimitWarning,
    ResourceExhaustedError,
    RootgenError,
    SolverFailureError,
)

# Core data
from rootgen.core import (
    CutTerm,
    CuttingStockInstance,
    LotSizingInstance,
    LSCut,
    Pattern,
    PatternPool,
    TermKind,
)

# Solver adapter
from rootgen.master import (
    HIGHS_AVAILABLE,
    BasisSnapshot,
    HiGHSMasterProblem,
    MasterProblem,
    MasterSolution,
    Sense,
    SolutionStatus,
    SolverControls,
    VarKind,
)

# Oracles
from rootgen.pricing import KnapsackPricing, PricingProblem
from rootgen.separation import LSSeparator, SeparationOracle

# Drivers
from rootgen.solver import (
    CGConfig,
    ColumnGeneration,
    CutConfig,
    CutGeneration,
    LoopSolution,
    LoopState,
    LoopStatus,
)

# Applications
from rootgen.applications import (
    CuttingStockSolution,
    LotSizingSolution,
    build_cutting_stock_master,
    build_lot_sizing_master,
    solve_cutting_stock,
    solve_lot_sizing,
)

# Logging
from rootgen.log import configure_logging

__all__ = [
    # Version
    "__version__",
    # Configuration
    "config",
    "RootgenConfig",
    "EPS",
    "configure_logging",
    # Errors
    "RootgenError",
    "InstanceInvalidError",
    "SolverFailureError",
    "ResourceExhaustedError",
    "LoopLimitWarning",
    # Core data
    "CuttingStockInstance",
    "LotSizingInstance",
    "Pattern",
    "PatternPool",
    "LSCut",
    "CutTerm",
    "TermKind",
    # Solver adapter
    "MasterProblem",
    "HiGHSMasterProblem",
    "HIGHS_AVAILABLE",
    "MasterSolution",
    "SolutionStatus",
    "BasisSnapshot",
    "SolverControls",
    "VarKind",
    "Sense",
    # Oracles
    "PricingProblem",
    "KnapsackPricing",
    "SeparationOracle",
    "LSSeparator",
    # Drivers
    "ColumnGeneration",
    "CGConfig",
    "CutGeneration",
    "CutConfig",
    "LoopSolution",
    "LoopStatus",
    "LoopState",
    # Applications
    "solve_cutting_stock",
    "solve_lot_sizing",
    "build_cutting_stock_master",
    "build_lot_sizing_master",
    "CuttingStockSolution",
    "LotSizingSolution",
]

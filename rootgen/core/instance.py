"""
Instance data for the two root-node workloads.

Both instances are immutable and validated on construction; invalid data is
rejected with InstanceInvalidError before any master problem is built.

The canonical instances are embedded constants:

    >>> from rootgen.core.instance import CuttingStockInstance, LotSizingInstance
    >>> cs = CuttingStockInstance.canonical()
    >>> cs.roll_width, cs.max_passes
    (94.0, 10)
    >>> els = LotSizingInstance.canonical()
    >>> els.cumulative_demand(0, els.horizon - 1)
    18.0
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from rootgen.exceptions import InstanceInvalidError


# =============================================================================
# Cutting Stock
# =============================================================================


@dataclass(frozen=True)
class CuttingStockInstance:
    """
    A cutting stock instance.

    Attributes:
        item_widths: Demanded strip widths W[0..n-1]
        item_demands: Demand per width d[0..n-1]
        roll_width: Raw roll width R
        max_passes: Pricing iteration cap K
        item_names: Optional names for the widths
        name: Optional instance name
    """
    item_widths: Tuple[float, ...]
    item_demands: Tuple[int, ...]
    roll_width: float
    max_passes: int = 10
    item_names: Optional[Tuple[str, ...]] = None
    name: str = "CutStock"

    def __post_init__(self):
        object.__setattr__(self, 'item_widths', tuple(float(w) for w in self.item_widths))
        object.__setattr__(self, 'item_demands', tuple(self.item_demands))
        object.__setattr__(self, 'roll_width', float(self.roll_width))

        if not self.item_widths:
            raise InstanceInvalidError("At least one demanded width is required")
        if len(self.item_widths) != len(self.item_demands):
            raise InstanceInvalidError("item_widths and item_demands must have same length")
        if any(w <= 0 for w in self.item_widths):
            raise InstanceInvalidError(f"Widths must be positive, got {list(self.item_widths)}")
        for d in self.item_demands:
            if int(d) != d or d <= 0:
                raise InstanceInvalidError(
                    f"Demands must be positive integers, got {list(self.item_demands)}"
                )
        object.__setattr__(self, 'item_demands', tuple(int(d) for d in self.item_demands))
        if self.roll_width <= max(self.item_widths):
            raise InstanceInvalidError(
                f"Roll width {self.roll_width:g} must exceed the largest width "
                f"{max(self.item_widths):g}"
            )
        if self.max_passes <= 0:
            raise InstanceInvalidError(f"max_passes must be positive, got {self.max_passes}")

        if self.item_names is None:
            object.__setattr__(
                self, 'item_names', tuple(f"width_{w:g}" for w in self.item_widths)
            )
        elif len(self.item_names) != len(self.item_widths):
            raise InstanceInvalidError("item_names must have same length as item_widths")
        else:
            object.__setattr__(self, 'item_names', tuple(self.item_names))

    @classmethod
    def canonical(cls) -> 'CuttingStockInstance':
        """The classical five-width instance on a 94-wide roll."""
        return cls(
            item_widths=(17, 21, 22.5, 24, 29.5),
            item_demands=(150, 96, 48, 108, 227),
            roll_width=94,
            max_passes=10,
            name="CutStock",
        )

    @property
    def num_items(self) -> int:
        """Number of demanded widths."""
        return len(self.item_widths)

    def max_copies(self, item_idx: int) -> int:
        """Maximum copies of a width that fit in one roll."""
        return int(math.floor(self.roll_width / self.item_widths[item_idx]))

    @property
    def total_demand(self) -> int:
        """Total number of pieces demanded."""
        return sum(self.item_demands)

    @property
    def material_lower_bound(self) -> int:
        """
        Rolls needed by total width alone: ceil(sum W[i]*d[i] / R).

        No integer (or LP) solution can use fewer rolls.
        """
        total = sum(w * d for w, d in zip(self.item_widths, self.item_demands))
        return math.ceil(total / self.roll_width - 1e-9)


# =============================================================================
# Economic Lot Sizing
# =============================================================================


@dataclass(frozen=True)
class LotSizingInstance:
    """
    An uncapacitated economic lot sizing instance.

    There is no inventory holding cost: demand of period t may be produced
    in any period s <= t.

    Attributes:
        demand: Demand per period D[0..T-1]
        setup_cost: Setup cost per period F[0..T-1]
        production_cost: Unit production cost per period C[0..T-1]
        name: Optional instance name
    """
    demand: Tuple[float, ...]
    setup_cost: Tuple[float, ...]
    production_cost: Tuple[float, ...]
    name: str = "Els"
    _cumulative: Tuple[Tuple[float, ...], ...] = field(
        default=(), init=False, repr=False, compare=False
    )

    def __post_init__(self):
        object.__setattr__(self, 'demand', tuple(float(x) for x in self.demand))
        object.__setattr__(self, 'setup_cost', tuple(float(x) for x in self.setup_cost))
        object.__setattr__(self, 'production_cost', tuple(float(x) for x in self.production_cost))

        horizon = len(self.demand)
        if horizon <= 0:
            raise InstanceInvalidError("Horizon must be positive")
        if len(self.setup_cost) != horizon or len(self.production_cost) != horizon:
            raise InstanceInvalidError(
                "demand, setup_cost and production_cost must have same length"
            )
        for label, values in (
            ("demand", self.demand),
            ("setup_cost", self.setup_cost),
            ("production_cost", self.production_cost),
        ):
            if any(v < 0 for v in values):
                raise InstanceInvalidError(f"{label} must be non-negative, got {list(values)}")

        object.__setattr__(self, '_cumulative', self._build_cumulative())

    def _build_cumulative(self) -> Tuple[Tuple[float, ...], ...]:
        """S[s][t] = sum of demand over periods s..t (0 when s > t)."""
        horizon = len(self.demand)
        table: List[Tuple[float, ...]] = []
        for s in range(horizon):
            row = [0.0] * horizon
            running = 0.0
            for t in range(s, horizon):
                running += self.demand[t]
                row[t] = running
            table.append(tuple(row))
        return tuple(table)

    @classmethod
    def canonical(cls) -> 'LotSizingInstance':
        """The classical six-period instance."""
        return cls(
            demand=(1, 3, 5, 3, 4, 2),
            setup_cost=(17, 16, 11, 6, 9, 6),
            production_cost=(5, 3, 2, 1, 3, 1),
            name="Els",
        )

    @property
    def horizon(self) -> int:
        """Number of periods T."""
        return len(self.demand)

    def cumulative_demand(self, first: int, last: int) -> float:
        """Total demand in periods first..last (S[first, last])."""
        return self._cumulative[first][last]

    @property
    def cumulative_table(self) -> Tuple[Tuple[float, ...], ...]:
        """The full S table, indexed [s][t]."""
        return self._cumulative

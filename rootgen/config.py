"""
Configuration module for rootgen.

This module holds library-wide settings: logging level, HiGHS verbosity,
numerical tolerances and loop safety caps.

Instance data never comes from here. The canonical instances are embedded
constants, and nothing is read from files or environment variables.

Example:
    >>> from rootgen.config import config
    >>> config.get_tolerance("eps")
    1e-06
    >>> config.log_level = "DEBUG"
"""

from dataclasses import dataclass, field
from typing import Any, Optional

# Numerical tolerance used throughout both loops
EPS = 1e-6


def _default_tolerances() -> dict[str, float]:
    return {
        "eps": EPS,             # reduced cost / violation threshold
        "integrality": EPS,     # distance to nearest integer
        "value": 1e-10,         # values below this are treated as zero
    }


@dataclass
class RootgenConfig:
    """
    Configuration for the rootgen library.

    Attributes:
        log_level: Logging level for the 'rootgen' logger (DEBUG, INFO, WARNING, ERROR)
        verbosity: HiGHS output level (0 = silent)
        time_limit: Per-solve time limit in seconds (None = no limit)
        max_rounds: Safety cap on separation rounds for cut generation
        tolerances: Numerical tolerances by name
    """

    # Logging
    log_level: str = "INFO"

    # Solver settings
    verbosity: int = 0
    time_limit: Optional[float] = None

    # Loop limits
    max_rounds: int = 1000

    # Numerical tolerances
    tolerances: dict[str, float] = field(default_factory=_default_tolerances)

    # =========================================================================
    # Tolerance helpers
    # =========================================================================

    def get_tolerance(self, name: str) -> float:
        """Get a tolerance value by name."""
        return self.tolerances.get(name, EPS)

    def set_tolerance(self, name: str, value: float) -> None:
        """Set a tolerance value."""
        if value < 0:
            raise ValueError(f"Tolerance {name!r} must be non-negative, got {value}")
        self.tolerances[name] = value

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "log_level": self.log_level,
            "verbosity": self.verbosity,
            "time_limit": self.time_limit,
            "max_rounds": self.max_rounds,
            "tolerances": self.tolerances.copy(),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> 'RootgenConfig':
        """Create config from dictionary."""
        tolerances = _default_tolerances()
        tolerances.update(d.get("tolerances", {}))
        return cls(
            log_level=d.get("log_level", "INFO"),
            verbosity=d.get("verbosity", 0),
            time_limit=d.get("time_limit"),
            max_rounds=d.get("max_rounds", 1000),
            tolerances=tolerances,
        )


# Global configuration instance
config = RootgenConfig()


def get_tolerance(name: str) -> float:
    """Get a tolerance from the global configuration."""
    return config.get_tolerance(name)

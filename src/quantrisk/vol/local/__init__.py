"""
Local volatility calculators.

Provides:
- ImpliedTrinomialTreeLocalVolatilityCalculator: Derman-Kani-Chriss implied tree
- DupireLocalVolatilityCalculator: Dupire formula with parameter sensitivities
"""

from .base import LocalVolatilityCalculator, as_rate_function
from .implied_tree import (
    ImpliedTrinomialTreeLocalVolatilityCalculator,
    correct_probability,
    middle_probability,
)
from .dupire import (
    DupireLocalVolatilityCalculator,
    DupireLocalVolatilitySurface,
    SurfaceQuote,
)

__all__ = [
    "LocalVolatilityCalculator",
    "as_rate_function",
    "ImpliedTrinomialTreeLocalVolatilityCalculator",
    "correct_probability",
    "middle_probability",
    "DupireLocalVolatilityCalculator",
    "DupireLocalVolatilitySurface",
    "SurfaceQuote",
]

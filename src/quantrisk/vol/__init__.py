"""
Volatility module - local volatility from implied volatility or prices.

Provides:
- Implied trinomial tree calibration
- Dupire local volatility
"""

from .local import (
    LocalVolatilityCalculator,
    ImpliedTrinomialTreeLocalVolatilityCalculator,
    DupireLocalVolatilityCalculator,
    DupireLocalVolatilitySurface,
)

__all__ = [
    "LocalVolatilityCalculator",
    "ImpliedTrinomialTreeLocalVolatilityCalculator",
    "DupireLocalVolatilityCalculator",
    "DupireLocalVolatilitySurface",
]

"""
Surfaces package - volatility and price surfaces.

Provides:
- Surface base class and ValueDerivatives
- ConstantSurface
- InterpolatedNodalSurface over scattered nodes
"""

from .surface import (
    Surface,
    ConstantSurface,
    InterpolatedNodalSurface,
    ValueDerivatives,
)

__all__ = [
    "Surface",
    "ConstantSurface",
    "InterpolatedNodalSurface",
    "ValueDerivatives",
]

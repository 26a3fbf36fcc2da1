"""
Numerics package - finite-difference differentiation.

Provides:
- Scalar and vector-field first and second order differentiators
"""

from .differentiation import (
    ScalarFirstOrderDifferentiator,
    ScalarSecondOrderDifferentiator,
    VectorFieldFirstOrderDifferentiator,
    VectorFieldSecondOrderDifferentiator,
)

__all__ = [
    "ScalarFirstOrderDifferentiator",
    "ScalarSecondOrderDifferentiator",
    "VectorFieldFirstOrderDifferentiator",
    "VectorFieldSecondOrderDifferentiator",
]

"""
Curves package - zero-rate curves and interpolation.

Provides:
- InterpolatedNodalCurve: Immutable nodal zero-rate curve
- FunctionCurve: Analytic (non-nodal) zero-rate curve
- Interpolators, including the 2-D grid interpolator used by surfaces
- Curve and parameter metadata
"""

from .curve import Curve, InterpolatedNodalCurve, FunctionCurve, create_flat_curve
from .interpolation import (
    Interpolator,
    LinearInterpolator,
    CubicSplineInterpolator,
    TimeSquareInterpolator,
    GridInterpolator2D,
    create_interpolator,
)
from .metadata import (
    CurveMetadata,
    ParameterMetadata,
    DatedParameterMetadata,
    TenorParameterMetadata,
)

__all__ = [
    "Curve",
    "InterpolatedNodalCurve",
    "FunctionCurve",
    "create_flat_curve",
    "Interpolator",
    "LinearInterpolator",
    "CubicSplineInterpolator",
    "TimeSquareInterpolator",
    "GridInterpolator2D",
    "create_interpolator",
    "CurveMetadata",
    "ParameterMetadata",
    "DatedParameterMetadata",
    "TenorParameterMetadata",
]

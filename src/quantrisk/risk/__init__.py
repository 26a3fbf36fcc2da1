"""
Risk package - curve sensitivities.

Provides:
- Bump framework over immutable rates snapshots
- Finite-difference curve parameter sensitivities
- Sensitivity containers
- Jacobian inversion and date re-bucketing
"""

from .bumping import (
    BumpEngine,
    BumpType,
    PointShift,
    ParallelShift,
    require_nodal,
)
from .sensitivity import (
    CurrencyAmount,
    CurveParameterSensitivity,
    CurveParameterSensitivities,
)
from .finite_difference import RatesFiniteDifferenceSensitivityCalculator
from .curve_utils import CurveSensitivityUtils

__all__ = [
    "BumpEngine",
    "BumpType",
    "PointShift",
    "ParallelShift",
    "require_nodal",
    "CurrencyAmount",
    "CurveParameterSensitivity",
    "CurveParameterSensitivities",
    "RatesFiniteDifferenceSensitivityCalculator",
    "CurveSensitivityUtils",
]

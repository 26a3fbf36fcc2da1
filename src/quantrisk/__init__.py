"""
QuantRisk: Local Volatility Calibration & Curve Sensitivity Library

A modular library for:
- Pricing options on recombining trinomial trees
- Calibrating local volatility surfaces (implied trinomial tree, Dupire)
- Computing finite-difference curve parameter sensitivities on immutable
  multi-curve rates snapshots
- Jacobian inversion and date re-bucketing of curve sensitivities
"""

__version__ = "0.1.0"

# Core modules
from .conventions import DayCount, year_fraction
from .dates import DateUtils
from .exceptions import NegativeVarianceError
from .config import QuantRiskConfig, load_config

# Curves and market data
from .curves import (
    Curve,
    InterpolatedNodalCurve,
    FunctionCurve,
    CurveMetadata,
    GridInterpolator2D,
    create_flat_curve,
)
from .market import ImmutableRatesProvider

# Surfaces
from .surfaces import Surface, ConstantSurface, InterpolatedNodalSurface, ValueDerivatives

# Trees
from .tree import (
    TrinomialTree,
    CoxRossRubinsteinLatticeSpecification,
    TrigeorgisLatticeSpecification,
    EuropeanVanillaOptionFunction,
    AmericanVanillaOptionFunction,
    PutCall,
)

# Local volatility
from .vol import (
    ImpliedTrinomialTreeLocalVolatilityCalculator,
    DupireLocalVolatilityCalculator,
)

# Risk
from .risk import (
    RatesFiniteDifferenceSensitivityCalculator,
    CurveSensitivityUtils,
    CurveParameterSensitivity,
    CurveParameterSensitivities,
    CurrencyAmount,
)

__all__ = [
    "__version__",
    "DayCount",
    "year_fraction",
    "DateUtils",
    "NegativeVarianceError",
    "QuantRiskConfig",
    "load_config",
    "Curve",
    "InterpolatedNodalCurve",
    "FunctionCurve",
    "CurveMetadata",
    "GridInterpolator2D",
    "create_flat_curve",
    "ImmutableRatesProvider",
    "Surface",
    "ConstantSurface",
    "InterpolatedNodalSurface",
    "ValueDerivatives",
    "TrinomialTree",
    "CoxRossRubinsteinLatticeSpecification",
    "TrigeorgisLatticeSpecification",
    "EuropeanVanillaOptionFunction",
    "AmericanVanillaOptionFunction",
    "PutCall",
    "ImpliedTrinomialTreeLocalVolatilityCalculator",
    "DupireLocalVolatilityCalculator",
    "RatesFiniteDifferenceSensitivityCalculator",
    "CurveSensitivityUtils",
    "CurveParameterSensitivity",
    "CurveParameterSensitivities",
    "CurrencyAmount",
]

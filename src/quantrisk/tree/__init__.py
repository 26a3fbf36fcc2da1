"""
Tree package - trinomial lattice option pricing.

Provides:
- Lattice specifications (Cox-Ross-Rubinstein, Trigeorgis)
- European and American option functions
- TrinomialTree backward induction pricer
"""

from .lattice import (
    TrinomialParameters,
    LatticeSpecification,
    CoxRossRubinsteinLatticeSpecification,
    TrigeorgisLatticeSpecification,
)
from .option_function import (
    PutCall,
    OptionFunction,
    EuropeanVanillaOptionFunction,
    AmericanVanillaOptionFunction,
    trinomial_backward_step,
)
from .trinomial_tree import TrinomialTree

__all__ = [
    "TrinomialParameters",
    "LatticeSpecification",
    "CoxRossRubinsteinLatticeSpecification",
    "TrigeorgisLatticeSpecification",
    "PutCall",
    "OptionFunction",
    "EuropeanVanillaOptionFunction",
    "AmericanVanillaOptionFunction",
    "trinomial_backward_step",
    "TrinomialTree",
]

"""
Finite-difference differentiation of one-dimensional functions.

Provides:
- ScalarFirstOrderDifferentiator: f'(x) for f: float -> float
- ScalarSecondOrderDifferentiator: f''(x) for f: float -> float
- VectorFieldFirstOrderDifferentiator: d/dx of f: float -> ndarray
- VectorFieldSecondOrderDifferentiator: d2/dx2 of f: float -> ndarray

Each differentiator is a small immutable value object holding its step.
An optional domain predicate switches the stencil to a one-sided one when
x - eps or x + eps falls outside the domain, so that, for example, a
surface defined for t >= 0 can be differentiated in time at t = 0.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Union

import numpy as np

Value = Union[float, np.ndarray]
Domain = Callable[[float], bool]


def _check_domain(x: float, eps: float, domain: Domain):
    """Return (has_left, has_right) for x in the domain."""
    if not domain(x):
        raise ValueError(f"Point {x} is not in the function domain")
    has_left = domain(x - eps)
    has_right = domain(x + eps)
    if not has_left and not has_right:
        raise ValueError(f"Cannot get derivative at point {x}: domain too narrow for step {eps}")
    return has_left, has_right


@dataclass(frozen=True)
class _FirstOrder:
    eps: float = 1.0e-5

    def __post_init__(self):
        if self.eps <= 0:
            raise ValueError(f"eps must be positive, got {self.eps}")

    def _derivative(self, function: Callable[[float], Value], x: float, domain: Optional[Domain]) -> Value:
        e = self.eps
        if domain is not None:
            has_left, has_right = _check_domain(x, e, domain)
            if not has_left:
                return (-3.0 * function(x) + 4.0 * function(x + e) - function(x + 2 * e)) / (2 * e)
            if not has_right:
                return (3.0 * function(x) - 4.0 * function(x - e) + function(x - 2 * e)) / (2 * e)
        return (function(x + e) - function(x - e)) / (2 * e)


@dataclass(frozen=True)
class _SecondOrder:
    eps: float = 1.0e-4

    def __post_init__(self):
        if self.eps <= 0:
            raise ValueError(f"eps must be positive, got {self.eps}")

    def _derivative(self, function: Callable[[float], Value], x: float, domain: Optional[Domain]) -> Value:
        e = self.eps
        e2 = e * e
        if domain is not None:
            has_left, has_right = _check_domain(x, e, domain)
            if not has_left:
                return (-function(x + 3 * e) + 4.0 * function(x + 2 * e)
                        - 5.0 * function(x + e) + 2.0 * function(x)) / e2
            if not has_right:
                return (-function(x - 3 * e) + 4.0 * function(x - 2 * e)
                        - 5.0 * function(x - e) + 2.0 * function(x)) / e2
        return (function(x + e) + function(x - e) - 2.0 * function(x)) / e2


class ScalarFirstOrderDifferentiator(_FirstOrder):
    """
    First derivative by central difference, step ``eps`` (default 1e-5).

    One-sided second order stencils are used at a domain boundary.
    """

    def derivative(self, function: Callable[[float], float], x: float,
                   domain: Optional[Domain] = None) -> float:
        return float(self._derivative(function, x, domain))

    def differentiate(self, function: Callable[[float], float],
                      domain: Optional[Domain] = None) -> Callable[[float], float]:
        """Return x -> f'(x)."""
        return lambda x: self.derivative(function, x, domain)


class ScalarSecondOrderDifferentiator(_SecondOrder):
    """Second derivative (f(x+e) + f(x-e) - 2 f(x)) / e^2, step ``eps`` (default 1e-4)."""

    def derivative(self, function: Callable[[float], float], x: float,
                   domain: Optional[Domain] = None) -> float:
        return float(self._derivative(function, x, domain))

    def differentiate(self, function: Callable[[float], float],
                      domain: Optional[Domain] = None) -> Callable[[float], float]:
        """Return x -> f''(x)."""
        return lambda x: self.derivative(function, x, domain)


class VectorFieldFirstOrderDifferentiator(_FirstOrder):
    """First derivative of a vector-valued function, element by element."""

    def derivative(self, function: Callable[[float], np.ndarray], x: float,
                   domain: Optional[Domain] = None) -> np.ndarray:
        return np.asarray(self._derivative(lambda s: np.asarray(function(s), dtype=np.float64), x, domain))

    def differentiate(self, function: Callable[[float], np.ndarray],
                      domain: Optional[Domain] = None) -> Callable[[float], np.ndarray]:
        return lambda x: self.derivative(function, x, domain)


class VectorFieldSecondOrderDifferentiator(_SecondOrder):
    """Second derivative of a vector-valued function, element by element."""

    def derivative(self, function: Callable[[float], np.ndarray], x: float,
                   domain: Optional[Domain] = None) -> np.ndarray:
        return np.asarray(self._derivative(lambda s: np.asarray(function(s), dtype=np.float64), x, domain))

    def differentiate(self, function: Callable[[float], np.ndarray],
                      domain: Optional[Domain] = None) -> Callable[[float], np.ndarray]:
        return lambda x: self.derivative(function, x, domain)


__all__ = [
    "ScalarFirstOrderDifferentiator",
    "ScalarSecondOrderDifferentiator",
    "VectorFieldFirstOrderDifferentiator",
    "VectorFieldSecondOrderDifferentiator",
]

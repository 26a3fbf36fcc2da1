"""
Two-dimensional surfaces.

A surface maps (x, y) to a value; for volatility and price surfaces x is
the time to expiry and y the strike. Parameterised surfaces also report
the sensitivity of a value to each of their parameters.

Provides:
- Surface: Abstract base
- ConstantSurface: Single parameter, same value everywhere
- InterpolatedNodalSurface: Scattered nodes with 2-D grid interpolation
- ValueDerivatives: A value with its parameter sensitivities
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from ..curves.interpolation import GridInterpolator2D


@dataclass(frozen=True)
class ValueDerivatives:
    """A value together with its derivatives with respect to a set of parameters."""
    value: float
    derivatives: np.ndarray


class Surface(ABC):
    """Abstract base class for surfaces."""

    def __init__(self, name: str):
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @property
    @abstractmethod
    def parameter_count(self) -> int:
        """Number of surface parameters."""

    @abstractmethod
    def value_at(self, x: float, y: float) -> float:
        """Surface value at (x, y)."""

    @abstractmethod
    def parameter_sensitivity_at(self, x: float, y: float) -> np.ndarray:
        """Sensitivity of the value at (x, y) to each surface parameter."""

    def value_derivatives_at(self, x: float, y: float) -> ValueDerivatives:
        return ValueDerivatives(self.value_at(x, y), self.parameter_sensitivity_at(x, y))

    def __call__(self, x: float, y: float) -> float:
        return self.value_at(x, y)


class ConstantSurface(Surface):
    """Surface with a single parameter, equal to it everywhere."""

    def __init__(self, name: str, value: float):
        super().__init__(name)
        self.value = float(value)

    @property
    def parameter_count(self) -> int:
        return 1

    def value_at(self, x: float, y: float) -> float:
        return self.value

    def parameter_sensitivity_at(self, x: float, y: float) -> np.ndarray:
        return np.ones(1)

    def with_parameter(self, index: int, value: float) -> "ConstantSurface":
        if index != 0:
            raise IndexError(f"Invalid parameter index: {index}")
        return ConstantSurface(self.name, value)

    def __repr__(self) -> str:
        return f"ConstantSurface(name={self.name}, value={self.value})"


class InterpolatedNodalSurface(Surface):
    """
    Surface defined by scattered (x, y, z) nodes.

    Nodes need not form a full grid. They are grouped by x; inside each
    group y is interpolated, then the group results are interpolated in x
    (see GridInterpolator2D). The node values z are the surface parameters.

    Attributes:
        interpolator: The 2-D interpolator used for queries
    """

    def __init__(
        self,
        name: str,
        x_values: Sequence[float],
        y_values: Sequence[float],
        z_values: Sequence[float],
        interpolator: Optional[GridInterpolator2D] = None
    ):
        super().__init__(name)
        x = np.array(x_values, dtype=np.float64)
        y = np.array(y_values, dtype=np.float64)
        z = np.array(z_values, dtype=np.float64)
        if not (len(x) == len(y) == len(z)):
            raise ValueError(
                f"Surface {name}: x, y and z lengths differ ({len(x)}, {len(y)}, {len(z)})"
            )
        for values in (x, y, z):
            values.setflags(write=False)
        self._x = x
        self._y = y
        self._z = z
        self.interpolator = interpolator if interpolator is not None else GridInterpolator2D()
        self._bound = self.interpolator.bind(x, y, z)

    @property
    def x_values(self) -> np.ndarray:
        return self._x

    @property
    def y_values(self) -> np.ndarray:
        return self._y

    @property
    def z_values(self) -> np.ndarray:
        return self._z

    @property
    def parameter_count(self) -> int:
        return len(self._z)

    def value_at(self, x: float, y: float) -> float:
        return self._bound.interpolate(x, y)

    def parameter_sensitivity_at(self, x: float, y: float) -> np.ndarray:
        return self._bound.node_sensitivity(x, y)

    def with_z_values(self, z_values: Sequence[float]) -> "InterpolatedNodalSurface":
        """Create a new surface with the same nodes and different values."""
        return InterpolatedNodalSurface(self.name, self._x, self._y, z_values, self.interpolator)

    def with_parameter(self, index: int, value: float) -> "InterpolatedNodalSurface":
        if index < 0 or index >= self.parameter_count:
            raise IndexError(f"Invalid parameter index: {index}")
        z = self._z.copy()
        z[index] = value
        return self.with_z_values(z)

    def to_dataframe(self) -> pd.DataFrame:
        """Nodes as a table with columns x, y, z."""
        return pd.DataFrame({"x": self._x, "y": self._y, "z": self._z})

    def __repr__(self) -> str:
        return (f"InterpolatedNodalSurface(name={self.name}, nodes={self.parameter_count}, "
                f"interpolator={self.interpolator!r})")


__all__ = [
    "Surface",
    "ConstantSurface",
    "InterpolatedNodalSurface",
    "ValueDerivatives",
]

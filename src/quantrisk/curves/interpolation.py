"""
Interpolation methods for curves and surfaces.

Provides:
- LinearInterpolator: Linear interpolation
- CubicSplineInterpolator: Natural cubic spline
- TimeSquareInterpolator: Linear interpolation of x * y^2 (total variance style)
- GridInterpolator2D: Two-dimensional interpolation over nodes grouped by x

All one-dimensional interpolators extrapolate flat, accept a single node
(constant function) and report the sensitivity of the interpolated value
to each node value, which is what surface and curve parameter
sensitivities are built from.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple
import numpy as np


class Interpolator(ABC):
    """Abstract base class for one-dimensional interpolation."""

    def __init__(self):
        self.times: Optional[np.ndarray] = None
        self.values: Optional[np.ndarray] = None

    def fit(self, times: np.ndarray, values: np.ndarray) -> None:
        """
        Fit the interpolator to data points.

        Args:
            times: Array of x-coordinates
            values: Array of values at the x-coordinates
        """
        if len(times) != len(values):
            raise ValueError("Times and values must have same length")
        if len(times) < 1:
            raise ValueError("Need at least 1 point for interpolation")

        idx = np.argsort(times, kind="stable")
        self.times = np.asarray(times, dtype=np.float64)[idx]
        self.values = np.asarray(values, dtype=np.float64)[idx]
        if np.any(np.diff(self.times) <= 0):
            raise ValueError("Times must be distinct")
        self._order = idx
        self._fit()

    def _fit(self) -> None:
        """Hook for subclasses that precompute coefficients."""

    def _check_fitted(self) -> None:
        if self.times is None:
            raise RuntimeError("Interpolator not fitted")

    @abstractmethod
    def interpolate(self, t: float) -> float:
        """
        Interpolate at a single point.

        Args:
            t: x-coordinate

        Returns:
            Interpolated value
        """

    def __call__(self, t: float) -> float:
        """Convenience method to call interpolate."""
        return self.interpolate(t)

    @abstractmethod
    def derivative(self, t: float) -> float:
        """Return the first derivative at point t."""

    def node_sensitivity(self, t: float) -> np.ndarray:
        """
        Sensitivity of the interpolated value at t to each node value.

        Returned in the order the values were passed to ``fit``.
        """
        self._check_fitted()
        sorted_sensi = self._sorted_node_sensitivity(t)
        result = np.zeros_like(sorted_sensi)
        result[self._order] = sorted_sensi
        return result

    @abstractmethod
    def _sorted_node_sensitivity(self, t: float) -> np.ndarray:
        """Node sensitivity in sorted node order."""

    def _bracket(self, t: float) -> Tuple[int, float]:
        """Index of the left node of the interval holding t and the linear weight."""
        idx = np.searchsorted(self.times, t, side='right') - 1
        idx = int(max(0, min(idx, len(self.times) - 2)))
        t0, t1 = self.times[idx], self.times[idx + 1]
        return idx, (t - t0) / (t1 - t0)

    def _is_flat(self, t: float) -> bool:
        return len(self.times) == 1 or t <= self.times[0] or t >= self.times[-1]

    def _flat_sensitivity(self, t: float) -> np.ndarray:
        sensi = np.zeros(len(self.times))
        sensi[0 if t <= self.times[0] else -1] = 1.0
        return sensi


class LinearInterpolator(Interpolator):
    """
    Linear interpolation.

    Simple linear interpolation between knot points.
    Extrapolates flat beyond boundaries.
    """

    def interpolate(self, t: float) -> float:
        """Linear interpolation with flat extrapolation."""
        self._check_fitted()
        if self._is_flat(t):
            return float(self.values[0] if t <= self.times[0] else self.values[-1])

        idx, w = self._bracket(t)
        v0, v1 = self.values[idx], self.values[idx + 1]
        return float(v0 + w * (v1 - v0))

    def derivative(self, t: float) -> float:
        """Derivative of linear interpolation (piecewise constant)."""
        self._check_fitted()
        if self._is_flat(t):
            return 0.0

        idx, _ = self._bracket(t)
        t0, t1 = self.times[idx], self.times[idx + 1]
        v0, v1 = self.values[idx], self.values[idx + 1]
        return float((v1 - v0) / (t1 - t0))

    def _sorted_node_sensitivity(self, t: float) -> np.ndarray:
        if self._is_flat(t):
            return self._flat_sensitivity(t)
        sensi = np.zeros(len(self.times))
        idx, w = self._bracket(t)
        sensi[idx] = 1.0 - w
        sensi[idx + 1] = w
        return sensi


class CubicSplineInterpolator(Interpolator):
    """
    Cubic spline interpolation.

    Uses natural cubic splines (second derivative = 0 at boundaries).
    Provides smooth first and second derivatives inside the node range and
    flat extrapolation outside it.
    """

    def __init__(self):
        super().__init__()
        self.coefficients: Optional[np.ndarray] = None  # Shape: (n-1, 4) for [a, b, c, d]

    def _fit(self) -> None:
        self.coefficients = self._spline_coefficients(self.times, self.values)

    @staticmethod
    def _spline_coefficients(times: np.ndarray, values: np.ndarray) -> np.ndarray:
        """
        Solve the natural spline system for the polynomial coefficients.

        S_i(x) = a_i + b_i*(x-x_i) + c_i*(x-x_i)^2 + d_i*(x-x_i)^3
        """
        n = len(times)
        if n == 1:
            return np.array([[values[0], 0.0, 0.0, 0.0]])
        if n == 2:
            # Degenerate to linear
            slope = (values[1] - values[0]) / (times[1] - times[0])
            return np.array([[values[0], slope, 0.0, 0.0]])

        h = np.diff(times)

        # Natural spline: M[0] = M[n-1] = 0
        A = np.zeros((n, n))
        b = np.zeros(n)
        A[0, 0] = 1.0
        A[n-1, n-1] = 1.0
        for i in range(1, n-1):
            A[i, i-1] = h[i-1]
            A[i, i] = 2 * (h[i-1] + h[i])
            A[i, i+1] = h[i]
            b[i] = 6 * ((values[i+1] - values[i]) / h[i] -
                        (values[i] - values[i-1]) / h[i-1])

        M = np.linalg.solve(A, b)

        coefficients = np.zeros((n-1, 4))
        for i in range(n-1):
            coefficients[i, 0] = values[i]
            coefficients[i, 1] = (values[i+1] - values[i]) / h[i] - h[i] * (M[i+1] + 2*M[i]) / 6
            coefficients[i, 2] = M[i] / 2
            coefficients[i, 3] = (M[i+1] - M[i]) / (6 * h[i])
        return coefficients

    def interpolate(self, t: float) -> float:
        """Evaluate cubic spline at point t."""
        self._check_fitted()
        return self._evaluate(self.coefficients, t, self.values)

    def _evaluate(self, coefficients: np.ndarray, t: float, values: np.ndarray) -> float:
        if self._is_flat(t):
            return float(values[0] if t <= self.times[0] else values[-1])
        idx, _ = self._bracket(t)
        dx = t - self.times[idx]
        a, b, c, d = coefficients[idx]
        return float(a + b*dx + c*dx**2 + d*dx**3)

    def derivative(self, t: float) -> float:
        """First derivative of cubic spline at point t."""
        self._check_fitted()
        if self._is_flat(t):
            return 0.0

        idx, _ = self._bracket(t)
        dx = t - self.times[idx]
        _, b, c, d = self.coefficients[idx]
        return float(b + 2*c*dx + 3*d*dx**2)

    def second_derivative(self, t: float) -> float:
        """Second derivative of cubic spline at point t."""
        self._check_fitted()
        if self._is_flat(t):
            return 0.0

        idx, _ = self._bracket(t)
        dx = t - self.times[idx]
        _, _, c, d = self.coefficients[idx]
        return float(2*c + 6*d*dx)

    def _sorted_node_sensitivity(self, t: float) -> np.ndarray:
        # The spline is linear in the node values: evaluate it on unit vectors.
        n = len(self.times)
        if self._is_flat(t):
            return self._flat_sensitivity(t)
        sensi = np.zeros(n)
        for i in range(n):
            unit = np.zeros(n)
            unit[i] = 1.0
            coefficients = self._spline_coefficients(self.times, unit)
            sensi[i] = self._evaluate(coefficients, t, unit)
        return sensi


class TimeSquareInterpolator(Interpolator):
    """
    Time-square interpolation.

    Interpolates x * y^2 linearly in x and returns sqrt(x * y^2 / x).
    With x a time and y a volatility this is linear interpolation of
    total variance. Extrapolates flat beyond boundaries.
    """

    def interpolate(self, t: float) -> float:
        self._check_fitted()
        if self._is_flat(t):
            return float(self.values[0] if t <= self.times[0] else self.values[-1])

        idx, w = self._bracket(t)
        v0 = self.times[idx] * self.values[idx] ** 2
        v1 = self.times[idx + 1] * self.values[idx + 1] ** 2
        return float(np.sqrt((v0 + w * (v1 - v0)) / t))

    def derivative(self, t: float) -> float:
        self._check_fitted()
        if self._is_flat(t):
            return 0.0

        idx, w = self._bracket(t)
        t0, t1 = self.times[idx], self.times[idx + 1]
        v0 = t0 * self.values[idx] ** 2
        v1 = t1 * self.values[idx + 1] ** 2
        v = v0 + w * (v1 - v0)
        y = np.sqrt(v / t)
        if y == 0.0:
            return 0.0
        slope = (v1 - v0) / (t1 - t0)
        return float((slope / t - v / t ** 2) / (2.0 * y))

    def _sorted_node_sensitivity(self, t: float) -> np.ndarray:
        if self._is_flat(t):
            return self._flat_sensitivity(t)
        sensi = np.zeros(len(self.times))
        y = self.interpolate(t)
        if y == 0.0:
            return sensi
        idx, w = self._bracket(t)
        for k, weight in ((idx, 1.0 - w), (idx + 1, w)):
            sensi[k] = weight * self.times[k] * self.values[k] / (t * y)
        return sensi


def create_interpolator(method: str) -> Interpolator:
    """
    Factory function to create an interpolator by name.

    Args:
        method: One of "linear", "cubic_spline", "time_square"

    Returns:
        Interpolator instance
    """
    method = method.lower().replace("-", "_").replace(" ", "_")

    if method in ("linear", "lin"):
        return LinearInterpolator()
    elif method in ("cubic_spline", "cubic", "spline"):
        return CubicSplineInterpolator()
    elif method in ("time_square", "timesquare", "time_squared"):
        return TimeSquareInterpolator()
    else:
        raise ValueError(f"Unknown interpolation method: {method}")


class GridInterpolator2D:
    """
    Two-dimensional interpolation over nodes grouped by x.

    Nodes sharing the same x value form a group. A query (x, y) is first
    interpolated along y inside every group, then the group results are
    interpolated along x. Groups may hold different y values and
    different numbers of nodes.

    Attributes:
        x_method: Interpolator name used across groups
        y_method: Interpolator name used inside each group
    """

    def __init__(self, x_method: str = "time_square", y_method: str = "linear"):
        # Validate the names eagerly
        create_interpolator(x_method)
        create_interpolator(y_method)
        self.x_method = x_method
        self.y_method = y_method

    def bind(self, x: np.ndarray, y: np.ndarray, z: np.ndarray) -> "BoundGridInterpolator2D":
        """
        Bind the interpolator to node data.

        Args:
            x: Node x-coordinates
            y: Node y-coordinates
            z: Node values

        Returns:
            Bound interpolator ready for queries
        """
        return BoundGridInterpolator2D(self, x, y, z)

    def __repr__(self) -> str:
        return f"GridInterpolator2D(x={self.x_method}, y={self.y_method})"


class BoundGridInterpolator2D:
    """GridInterpolator2D fitted to a fixed set of nodes."""

    def __init__(self, grid: GridInterpolator2D, x: np.ndarray, y: np.ndarray, z: np.ndarray):
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        z = np.asarray(z, dtype=np.float64)
        if not (len(x) == len(y) == len(z)):
            raise ValueError("x, y and z must have same length")
        if len(x) == 0:
            raise ValueError("Need at least 1 node for interpolation")

        self.grid = grid
        self.size = len(x)
        self.x_groups = np.unique(x)
        self._group_indices: List[np.ndarray] = []
        self._group_interpolators: List[Interpolator] = []
        for xg in self.x_groups:
            indices = np.nonzero(x == xg)[0]
            interp = create_interpolator(grid.y_method)
            interp.fit(y[indices], z[indices])
            self._group_indices.append(indices)
            self._group_interpolators.append(interp)

    def _across(self, x: float, y: float) -> Interpolator:
        group_values = np.array([interp.interpolate(y) for interp in self._group_interpolators])
        interp = create_interpolator(self.grid.x_method)
        interp.fit(self.x_groups, group_values)
        return interp

    def interpolate(self, x: float, y: float) -> float:
        """Interpolated value at (x, y)."""
        return self._across(x, y).interpolate(x)

    def node_sensitivity(self, x: float, y: float) -> np.ndarray:
        """Sensitivity of the interpolated value at (x, y) to each node value."""
        x_sensi = self._across(x, y).node_sensitivity(x)
        sensi = np.zeros(self.size)
        for weight, indices, interp in zip(x_sensi, self._group_indices, self._group_interpolators):
            if weight != 0.0:
                sensi[indices] += weight * interp.node_sensitivity(y)
        return sensi


__all__ = [
    "Interpolator",
    "LinearInterpolator",
    "CubicSplineInterpolator",
    "TimeSquareInterpolator",
    "GridInterpolator2D",
    "BoundGridInterpolator2D",
    "create_interpolator",
]

"""
Yield curve representation and operations.

The curve classes provide:
- Discount factor P(0,t)
- Zero rate z(t)
- Forward rate f(t1, t2)
- Instantaneous forward rate f(t)

Curves are immutable. Bumping a curve returns a new curve, which lets a
rates provider snapshot hold curves that are shared safely between
concurrent revaluations.

Two families exist:
- InterpolatedNodalCurve: zero rates at nodes, interpolated; each node is a
  parameter that can be shifted individually
- FunctionCurve: zero rates from an analytic function; not nodal, so it
  cannot be bumped point by point
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Callable, List, Optional, Sequence, Tuple, Union
import numpy as np

from ..conventions import DayCount, year_fraction
from .interpolation import Interpolator, create_interpolator
from .metadata import CurveMetadata, ParameterMetadata


class Curve(ABC):
    """
    Base zero-rate curve.

    Conventions:
        - Zero rates are continuously compounded
        - Times are year fractions from anchor date
        - Discount factor at t=0 is 1.0
    """

    def __init__(self, metadata: CurveMetadata, anchor_date: Optional[date] = None):
        self._metadata = metadata
        self._anchor_date = anchor_date

    @property
    def metadata(self) -> CurveMetadata:
        return self._metadata

    @property
    def name(self) -> str:
        return self._metadata.name

    @property
    def anchor_date(self) -> Optional[date]:
        return self._anchor_date

    @property
    def day_count(self) -> DayCount:
        return self._metadata.day_count

    def _to_time(self, t: Union[float, date]) -> float:
        if isinstance(t, date):
            if self._anchor_date is None:
                raise ValueError(f"Curve {self.name} has no anchor date; query it by year fraction")
            return year_fraction(self._anchor_date, t, self.day_count)
        return float(t)

    @abstractmethod
    def _zero_rate(self, t: float) -> float:
        """Continuously compounded zero rate at year fraction t."""

    def zero_rate(self, t: Union[float, date]) -> float:
        """
        Get continuously compounded zero rate z(t).

        Args:
            t: Year fraction or date

        Returns:
            Zero rate
        """
        return self._zero_rate(self._to_time(t))

    def discount_factor(self, t: Union[float, date]) -> float:
        """
        Get discount factor P(0,t).

        Args:
            t: Year fraction or date

        Returns:
            Discount factor
        """
        t = self._to_time(t)
        if t <= 0:
            return 1.0
        return float(np.exp(-self._zero_rate(t) * t))

    def forward_rate(self, t1: Union[float, date], t2: Union[float, date]) -> float:
        """
        Get simply compounded forward rate f(t1, t2).

        Args:
            t1: Start time (year fraction or date)
            t2: End time (year fraction or date)

        Returns:
            Forward rate between t1 and t2
        """
        t1 = self._to_time(t1)
        t2 = self._to_time(t2)
        if t2 <= t1:
            raise ValueError("t2 must be greater than t1")

        df1 = self.discount_factor(t1)
        df2 = self.discount_factor(t2)
        return (df1 / df2 - 1) / (t2 - t1)

    def instantaneous_forward(self, t: Union[float, date], eps: float = 1e-5) -> float:
        """
        Get instantaneous forward rate f(t) = -d/dt log P(0,t).

        Args:
            t: Year fraction or date
            eps: Step of the central difference on log P

        Returns:
            Instantaneous forward rate
        """
        t = max(self._to_time(t), eps)
        up = self._zero_rate(t + eps) * (t + eps)
        down = self._zero_rate(t - eps) * (t - eps)
        return (up - down) / (2 * eps)


class InterpolatedNodalCurve(Curve):
    """
    Zero-rate curve defined by nodes and an interpolator.

    The node zero rates are the curve parameters.

    Attributes:
        metadata: Curve name, day count and optional per-node metadata
        interpolation_method: Name of interpolation method
    """

    def __init__(
        self,
        metadata: Union[CurveMetadata, str],
        times: Sequence[float],
        zero_rates: Sequence[float],
        interpolation_method: str = "linear",
        anchor_date: Optional[date] = None
    ):
        if isinstance(metadata, str):
            metadata = CurveMetadata(metadata)
        times = np.array(times, dtype=np.float64)
        zero_rates = np.array(zero_rates, dtype=np.float64)
        if len(times) != len(zero_rates):
            raise ValueError("Times and zero rates must have same length")
        if len(times) == 0:
            raise ValueError("Need at least 1 node to build curve")
        if np.any(np.diff(times) <= 0):
            raise ValueError("Node times must be strictly increasing")
        if metadata.parameter_metadata and len(metadata.parameter_metadata) != len(times):
            raise ValueError(
                f"Curve {metadata.name} has {len(times)} nodes but "
                f"{len(metadata.parameter_metadata)} parameter metadata entries"
            )
        super().__init__(metadata, anchor_date)

        times.setflags(write=False)
        zero_rates.setflags(write=False)
        self._times = times
        self._rates = zero_rates
        self.interpolation_method = interpolation_method
        self._interpolator: Interpolator = create_interpolator(interpolation_method)
        self._interpolator.fit(times, zero_rates)

    @property
    def parameter_count(self) -> int:
        """Number of curve parameters (nodes)."""
        return len(self._times)

    @property
    def parameter_metadata(self) -> Tuple[ParameterMetadata, ...]:
        return self._metadata.parameter_metadata

    def _zero_rate(self, t: float) -> float:
        return self._interpolator.interpolate(t)

    def zero_rate_sensitivity(self, t: Union[float, date]) -> np.ndarray:
        """
        Sensitivity of the zero rate at t to each node zero rate.

        Args:
            t: Year fraction or date

        Returns:
            Array with one entry per parameter
        """
        return self._interpolator.node_sensitivity(self._to_time(t))

    def get_nodes(self) -> List[Tuple[float, float]]:
        """
        Get all curve nodes.

        Returns:
            List of (time, zero_rate) tuples
        """
        return list(zip(self._times.tolist(), self._rates.tolist()))

    def get_node_times(self) -> np.ndarray:
        """Get array of node times."""
        return self._times

    def get_node_rates(self) -> np.ndarray:
        """Get array of node zero rates."""
        return self._rates

    def with_values(self, zero_rates: Sequence[float]) -> "InterpolatedNodalCurve":
        """Create a new curve with the same nodes and different zero rates."""
        return InterpolatedNodalCurve(
            self._metadata,
            self._times,
            zero_rates,
            interpolation_method=self.interpolation_method,
            anchor_date=self._anchor_date
        )

    def with_parameter(self, index: int, value: float) -> "InterpolatedNodalCurve":
        """
        Create a new curve with one parameter replaced.

        Args:
            index: Parameter index (0-based)
            value: New zero rate for that node

        Returns:
            New curve
        """
        if index < 0 or index >= self.parameter_count:
            raise IndexError(f"Invalid node index: {index}")
        rates = self._rates.copy()
        rates[index] = value
        return self.with_values(rates)

    def with_perturbation(self, perturbation: Callable[["InterpolatedNodalCurve"], "InterpolatedNodalCurve"]):
        """Apply a perturbation (see quantrisk.risk.bumping) and return the result."""
        return perturbation(self)

    def bump_parallel(self, bp: float) -> "InterpolatedNodalCurve":
        """
        Create a new curve with parallel bump.

        Args:
            bp: Bump size in basis points

        Returns:
            New bumped curve
        """
        return self.with_values(self._rates + bp / 10000.0)

    def bump_node(self, node_index: int, bp: float) -> "InterpolatedNodalCurve":
        """
        Create a new curve with a single node bumped.

        Args:
            node_index: Index of node to bump (0-based)
            bp: Bump size in basis points

        Returns:
            New bumped curve
        """
        if node_index < 0 or node_index >= self.parameter_count:
            raise IndexError(f"Invalid node index: {node_index}")
        return self.with_parameter(node_index, self._rates[node_index] + bp / 10000.0)

    def __eq__(self, other) -> bool:
        if not isinstance(other, InterpolatedNodalCurve):
            return NotImplemented
        return (self._metadata == other._metadata
                and self.interpolation_method == other.interpolation_method
                and self._anchor_date == other._anchor_date
                and np.array_equal(self._times, other._times)
                and np.array_equal(self._rates, other._rates))

    def __hash__(self) -> int:
        return hash((self._metadata.name, self._times.tobytes(), self._rates.tobytes()))

    def __repr__(self) -> str:
        return (f"InterpolatedNodalCurve(name={self.name}, nodes={self.parameter_count}, "
                f"method={self.interpolation_method})")


class FunctionCurve(Curve):
    """
    Zero-rate curve given by an analytic function of time.

    Handy as a deterministic rate function for the local volatility
    calculators. It has no nodes, so finite-difference bumping rejects it.
    """

    def __init__(
        self,
        metadata: Union[CurveMetadata, str],
        function: Callable[[float], float],
        anchor_date: Optional[date] = None
    ):
        if isinstance(metadata, str):
            metadata = CurveMetadata(metadata)
        super().__init__(metadata, anchor_date)
        self._function = function

    def _zero_rate(self, t: float) -> float:
        return float(self._function(t))

    def __call__(self, t: float) -> float:
        return self._zero_rate(t)

    def __repr__(self) -> str:
        return f"FunctionCurve(name={self.name})"


def create_flat_curve(
    name: str,
    rate: float,
    max_tenor_years: float = 30.0,
    anchor_date: Optional[date] = None,
    day_count: DayCount = DayCount.ACT_365
) -> InterpolatedNodalCurve:
    """
    Create a flat yield curve.

    Args:
        name: Curve name
        rate: Flat continuously compounded rate
        max_tenor_years: Maximum tenor in years
        anchor_date: Valuation date, needed to query the curve by date
        day_count: Day count for date queries

    Returns:
        Flat curve
    """
    times = [t for t in [0.25, 0.5, 1, 2, 5, 10, 20] if t < max_tenor_years] + [max_tenor_years]
    return InterpolatedNodalCurve(
        CurveMetadata(name, day_count),
        times,
        [rate] * len(times),
        interpolation_method="linear",
        anchor_date=anchor_date
    )


__all__ = [
    "Curve",
    "InterpolatedNodalCurve",
    "FunctionCurve",
    "create_flat_curve",
]

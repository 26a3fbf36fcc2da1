"""
Curve bumping framework for sensitivity calculations.

Provides a generic bump-and-reprice engine over rates provider snapshots:
- Single node (point) shifts
- Parallel shifts (all nodes)

Bump types:
- Additive (absolute shift of the zero rate)
- Multiplicative (relative shift of the zero rate)

Bumps never mutate a curve or a snapshot; each returns a new object.
Only nodal curves can be bumped; anything else raises ``TypeError``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Tuple

import numpy as np

from ..curves.curve import Curve, InterpolatedNodalCurve
from ..market.rates_provider import ImmutableRatesProvider


class BumpType(Enum):
    """Type of curve bump."""
    ADDITIVE = "additive"          # Add shift to rate
    MULTIPLICATIVE = "multiplicative"  # Multiply rate by (1 + shift)


def require_nodal(curve: Curve) -> InterpolatedNodalCurve:
    """
    Check that a curve can be bumped node by node.

    Raises:
        TypeError: If the curve is not an InterpolatedNodalCurve
    """
    if not isinstance(curve, InterpolatedNodalCurve):
        raise TypeError(
            f"Curve {curve.name} of type {type(curve).__name__} is not nodal and cannot be bumped"
        )
    return curve


def _shifted(value, shift: float, bump_type: BumpType):
    if bump_type == BumpType.ADDITIVE:
        return value + shift
    return value * (1.0 + shift)


@dataclass(frozen=True)
class PointShift:
    """
    Shift of a single curve parameter.

    Attributes:
        index: Parameter index (0-based)
        shift: Shift amount (decimal for additive, fraction for multiplicative)
        bump_type: Additive or multiplicative
    """
    index: int
    shift: float
    bump_type: BumpType = BumpType.ADDITIVE

    @classmethod
    def absolute(cls, index: int, shift: float) -> "PointShift":
        return cls(index, shift, BumpType.ADDITIVE)

    @classmethod
    def relative(cls, index: int, shift: float) -> "PointShift":
        return cls(index, shift, BumpType.MULTIPLICATIVE)

    def __call__(self, curve: Curve) -> InterpolatedNodalCurve:
        nodal = require_nodal(curve)
        if self.index < 0 or self.index >= nodal.parameter_count:
            raise IndexError(f"Invalid node index: {self.index}")
        value = nodal.get_node_rates()[self.index]
        return nodal.with_parameter(self.index, _shifted(value, self.shift, self.bump_type))


@dataclass(frozen=True)
class ParallelShift:
    """
    Shift of every curve parameter by the same amount.

    Attributes:
        shift: Shift amount (decimal for additive, fraction for multiplicative)
        bump_type: Additive or multiplicative
    """
    shift: float
    bump_type: BumpType = BumpType.ADDITIVE

    def __call__(self, curve: Curve) -> InterpolatedNodalCurve:
        nodal = require_nodal(curve)
        return nodal.with_values(_shifted(np.asarray(nodal.get_node_rates()), self.shift, self.bump_type))


class BumpEngine:
    """
    Engine for snapshot bumping.

    Provides methods to:
    1. Create snapshots with one curve node bumped
    2. Create snapshots with every curve shifted in parallel
    """

    def __init__(self, base_provider: ImmutableRatesProvider):
        """
        Initialize bump engine with base snapshot.

        Args:
            base_provider: The snapshot to bump
        """
        self.base_provider = base_provider

    def node_bump(
        self,
        group: str,
        key: str,
        index: int,
        shift: float,
        bump_type: BumpType = BumpType.ADDITIVE
    ) -> ImmutableRatesProvider:
        """
        Bump a single node of one curve entry.

        Only the entry (group, key) is replaced, even if the same curve backs
        other entries of the snapshot.

        Args:
            group: "discount", "ibor" or "overnight"
            key: Currency or index name
            index: Parameter index
            shift: Shift amount (decimal)
            bump_type: Additive or multiplicative

        Returns:
            Bumped snapshot
        """
        entries = {(g, k): c for g, k, c in self.base_provider.curve_entries()}
        if (group, key) not in entries:
            raise ValueError(f"Unknown curve entry: {group}/{key}")
        bumped = PointShift(index, shift, bump_type)(entries[(group, key)])
        return self.base_provider.with_curve(group, key, bumped)

    def parallel_bump(
        self,
        shift: float,
        bump_type: BumpType = BumpType.ADDITIVE
    ) -> ImmutableRatesProvider:
        """
        Shift every curve entry in parallel.

        Args:
            shift: Shift amount (decimal)
            bump_type: Additive or multiplicative

        Returns:
            Bumped snapshot
        """
        perturbation = ParallelShift(shift, bump_type)
        bumped_by_id: Dict[int, Curve] = {}
        provider = self.base_provider
        for group, key, curve in self.base_provider.curve_entries():
            if id(curve) not in bumped_by_id:
                bumped_by_id[id(curve)] = perturbation(curve)
            provider = provider.with_curve(group, key, bumped_by_id[id(curve)])
        return provider

    def point_bumps(
        self,
        shift: float
    ) -> Iterator[Tuple[str, str, InterpolatedNodalCurve, int]]:
        """
        Enumerate every (entry, parameter) pair of the snapshot.

        Yields:
            (group, key, curve, index) for each parameter of each entry

        Raises:
            TypeError: On the first entry whose curve is not nodal
        """
        for group, key, curve in self.base_provider.curve_entries():
            nodal = require_nodal(curve)
            for index in range(nodal.parameter_count):
                yield group, key, nodal, index


__all__ = [
    "BumpType",
    "PointShift",
    "ParallelShift",
    "BumpEngine",
    "require_nodal",
]

"""
Curve parameter sensitivity containers.

A CurveParameterSensitivity holds one number per curve parameter for one
curve in one currency. CurveParameterSensitivities aggregates several of
them, keyed by (curve name, currency): combining two collections sums
the entries that share a key and concatenates the rest.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..curves.metadata import ParameterMetadata


@dataclass(frozen=True)
class CurrencyAmount:
    """An amount in a currency, the result type of a valuation function."""
    currency: str
    amount: float


@dataclass(frozen=True)
class CurveParameterSensitivity:
    """
    Sensitivity to the parameters of a single curve.

    Attributes:
        curve_name: Name of the curve
        currency: Currency of the sensitivity amounts
        sensitivity: One amount per curve parameter
        parameter_metadata: Optional per-parameter metadata (same length)
    """
    curve_name: str
    currency: str
    sensitivity: np.ndarray
    parameter_metadata: Tuple[ParameterMetadata, ...] = field(default_factory=tuple)

    def __post_init__(self):
        values = np.array(self.sensitivity, dtype=np.float64)
        values.setflags(write=False)
        object.__setattr__(self, "sensitivity", values)
        object.__setattr__(self, "parameter_metadata", tuple(self.parameter_metadata))
        if self.parameter_metadata and len(self.parameter_metadata) != len(values):
            raise ValueError(
                f"Sensitivity to {self.curve_name} has {len(values)} amounts but "
                f"{len(self.parameter_metadata)} parameter metadata entries"
            )

    @property
    def key(self) -> Tuple[str, str]:
        return self.curve_name, self.currency

    @property
    def parameter_count(self) -> int:
        return len(self.sensitivity)

    def multiplied_by(self, factor: float) -> "CurveParameterSensitivity":
        return CurveParameterSensitivity(
            self.curve_name, self.currency, self.sensitivity * factor, self.parameter_metadata
        )

    def plus(self, other: "CurveParameterSensitivity") -> "CurveParameterSensitivity":
        """Sum with a sensitivity to the same curve in the same currency."""
        if other.key != self.key:
            raise ValueError(f"Cannot add sensitivity {other.key} to {self.key}")
        if other.parameter_count != self.parameter_count:
            raise ValueError(
                f"Sensitivity sizes differ for {self.curve_name}: "
                f"{self.parameter_count} and {other.parameter_count}"
            )
        return CurveParameterSensitivity(
            self.curve_name,
            self.currency,
            self.sensitivity + other.sensitivity,
            self.parameter_metadata or other.parameter_metadata
        )

    def total(self) -> float:
        return float(np.sum(self.sensitivity))

    def __eq__(self, other) -> bool:
        if not isinstance(other, CurveParameterSensitivity):
            return NotImplemented
        return (self.key == other.key
                and self.parameter_metadata == other.parameter_metadata
                and np.array_equal(self.sensitivity, other.sensitivity))

    def __hash__(self) -> int:
        return hash((self.key, self.sensitivity.tobytes()))


class CurveParameterSensitivities:
    """
    Collection of curve parameter sensitivities.

    Entries are unique per (curve name, currency) and keep insertion order.
    """

    def __init__(self, sensitivities: Sequence[CurveParameterSensitivity] = ()):
        merged: Dict[Tuple[str, str], CurveParameterSensitivity] = {}
        for sensi in sensitivities:
            if sensi.key in merged:
                merged[sensi.key] = merged[sensi.key].plus(sensi)
            else:
                merged[sensi.key] = sensi
        self._sensitivities = merged

    @classmethod
    def empty(cls) -> "CurveParameterSensitivities":
        return cls()

    @classmethod
    def of(cls, *sensitivities: CurveParameterSensitivity) -> "CurveParameterSensitivities":
        return cls(sensitivities)

    @property
    def sensitivities(self) -> List[CurveParameterSensitivity]:
        return list(self._sensitivities.values())

    def size(self) -> int:
        return len(self._sensitivities)

    def __len__(self) -> int:
        return len(self._sensitivities)

    def __iter__(self) -> Iterator[CurveParameterSensitivity]:
        return iter(self._sensitivities.values())

    def find_sensitivity(self, curve_name: str, currency: str) -> Optional[CurveParameterSensitivity]:
        return self._sensitivities.get((curve_name, currency))

    def get_sensitivity(self, curve_name: str, currency: str) -> CurveParameterSensitivity:
        """
        Get the sensitivity to a curve in a currency.

        Raises:
            ValueError: If there is no such sensitivity
        """
        sensi = self.find_sensitivity(curve_name, currency)
        if sensi is None:
            raise ValueError(f"Unable to find sensitivity: {curve_name} for {currency}")
        return sensi

    def combined_with(self, other) -> "CurveParameterSensitivities":
        """
        Combine with another collection or a single sensitivity.

        Entries with the same (curve name, currency) are summed.
        """
        if isinstance(other, CurveParameterSensitivity):
            other = [other]
        return CurveParameterSensitivities(self.sensitivities + list(other))

    def multiplied_by(self, factor: float) -> "CurveParameterSensitivities":
        return CurveParameterSensitivities([s.multiplied_by(factor) for s in self])

    def total(self) -> Dict[str, float]:
        """Sum of all amounts, per currency."""
        totals: Dict[str, float] = {}
        for sensi in self:
            totals[sensi.currency] = totals.get(sensi.currency, 0.0) + sensi.total()
        return totals

    def equal_with_tolerance(self, other: "CurveParameterSensitivities", tolerance: float) -> bool:
        """True when both hold the same keys and amounts differ by at most tolerance."""
        if set(self._sensitivities) != set(other._sensitivities):
            return False
        for key, sensi in self._sensitivities.items():
            theirs = other._sensitivities[key]
            if sensi.parameter_count != theirs.parameter_count:
                return False
            if np.any(np.abs(sensi.sensitivity - theirs.sensitivity) > tolerance):
                return False
        return True

    def to_dataframe(self) -> pd.DataFrame:
        """
        Flatten to a table.

        Returns:
            DataFrame with columns curve_name, currency, index, label, sensitivity
        """
        rows = []
        for sensi in self:
            for i, amount in enumerate(sensi.sensitivity):
                label = sensi.parameter_metadata[i].label if sensi.parameter_metadata else str(i)
                rows.append({
                    "curve_name": sensi.curve_name,
                    "currency": sensi.currency,
                    "index": i,
                    "label": label,
                    "sensitivity": float(amount),
                })
        return pd.DataFrame(rows, columns=["curve_name", "currency", "index", "label", "sensitivity"])

    def __repr__(self) -> str:
        keys = ", ".join(f"{name}/{ccy}" for name, ccy in self._sensitivities)
        return f"CurveParameterSensitivities([{keys}])"


__all__ = [
    "CurrencyAmount",
    "CurveParameterSensitivity",
    "CurveParameterSensitivities",
]

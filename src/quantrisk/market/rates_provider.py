"""
Immutable rates market data snapshot.

An ImmutableRatesProvider bundles, for a single valuation date:
- One discount curve per currency
- One forward curve per Ibor index (e.g. "USD-LIBOR-3M")
- One forward curve per overnight index (e.g. "USD-FED-FUND")

Design principles:
- Immutable after construction; every ``with_*`` method returns a new
  snapshot and leaves the original untouched
- The same curve object may back several entries (single-curve setups)
- No pricing logic lives here beyond discount factor and forward lookups
"""

from dataclasses import dataclass, field, replace
from datetime import date
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Tuple, Union

from ..conventions import year_fraction
from ..curves.curve import Curve


def _freeze(name: str, curves: Mapping[str, Curve]) -> Mapping[str, Curve]:
    for key, curve in curves.items():
        if not isinstance(curve, Curve):
            raise TypeError(f"{name}[{key!r}] must be a Curve, got {type(curve).__name__}")
    return MappingProxyType(dict(curves))


@dataclass(frozen=True)
class ImmutableRatesProvider:
    """
    Rates provider snapshot valid for exactly one valuation date.

    Attributes:
        valuation_date: Market valuation date
        discount_curves: Discount curve keyed by currency code
        ibor_index_curves: Forward curve keyed by Ibor index name
        overnight_index_curves: Forward curve keyed by overnight index name
    """
    valuation_date: date
    discount_curves: Mapping[str, Curve] = field(default_factory=dict)
    ibor_index_curves: Mapping[str, Curve] = field(default_factory=dict)
    overnight_index_curves: Mapping[str, Curve] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "discount_curves", _freeze("discount_curves", self.discount_curves))
        object.__setattr__(self, "ibor_index_curves", _freeze("ibor_index_curves", self.ibor_index_curves))
        object.__setattr__(
            self, "overnight_index_curves", _freeze("overnight_index_curves", self.overnight_index_curves)
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def discount_curve(self, currency: str) -> Curve:
        """Discount curve for a currency."""
        try:
            return self.discount_curves[currency]
        except KeyError:
            raise ValueError(f"Unable to find discount curve for currency: {currency}") from None

    def index_curve(self, index: str) -> Curve:
        """Forward curve for an Ibor or overnight index."""
        if index in self.ibor_index_curves:
            return self.ibor_index_curves[index]
        if index in self.overnight_index_curves:
            return self.overnight_index_curves[index]
        raise ValueError(f"Unable to find forward curve for index: {index}")

    def discount_factor(self, currency: str, t: Union[float, date]) -> float:
        """Discount factor in a currency at a year fraction or date."""
        curve = self.discount_curve(currency)
        if isinstance(t, date):
            t = self._time(curve, t)
        return curve.discount_factor(t)

    def zero_rate(self, currency: str, t: Union[float, date]) -> float:
        """Continuously compounded discount zero rate in a currency."""
        curve = self.discount_curve(currency)
        if isinstance(t, date):
            t = self._time(curve, t)
        return curve.zero_rate(t)

    def forward_rate(self, index: str, t1: Union[float, date], t2: Union[float, date]) -> float:
        """Simply compounded forward rate of an index between two times or dates."""
        curve = self.index_curve(index)
        if isinstance(t1, date):
            t1 = self._time(curve, t1)
        if isinstance(t2, date):
            t2 = self._time(curve, t2)
        return curve.forward_rate(t1, t2)

    def _time(self, curve: Curve, d: date) -> float:
        return year_fraction(self.valuation_date, d, curve.day_count)

    def curve_entries(self) -> Iterator[Tuple[str, str, Curve]]:
        """
        Iterate over every curve entry.

        Yields:
            (group, key, curve) with group one of "discount", "ibor", "overnight"
        """
        for key, curve in self.discount_curves.items():
            yield "discount", key, curve
        for key, curve in self.ibor_index_curves.items():
            yield "ibor", key, curve
        for key, curve in self.overnight_index_curves.items():
            yield "overnight", key, curve

    def curves(self) -> List[Curve]:
        """Distinct curves held by the snapshot, in entry order."""
        seen: Dict[int, Curve] = {}
        for _, _, curve in self.curve_entries():
            seen.setdefault(id(curve), curve)
        return list(seen.values())

    # ------------------------------------------------------------------
    # New snapshots
    # ------------------------------------------------------------------

    def with_discount_curve(self, currency: str, curve: Curve) -> "ImmutableRatesProvider":
        """New snapshot with the discount curve of one currency replaced."""
        curves = dict(self.discount_curves)
        curves[currency] = curve
        return replace(self, discount_curves=curves)

    def with_ibor_index_curve(self, index: str, curve: Curve) -> "ImmutableRatesProvider":
        """New snapshot with the forward curve of one Ibor index replaced."""
        curves = dict(self.ibor_index_curves)
        curves[index] = curve
        return replace(self, ibor_index_curves=curves)

    def with_overnight_index_curve(self, index: str, curve: Curve) -> "ImmutableRatesProvider":
        """New snapshot with the forward curve of one overnight index replaced."""
        curves = dict(self.overnight_index_curves)
        curves[index] = curve
        return replace(self, overnight_index_curves=curves)

    def with_curve(self, group: str, key: str, curve: Curve) -> "ImmutableRatesProvider":
        """New snapshot with the entry (group, key) replaced; see ``curve_entries``."""
        if group == "discount":
            return self.with_discount_curve(key, curve)
        if group == "ibor":
            return self.with_ibor_index_curve(key, curve)
        if group == "overnight":
            return self.with_overnight_index_curve(key, curve)
        raise ValueError(f"Unknown curve group: {group}")

    def combined_with(self, other: "ImmutableRatesProvider") -> "ImmutableRatesProvider":
        """
        Merge two snapshots.

        Args:
            other: Snapshot to merge in

        Returns:
            Snapshot holding the curves of both

        Raises:
            ValueError: If valuation dates differ or an entry appears in both
        """
        if self.valuation_date != other.valuation_date:
            raise ValueError(
                f"Valuation dates do not match: {self.valuation_date} and {other.valuation_date}"
            )

        def merge(name: str, left: Mapping[str, Curve], right: Mapping[str, Curve]) -> Dict[str, Curve]:
            overlap = set(left) & set(right)
            if overlap:
                raise ValueError(f"Duplicate {name} entries: {sorted(overlap)}")
            merged = dict(left)
            merged.update(right)
            return merged

        return ImmutableRatesProvider(
            valuation_date=self.valuation_date,
            discount_curves=merge("discount", self.discount_curves, other.discount_curves),
            ibor_index_curves=merge("ibor index", self.ibor_index_curves, other.ibor_index_curves),
            overnight_index_curves=merge(
                "overnight index", self.overnight_index_curves, other.overnight_index_curves
            ),
        )


__all__ = [
    "ImmutableRatesProvider",
]

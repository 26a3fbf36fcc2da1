"""
Curve and curve-parameter metadata.

Each curve parameter (node) can carry a label and, optionally, the date or
tenor it represents. Dates and tenors are what allow sensitivities to be
re-bucketed onto a different date grid.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Tuple

from ..conventions import DayCount
from ..dates import DateUtils


@dataclass(frozen=True)
class ParameterMetadata:
    """Metadata for a single curve parameter identified by a label only."""
    label: str


@dataclass(frozen=True)
class DatedParameterMetadata(ParameterMetadata):
    """Parameter metadata for a node pinned to a date."""
    date: date

    @classmethod
    def of(cls, d: date, label: Optional[str] = None) -> "DatedParameterMetadata":
        return cls(label=label if label is not None else d.isoformat(), date=d)


@dataclass(frozen=True)
class TenorParameterMetadata(ParameterMetadata):
    """Parameter metadata for a node defined by a tenor from the valuation date."""
    tenor: str

    @classmethod
    def of(cls, tenor: str, label: Optional[str] = None) -> "TenorParameterMetadata":
        DateUtils.parse_tenor(tenor)
        return cls(label=label if label is not None else tenor.upper(), tenor=tenor.upper())

    def resolve_date(self, base_date: date) -> date:
        """Date of the node given the date the curve is valid for."""
        return DateUtils.add_tenor(base_date, self.tenor)


@dataclass(frozen=True)
class CurveMetadata:
    """
    Curve level metadata.

    Attributes:
        name: Curve name, the key sensitivities are aggregated under
        day_count: Day count used to turn dates into curve times
        parameter_metadata: Optional per-node metadata, one entry per parameter
    """
    name: str
    day_count: DayCount = DayCount.ACT_365
    parameter_metadata: Tuple[ParameterMetadata, ...] = field(default_factory=tuple)

    def with_parameter_metadata(self, metadata) -> "CurveMetadata":
        return CurveMetadata(self.name, self.day_count, tuple(metadata))


__all__ = [
    "ParameterMetadata",
    "DatedParameterMetadata",
    "TenorParameterMetadata",
    "CurveMetadata",
]

"""
Utilities on curve parameter sensitivities.

Provides:
- Inverse Jacobian of curve parameters to market quotes, from the market
  quote sensitivities of the calibration instruments
- Linear re-bucketing of sensitivities onto a target date grid
"""

from datetime import date
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

import numpy as np
from scipy import linalg

from ..curves.metadata import DatedParameterMetadata, ParameterMetadata, TenorParameterMetadata
from .sensitivity import CurveParameterSensitivities, CurveParameterSensitivity

T = TypeVar("T")

CurveParameterSize = Tuple[str, int]


class CurveSensitivityUtils:
    """Stateless helpers for Jacobians and sensitivity re-bucketing."""

    @staticmethod
    def jacobian_from_market_quote_sensitivities(
        curve_order: Sequence[CurveParameterSize],
        market_quote_sensitivities: Sequence[CurveParameterSensitivities]
    ) -> np.ndarray:
        """
        Inverse Jacobian from the market quote sensitivities of a set of instruments.

        Row i of the Jacobian is the sensitivity of the market quote of
        instrument i to every curve parameter, curves laid out in
        ``curve_order``. Curves missing from a sensitivity contribute zeros.
        All sensitivities are read in the currency of the first one.

        Args:
            curve_order: (curve name, parameter count) pairs, in matrix order
            market_quote_sensitivities: One collection per instrument

        Returns:
            Inverse Jacobian: sensitivity of the curve parameters to the market quotes

        Raises:
            ValueError: If the matrix is not square or is singular
        """
        if not market_quote_sensitivities:
            raise ValueError("At least one market quote sensitivity is required")
        first = market_quote_sensitivities[0].sensitivities
        if not first:
            raise ValueError("First market quote sensitivity is empty; cannot infer currency")
        currency = first[0].currency

        jacobian = np.array([
            CurveSensitivityUtils._row(curve_order, sensi, currency)
            for sensi in market_quote_sensitivities
        ])
        n_rows, n_cols = jacobian.shape
        if n_rows != n_cols:
            raise ValueError(
                f"Jacobian must be square: {n_rows} instruments for {n_cols} curve parameters"
            )
        try:
            return linalg.inv(jacobian)
        except linalg.LinAlgError as exc:
            raise ValueError(f"Jacobian matrix is singular: {exc}") from exc

    @staticmethod
    def jacobian_from_trades(
        curve_order: Sequence[CurveParameterSize],
        trades: Sequence[T],
        sensitivity_function: Callable[[T], CurveParameterSensitivities]
    ) -> np.ndarray:
        """
        Inverse Jacobian from trades and a market quote sensitivity function.

        Args:
            curve_order: (curve name, parameter count) pairs, in matrix order
            trades: Calibration instruments, one per curve parameter
            sensitivity_function: Market quote sensitivity of a trade

        Returns:
            Inverse Jacobian
        """
        return CurveSensitivityUtils.jacobian_from_market_quote_sensitivities(
            curve_order, [sensitivity_function(trade) for trade in trades]
        )

    @staticmethod
    def _row(
        curve_order: Sequence[CurveParameterSize],
        sensitivities: CurveParameterSensitivities,
        currency: str
    ) -> np.ndarray:
        parts = []
        for name, parameter_count in curve_order:
            sensi = sensitivities.find_sensitivity(name, currency)
            if sensi is None:
                parts.append(np.zeros(parameter_count))
            else:
                if sensi.parameter_count != parameter_count:
                    raise ValueError(
                        f"Curve {name} has {sensi.parameter_count} sensitivities, "
                        f"expected {parameter_count}"
                    )
                parts.append(sensi.sensitivity)
        return np.concatenate(parts) if parts else np.zeros(0)

    @staticmethod
    def linear_rebucketing(
        sensitivities: CurveParameterSensitivities,
        target_dates: Sequence[date],
        sensitivity_date: Optional[date] = None
    ) -> CurveParameterSensitivities:
        """
        Re-bucket sensitivities onto a sorted list of dates.

        A node dated on or before the first target date goes to the first
        bucket and one on or after the last goes to the last bucket. A node
        between two target dates is split between them; the weight on the
        earlier one is the number of days from the node to the later target
        date over the number of days between the two targets.

        Node dates come from DatedParameterMetadata, or from
        TenorParameterMetadata added to ``sensitivity_date``.

        Args:
            sensitivities: Sensitivities with dated or tenor parameter metadata
            target_dates: Strictly increasing target dates
            sensitivity_date: Date the sensitivities are valid for (tenor metadata)

        Returns:
            Sensitivities with one amount per target date

        Raises:
            ValueError: If the target dates are not sorted or metadata is missing
            TypeError: If a node carries metadata that has no date
        """
        CurveSensitivityUtils.check_sorted_dates(target_dates)
        target_dates = list(target_dates)
        target_metadata = tuple(DatedParameterMetadata.of(d) for d in target_dates)

        result: List[CurveParameterSensitivity] = []
        for sensi in sensitivities:
            if not sensi.parameter_metadata:
                raise ValueError(f"Parameter metadata must be present to re-bucket {sensi.curve_name}")
            amounts = np.zeros(len(target_dates))
            for metadata, amount in zip(sensi.parameter_metadata, sensi.sensitivity):
                node_date = CurveSensitivityUtils._node_date(metadata, sensitivity_date)
                CurveSensitivityUtils._rebucket(target_dates, amounts, float(amount), node_date)
            result.append(CurveParameterSensitivity(
                sensi.curve_name, sensi.currency, amounts, target_metadata
            ))
        return CurveParameterSensitivities(result)

    @staticmethod
    def _node_date(metadata: ParameterMetadata, sensitivity_date: Optional[date]) -> date:
        if isinstance(metadata, DatedParameterMetadata):
            return metadata.date
        if isinstance(metadata, TenorParameterMetadata):
            if sensitivity_date is None:
                raise TypeError(
                    f"Node {metadata.label} has tenor metadata; a sensitivity date is required"
                )
            return metadata.resolve_date(sensitivity_date)
        raise TypeError(
            f"Re-bucketing requires a dated node; {metadata.label} is {type(metadata).__name__}"
        )

    @staticmethod
    def _rebucket(target_dates: List[date], amounts: np.ndarray, amount: float, node_date: date) -> None:
        # Adds into amounts in place
        last = len(target_dates) - 1
        if node_date <= target_dates[0]:
            amounts[0] += amount
        elif node_date >= target_dates[last]:
            amounts[last] += amount
        else:
            idx = 1
            while node_date > target_dates[idx]:
                idx += 1
            interval = (target_dates[idx] - target_dates[idx - 1]).days
            weight = (target_dates[idx] - node_date).days / interval
            amounts[idx - 1] += weight * amount
            amounts[idx] += (1.0 - weight) * amount

    @staticmethod
    def check_sorted_dates(dates: Sequence[date]) -> None:
        """
        Check that dates are strictly increasing.

        Raises:
            ValueError: If the list is empty or not strictly increasing
        """
        if len(dates) == 0:
            raise ValueError("Target dates must not be empty")
        for first, following in zip(dates[:-1], dates[1:]):
            if not first < following:
                raise ValueError(f"Dates must be strictly increasing: {first} then {following}")


__all__ = [
    "CurveSensitivityUtils",
]

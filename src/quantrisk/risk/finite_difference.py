"""
Curve parameter sensitivity by finite difference.

Every curve entry of an ImmutableRatesProvider (discount curves, then Ibor
and overnight forward curves) is bumped one parameter at a time by an
absolute shift, the valuation function is re-run on the bumped snapshot,
and the forward difference (bumped - base) / shift is recorded.

Each bump produces an independent snapshot, so revaluations can run on a
thread pool. The result is the same as the sequential run because the
sensitivity vector is filled by parameter index.
"""

from concurrent.futures import ThreadPoolExecutor
import logging
from typing import Callable, List, Optional, Tuple, Union

import numpy as np

from ..config import FiniteDifferenceConfig
from ..curves.curve import InterpolatedNodalCurve
from ..market.rates_provider import ImmutableRatesProvider
from .bumping import BumpEngine, PointShift
from .sensitivity import CurrencyAmount, CurveParameterSensitivities, CurveParameterSensitivity

logger = logging.getLogger(__name__)

ValuationFunction = Callable[[ImmutableRatesProvider], Union[CurrencyAmount, float]]


class RatesFiniteDifferenceSensitivityCalculator:
    """
    Forward finite-difference calculator for curve parameter sensitivities.

    All curves of the snapshot must be nodal (InterpolatedNodalCurve);
    otherwise ``TypeError`` is raised before any revaluation.

    Attributes:
        shift: Absolute shift applied to each zero rate (default 1bp)
        max_workers: Thread pool size for revaluations; None runs sequentially
    """

    DEFAULT_SHIFT = 1.0e-4

    def __init__(self, shift: float = DEFAULT_SHIFT, max_workers: Optional[int] = None):
        if shift == 0.0:
            raise ValueError("Finite difference shift must be non-zero")
        if max_workers is not None and max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {max_workers}")
        self.shift = shift
        self.max_workers = max_workers

    @classmethod
    def from_config(cls, config: FiniteDifferenceConfig) -> "RatesFiniteDifferenceSensitivityCalculator":
        return cls(shift=config.shift, max_workers=config.max_workers)

    def sensitivity(
        self,
        provider: ImmutableRatesProvider,
        value_fn: ValuationFunction,
        currency: Optional[str] = None
    ) -> CurveParameterSensitivities:
        """
        Compute the first order sensitivities of a valuation to every curve parameter.

        Args:
            provider: The base snapshot
            value_fn: Function from a snapshot to a CurrencyAmount (or a float,
                in which case ``currency`` must be given)
            currency: Currency for float-valued functions

        Returns:
            Sensitivities keyed by (curve name, currency); entries for the same
            curve used in several roles are summed
        """
        base = self._evaluate(value_fn, provider, currency)
        engine = BumpEngine(provider)
        tasks = list(engine.point_bumps(self.shift))

        def revalue(task: Tuple[str, str, InterpolatedNodalCurve, int]) -> float:
            group, key, curve, index = task
            logger.debug("Bumping %s/%s (%s) parameter %d", group, key, curve.name, index)
            bumped = provider.with_curve(group, key, PointShift.absolute(index, self.shift)(curve))
            return self._evaluate(value_fn, bumped, base.currency).amount

        if self.max_workers is None or self.max_workers == 1:
            bumped_amounts = [revalue(task) for task in tasks]
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                bumped_amounts = list(executor.map(revalue, tasks))

        result: List[CurveParameterSensitivity] = []
        position = 0
        for group, key, curve in provider.curve_entries():
            size = curve.parameter_count
            amounts = np.array(bumped_amounts[position:position + size])
            position += size
            result.append(CurveParameterSensitivity(
                curve.name,
                base.currency,
                (amounts - base.amount) / self.shift,
                curve.metadata.parameter_metadata
            ))

        sensitivities = CurveParameterSensitivities(result)
        logger.info(
            "Finite difference sensitivity: %d curve entries, %d revaluations",
            len(result), len(tasks)
        )
        return sensitivities

    @staticmethod
    def _evaluate(
        value_fn: ValuationFunction,
        provider: ImmutableRatesProvider,
        currency: Optional[str]
    ) -> CurrencyAmount:
        value = value_fn(provider)
        if isinstance(value, CurrencyAmount):
            if currency is not None and value.currency != currency:
                raise ValueError(
                    f"Valuation function returned {value.currency}, expected {currency}"
                )
            return value
        if currency is None:
            raise ValueError("Valuation function returned a float; a currency must be supplied")
        return CurrencyAmount(currency, float(value))


__all__ = [
    "RatesFiniteDifferenceSensitivityCalculator",
]

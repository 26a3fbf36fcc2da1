"""
Dupire local volatility.

Local volatility at (t, k) follows from the derivatives of the call price
surface, or of the implied volatility surface, at that point. The
derivatives are taken by finite difference, and the same differences are
applied to the parameter sensitivity vector of the input surface, so the
result carries the sensitivity of the local volatility to every input
surface parameter.

Nothing is precomputed: the calculator returns a DupireLocalVolatilitySurface
that evaluates the formula on each query.
"""

from enum import Enum
import logging
from typing import Callable

import numpy as np

from ...config import DupireConfig
from ...exceptions import NegativeVarianceError
from ...numerics.differentiation import (
    ScalarFirstOrderDifferentiator,
    ScalarSecondOrderDifferentiator,
    VectorFieldFirstOrderDifferentiator,
    VectorFieldSecondOrderDifferentiator,
)
from ...surfaces.surface import Surface, ValueDerivatives
from .base import LocalVolatilityCalculator, RateFunction, as_rate_function

logger = logging.getLogger(__name__)


class SurfaceQuote(Enum):
    """What the input surface of a Dupire calculation quotes."""
    PRICE = "price"
    IMPLIED_VOLATILITY = "implied_volatility"


def _non_negative_time(t: float) -> bool:
    return t >= 0.0


class DupireLocalVolatilitySurface(Surface):
    """
    Local volatility surface evaluated on demand from a source surface.

    Attributes:
        source: Call price or implied volatility surface
        quote: What the source quotes
        spot: Spot price of the underlying
        interest_rate: Zero rate as a function of time
        dividend_rate: Dividend yield as a function of time
        eps: Finite difference step for time and strike derivatives
        small_strike: Strikes below this use the zero-strike limit (implied volatility only)
    """

    def __init__(
        self,
        source: Surface,
        quote: SurfaceQuote,
        spot: float,
        interest_rate: Callable[[float], float],
        dividend_rate: Callable[[float], float],
        eps: float = 1.0e-4,
        small_strike: float = 1.0e-10
    ):
        super().__init__("localVol_" + source.name)
        self.source = source
        self.quote = quote
        self.spot = spot
        self.interest_rate = interest_rate
        self.dividend_rate = dividend_rate
        self.eps = eps
        self.small_strike = small_strike
        self._first = ScalarFirstOrderDifferentiator(eps)
        self._second = ScalarSecondOrderDifferentiator(eps)
        self._first_sensi = VectorFieldFirstOrderDifferentiator(eps)
        self._second_sensi = VectorFieldSecondOrderDifferentiator(eps)

    @property
    def parameter_count(self) -> int:
        return self.source.parameter_count

    def value_at(self, x: float, y: float) -> float:
        return self.evaluate(x, y).value

    def parameter_sensitivity_at(self, x: float, y: float) -> np.ndarray:
        return self.evaluate(x, y).derivatives

    def evaluate(self, t: float, k: float) -> ValueDerivatives:
        """
        Local volatility at (t, k) and its sensitivity to the source parameters.

        Raises:
            NegativeVarianceError: If the local variance at (t, k) is negative
        """
        if self.quote is SurfaceQuote.PRICE:
            return self._from_price(t, k)
        return self._from_implied_volatility(t, k)

    def _time_derivative(self, t: float, k: float):
        source = self.source
        div_t = self._first.derivative(lambda u: source.value_at(u, k), t, _non_negative_time)
        div_t_sensi = self._first_sensi.derivative(
            lambda u: source.parameter_sensitivity_at(u, k), t, _non_negative_time
        )
        return div_t, div_t_sensi

    def _strike_derivatives(self, t: float, k: float):
        source = self.source
        div_k = self._first.derivative(lambda s: source.value_at(t, s), k)
        div_k_sensi = self._first_sensi.derivative(lambda s: source.parameter_sensitivity_at(t, s), k)
        div_k2 = self._second.derivative(lambda s: source.value_at(t, s), k)
        div_k2_sensi = self._second_sensi.derivative(lambda s: source.parameter_sensitivity_at(t, s), k)
        return div_k, div_k_sensi, div_k2, div_k2_sensi

    def _from_price(self, t: float, k: float) -> ValueDerivatives:
        r = self.interest_rate(t)
        q = self.dividend_rate(t)
        price = self.source.value_at(t, k)
        price_sensi = self.source.parameter_sensitivity_at(t, k)
        div_t, div_t_sensi = self._time_derivative(t, k)
        div_k, div_k_sensi, div_k2, div_k2_sensi = self._strike_derivatives(t, k)

        # var = 2 N / D, N = C_T + q C + (r - q) k C_K, D = k^2 C_KK
        numerator = div_t + q * price + (r - q) * k * div_k
        var = 2.0 * numerator / (k * k * div_k2)
        if var < 0.0 or not np.isfinite(var):
            raise NegativeVarianceError(t, k, var)
        local_vol = np.sqrt(var)

        factor = 1.0 / (local_vol * k * k * div_k2)
        sensi = (factor * (div_t_sensi + q * price_sensi + (r - q) * k * div_k_sensi)
                 - 0.5 * local_vol / div_k2 * div_k2_sensi)
        return ValueDerivatives(float(local_vol), sensi)

    def _from_implied_volatility(self, t: float, k: float) -> ValueDerivatives:
        r = self.interest_rate(t)
        q = self.dividend_rate(t)
        vol = self.source.value_at(t, k)
        vol_sensi = self.source.parameter_sensitivity_at(t, k)
        div_t, div_t_sensi = self._time_derivative(t, k)

        if k < self.small_strike:
            var = vol * vol + 2.0 * vol * t * div_t
            if var < 0.0:
                raise NegativeVarianceError(t, k, var)
            local_vol = np.sqrt(var)
            sensi = (vol + t * div_t) / local_vol * vol_sensi + vol * t / local_vol * div_t_sensi
            return ValueDerivatives(float(local_vol), sensi)

        div_k, div_k_sensi, div_k2, div_k2_sensi = self._strike_derivatives(t, k)
        rq = r - q
        h1 = (np.log(self.spot / k) + (rq + 0.5 * vol * vol) * t) / vol
        h2 = h1 - vol * t
        den = 1.0 + 2.0 * h1 * k * div_k + k * k * (h1 * h2 * div_k * div_k + t * vol * div_k2)
        numerator = vol * vol + 2.0 * vol * t * (div_t + k * rq * div_k)
        var = numerator / den
        if var < 0.0 or not np.isfinite(var):
            raise NegativeVarianceError(t, k, var)
        local_vol = np.sqrt(var)

        # Partial derivatives of numerator and denominator
        dh1_dvol = -h1 / vol + t
        dh2_dvol = -h1 / vol
        dnum_dvol = 2.0 * vol + 2.0 * t * (div_t + k * rq * div_k)
        dnum_ddiv_t = 2.0 * vol * t
        dnum_ddiv_k = 2.0 * vol * t * k * rq
        dden_dvol = (2.0 * k * div_k * dh1_dvol
                     + k * k * (div_k * div_k * (dh1_dvol * h2 + h1 * dh2_dvol) + t * div_k2))
        dden_ddiv_k = 2.0 * h1 * k + 2.0 * k * k * h1 * h2 * div_k
        dden_ddiv_k2 = k * k * t * vol

        scale = 1.0 / (2.0 * local_vol * den)
        sensi = scale * ((dnum_dvol - var * dden_dvol) * vol_sensi
                         + dnum_ddiv_t * div_t_sensi
                         + (dnum_ddiv_k - var * dden_ddiv_k) * div_k_sensi
                         - var * dden_ddiv_k2 * div_k2_sensi)
        return ValueDerivatives(float(local_vol), sensi)

    def __repr__(self) -> str:
        return (f"DupireLocalVolatilitySurface(source={self.source.name}, quote={self.quote.value}, "
                f"spot={self.spot}, eps={self.eps})")


class DupireLocalVolatilityCalculator(LocalVolatilityCalculator):
    """
    Local volatility by Dupire's formula.

    Attributes:
        eps: Finite difference step (default 1e-4)
        small_strike: Strike threshold of the zero-strike limit (default 1e-10)
    """

    def __init__(self, eps: float = 1.0e-4, small_strike: float = 1.0e-10):
        if eps <= 0:
            raise ValueError(f"eps must be positive, got {eps}")
        self.eps = eps
        self.small_strike = small_strike

    @classmethod
    def from_config(cls, config: DupireConfig) -> "DupireLocalVolatilityCalculator":
        return cls(eps=config.eps, small_strike=config.small_strike)

    def local_volatility_from_price(
        self,
        call_price_surface: Surface,
        spot: float,
        interest_rate: RateFunction,
        dividend_rate: RateFunction
    ) -> DupireLocalVolatilitySurface:
        logger.debug("Dupire local volatility from price surface %s", call_price_surface.name)
        return DupireLocalVolatilitySurface(
            call_price_surface, SurfaceQuote.PRICE, spot,
            as_rate_function(interest_rate), as_rate_function(dividend_rate),
            self.eps, self.small_strike
        )

    def local_volatility_from_implied_volatility(
        self,
        implied_volatility_surface: Surface,
        spot: float,
        interest_rate: RateFunction,
        dividend_rate: RateFunction
    ) -> DupireLocalVolatilitySurface:
        logger.debug("Dupire local volatility from implied volatility surface %s",
                     implied_volatility_surface.name)
        return DupireLocalVolatilitySurface(
            implied_volatility_surface, SurfaceQuote.IMPLIED_VOLATILITY, spot,
            as_rate_function(interest_rate), as_rate_function(dividend_rate),
            self.eps, self.small_strike
        )


__all__ = [
    "SurfaceQuote",
    "DupireLocalVolatilitySurface",
    "DupireLocalVolatilityCalculator",
]

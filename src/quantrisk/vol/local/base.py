"""
Local volatility calculator interface.

A calculator turns an implied volatility surface, or a call price surface,
into a local volatility surface. Both surfaces are indexed by time to
expiry and strike. Interest and dividend rates are deterministic
functions of time returning continuously compounded zero rates.
"""

from abc import ABC, abstractmethod
from typing import Callable, Union

from ...curves.curve import Curve
from ...surfaces.surface import Surface

RateFunction = Union[Callable[[float], float], Curve]


def as_rate_function(rate: RateFunction) -> Callable[[float], float]:
    """
    Accept a curve or a plain function of time.

    A constant (int or float) is also accepted, for a flat rate.
    """
    if isinstance(rate, Curve):
        return rate.zero_rate
    if isinstance(rate, (int, float)):
        value = float(rate)
        return lambda t: value
    if not callable(rate):
        raise TypeError(f"Rate must be a Curve, a number or a function of time, got {type(rate).__name__}")
    return rate


class LocalVolatilityCalculator(ABC):
    """Abstract base class for local volatility calculators."""

    @abstractmethod
    def local_volatility_from_implied_volatility(
        self,
        implied_volatility_surface: Surface,
        spot: float,
        interest_rate: RateFunction,
        dividend_rate: RateFunction
    ) -> Surface:
        """
        Compute local volatility from implied volatility.

        Args:
            implied_volatility_surface: Implied volatility by (time, strike)
            spot: Spot price of the underlying
            interest_rate: Zero rate as a function of time
            dividend_rate: Continuous dividend yield as a function of time

        Returns:
            Local volatility surface by (time, strike)
        """

    @abstractmethod
    def local_volatility_from_price(
        self,
        call_price_surface: Surface,
        spot: float,
        interest_rate: RateFunction,
        dividend_rate: RateFunction
    ) -> Surface:
        """
        Compute local volatility from European call prices.

        Args:
            call_price_surface: Call price by (time, strike)
            spot: Spot price of the underlying
            interest_rate: Zero rate as a function of time
            dividend_rate: Continuous dividend yield as a function of time

        Returns:
            Local volatility surface by (time, strike)
        """


__all__ = [
    "LocalVolatilityCalculator",
    "RateFunction",
    "as_rate_function",
]

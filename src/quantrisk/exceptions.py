"""
Exception types for conditions that are not caller configuration errors.

Configuration and argument problems raise ``ValueError`` and curves that
cannot be bumped point by point raise ``TypeError``, as elsewhere in the
library. The classes here describe properties of the *input market data*.
"""

from typing import Optional


class NegativeVarianceError(ArithmeticError):
    """
    Local variance computed at a point is negative.

    Raised by the local volatility calculators when the input price or
    implied volatility surface is not arbitrage-free around the point.

    Attributes:
        time: Time of the offending point (year fraction)
        strike: Strike or asset level of the offending point
        variance: The negative variance that was computed, or nan when the
            surface admits no transition density at the point
    """

    def __init__(
        self,
        time: float,
        strike: float,
        variance: float,
        message: Optional[str] = None
    ):
        self.time = time
        self.strike = strike
        self.variance = variance
        if message is None:
            message = (f"Negative variance {variance:.6g} at time={time:.6g}, "
                       f"strike={strike:.6g}")
        super().__init__(message)


__all__ = [
    "NegativeVarianceError",
]

"""
Options module - closed-form equity option models.

Provides:
- Black-Scholes with cost of carry
- Black'76 call/put and vega
- Black implied volatility
"""

from .black_scholes import (
    black_scholes_price,
    black76_call,
    black76_put,
    black76_vega,
    implied_vol_black,
)

__all__ = [
    "black_scholes_price",
    "black76_call",
    "black76_put",
    "black76_vega",
    "implied_vol_black",
]

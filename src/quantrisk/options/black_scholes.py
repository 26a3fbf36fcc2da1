"""
Closed-form equity option models.

Implements:
- Black-Scholes price with a cost of carry (spot, dividend yield)
- Black'76 price on a forward
- Black implied volatility from an undiscounted price

The trinomial tree calibration falls back on the Black-Scholes price when a
lattice price degenerates, and reads the reference volatility of a price
surface through the Black implied volatility.
"""

import numpy as np
from scipy.optimize import brentq
from scipy.stats import norm


# Standard normal CDF and PDF
N = norm.cdf
n = norm.pdf


def black_scholes_price(
    spot: float,
    strike: float,
    T: float,
    vol: float,
    r: float,
    cost_of_carry: float,
    is_call: bool = True
) -> float:
    """
    Black-Scholes option price with a cost of carry.

    For an equity with continuous dividend yield q, cost_of_carry = r - q.

    Args:
        spot: Spot price
        strike: Strike
        T: Time to expiry (years)
        vol: Lognormal volatility
        r: Continuously compounded interest rate
        cost_of_carry: Drift of the underlying under the pricing measure
        is_call: True for call, False for put

    Returns:
        Option price
    """
    df = np.exp(-r * T)
    forward = spot * np.exp(cost_of_carry * T)
    if is_call:
        return black76_call(forward, strike, T, vol, df)
    return black76_put(forward, strike, T, vol, df)


def _d1_d2(F: float, K: float, T: float, sigma: float):
    sqrt_t = np.sqrt(T)
    d1 = (np.log(F / K) + 0.5 * sigma**2 * T) / (sigma * sqrt_t)
    return d1, d1 - sigma * sqrt_t


def black76_call(
    F: float,
    K: float,
    T: float,
    sigma_b: float,
    df: float = 1.0
) -> float:
    """
    Black'76 call price.

    Args:
        F: Forward
        K: Strike
        T: Time to expiry
        sigma_b: Black (lognormal) volatility
        df: Discount factor

    Returns:
        Call option price
    """
    if T <= 0 or sigma_b <= 0:
        return max(F - K, 0.0) * df
    if F <= 0 or K <= 0:
        raise ValueError("Forward and strike must be positive for Black model")

    d1, d2 = _d1_d2(F, K, T, sigma_b)
    return float(df * (F * N(d1) - K * N(d2)))


def black76_put(
    F: float,
    K: float,
    T: float,
    sigma_b: float,
    df: float = 1.0
) -> float:
    """Black'76 put price; arguments as for black76_call."""
    if T <= 0 or sigma_b <= 0:
        return max(K - F, 0.0) * df
    if F <= 0 or K <= 0:
        raise ValueError("Forward and strike must be positive for Black model")

    d1, d2 = _d1_d2(F, K, T, sigma_b)
    return float(df * (K * N(-d2) - F * N(-d1)))


def black76_vega(F: float, K: float, T: float, sigma_b: float, df: float = 1.0) -> float:
    """Sensitivity of the Black'76 price to the volatility."""
    if T <= 0 or sigma_b <= 0:
        return 0.0
    d1, _ = _d1_d2(F, K, T, sigma_b)
    return float(df * F * np.sqrt(T) * n(d1))


def implied_vol_black(
    price: float,
    F: float,
    K: float,
    T: float,
    df: float = 1.0,
    is_call: bool = True,
    vol_bounds: tuple = (1e-6, 5.0),
    tol: float = 1e-12
) -> float:
    """
    Compute implied Black volatility from an option price.

    Uses Brent's method on the price difference, which is monotone in
    the volatility.

    Args:
        price: Option price
        F: Forward
        K: Strike
        T: Time to expiry
        df: Discount factor applied to the price
        is_call: True for call, False for put
        vol_bounds: Search interval for the volatility
        tol: Absolute tolerance on the volatility

    Returns:
        Implied Black volatility

    Raises:
        ValueError: If the price is outside the no-arbitrage bounds
    """
    if T <= 0:
        raise ValueError("Cannot compute implied vol for expired option")
    if F <= 0 or K <= 0:
        raise ValueError("Forward and strike must be positive")

    pricer = black76_call if is_call else black76_put
    intrinsic = max(F - K, 0.0) * df if is_call else max(K - F, 0.0) * df
    upper = F * df if is_call else K * df
    if price <= intrinsic or price >= upper:
        raise ValueError(
            f"Price {price} outside no-arbitrage bounds ({intrinsic}, {upper}) for strike {K}"
        )

    low, high = vol_bounds
    return float(brentq(lambda s: pricer(F, K, T, s, df) - price, low, high, xtol=tol))


__all__ = [
    "black_scholes_price",
    "black76_call",
    "black76_put",
    "black76_vega",
    "implied_vol_black",
]

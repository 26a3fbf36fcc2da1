"""
Local volatility from an implied trinomial tree.

Implements the Derman-Kani-Chriss construction ("Implied Trinomial Trees
of the Volatility Smile", 1996):

1. Lay a uniform Cox-Ross-Rubinstein grid over [0, max_time], with the
   space step set by the volatility at (max_time, spot).
2. Going backwards from the last layer, price at every node a European
   call (upper half) or put (lower half) struck at the node's asset level
   and expiring at the layer's time.
3. Strip Arrow-Debreu prices out of these option prices.
4. Solve for the transition probabilities that reprice the next layer's
   Arrow-Debreu prices and match the forward; infeasible triples are
   replaced by the geometric correction of the paper.
5. Turn the probabilities into a local variance per node, smooth it
   across nodes and blend it with the layer above.

The result is an InterpolatedNodalSurface over (n_steps - 1)^2 + 1 nodes.
"""

import logging
from typing import Callable, Optional, Tuple

import numpy as np

from ...config import ImpliedTreeConfig
from ...curves.interpolation import GridInterpolator2D
from ...exceptions import NegativeVarianceError
from ...options.black_scholes import black_scholes_price, implied_vol_black
from ...surfaces.surface import InterpolatedNodalSurface, Surface
from ...tree.lattice import CoxRossRubinsteinLatticeSpecification
from ...tree.option_function import EuropeanVanillaOptionFunction, PutCall
from ...tree.trinomial_tree import TrinomialTree
from .base import LocalVolatilityCalculator, RateFunction, as_rate_function

logger = logging.getLogger(__name__)

# (i, time, asset prices, zero rate, zero dividend rate) -> (call prices, put prices)
LayerPricer = Callable[[int, float, np.ndarray, float, float], Tuple[np.ndarray, np.ndarray]]


def middle_probability(
    up_probability: float,
    forward_factor: float,
    asset_base: float,
    asset_down: float,
    asset_middle: float,
    asset_up: float
) -> float:
    """
    Middle probability matching the forward, given the up probability.

    Solves p_u * S_up + p_m * S_mid + (1 - p_u - p_m) * S_down = F
    with F = asset_base * forward_factor.
    """
    return ((forward_factor * asset_base - asset_down - up_probability * (asset_up - asset_down))
            / (asset_middle - asset_down))


def correct_probability(
    probability: np.ndarray,
    forward_factor: float,
    asset_base: float,
    asset_low: float,
    asset_mid: float,
    asset_high: float
) -> np.ndarray:
    """
    Replace an infeasible transition triple.

    Probabilities are ordered (down, middle, up). A triple with all
    components positive is returned unchanged. Otherwise up and down are
    set from the position of the forward F = asset_base * forward_factor
    between the three successor levels:

    - low < F <= mid: p_up = (F - low) / (high - low) / 2,
      p_down = ((high - F) / (high - low) + (mid - F) / (mid - low)) / 2
    - mid < F < high: p_up = ((F - mid) / (high - mid) + (F - low) / (high - low)) / 2,
      p_down = (high - F) / (high - low) / 2

    and p_mid = 1 - p_up - p_down.

    Raises:
        ValueError: If F is outside (low, high), where no valid triple exists,
            or if the corrected triple is still not in (0, 1)
    """
    probability = np.array(probability, dtype=np.float64)
    if np.all(probability > 0.0):
        return probability

    fwd = asset_base * forward_factor
    spread = asset_high - asset_low
    if asset_low < fwd <= asset_mid:
        p_up = 0.5 * (fwd - asset_low) / spread
        p_down = 0.5 * ((asset_high - fwd) / spread + (asset_mid - fwd) / (asset_mid - asset_low))
    elif asset_mid < fwd < asset_high:
        p_up = 0.5 * ((fwd - asset_mid) / (asset_high - asset_mid) + (fwd - asset_low) / spread)
        p_down = 0.5 * (asset_high - fwd) / spread
    else:
        raise ValueError(
            f"Forward {fwd:.6g} outside successor range ({asset_low:.6g}, {asset_high:.6g}); "
            "no valid transition probabilities"
        )
    corrected = np.array([p_down, 1.0 - p_up - p_down, p_up])
    if not np.all((corrected > 0.0) & (corrected < 1.0)):
        raise ValueError(f"Corrected probabilities are invalid: {corrected}")
    logger.debug("Corrected probabilities %s -> %s at asset %.6g", probability, corrected, asset_base)
    return corrected


class ImpliedTrinomialTreeLocalVolatilityCalculator(LocalVolatilityCalculator):
    """
    Local volatility calculator based on an implied trinomial tree.

    Attributes:
        n_steps: Number of time steps of the tree (at least 2)
        max_time: Time of the last layer; the time step is max_time / n_steps
        interpolator: 2-D interpolator of the resulting surface
    """

    def __init__(
        self,
        n_steps: int = 20,
        max_time: float = 3.0,
        interpolator: Optional[GridInterpolator2D] = None
    ):
        if n_steps < 2:
            raise ValueError(f"Number of steps must be at least 2, got {n_steps}")
        if max_time <= 0:
            raise ValueError(f"Maximum time must be positive, got {max_time}")
        self.n_steps = n_steps
        self.max_time = max_time
        self.interpolator = interpolator if interpolator is not None else GridInterpolator2D(
            "time_square", "linear"
        )
        self._tree = TrinomialTree()

    @classmethod
    def from_config(cls, config: ImpliedTreeConfig) -> "ImpliedTrinomialTreeLocalVolatilityCalculator":
        return cls(
            n_steps=config.n_steps,
            max_time=config.max_time,
            interpolator=GridInterpolator2D(config.time_interpolator, config.strike_interpolator)
        )

    def local_volatility_from_implied_volatility(
        self,
        implied_volatility_surface: Surface,
        spot: float,
        interest_rate: RateFunction,
        dividend_rate: RateFunction
    ) -> InterpolatedNodalSurface:
        surface = implied_volatility_surface
        volatility = surface.value_at(self.max_time, spot)

        def layer_prices(i, time, assets, zero_rate, zero_dividend):
            n_nodes = 2 * i + 1
            lattice = CoxRossRubinsteinLatticeSpecification(i)
            calls = np.full(n_nodes, np.nan)
            puts = np.full(n_nodes, np.nan)
            # Calls for nodes i-1 .. 2i-1, puts for nodes 1 .. i
            for j in range(i - 1, n_nodes - 1):
                calls[j] = self._option_price(lattice, PutCall.CALL, surface, spot, time,
                                              assets[j], zero_rate, zero_dividend)
            for j in range(1, i + 1):
                puts[j] = self._option_price(lattice, PutCall.PUT, surface, spot, time,
                                             assets[j], zero_rate, zero_dividend)
            return calls, puts

        return self._calibrate(
            volatility, spot, as_rate_function(interest_rate), as_rate_function(dividend_rate),
            layer_prices, "localVol_" + surface.name
        )

    def local_volatility_from_price(
        self,
        call_price_surface: Surface,
        spot: float,
        interest_rate: RateFunction,
        dividend_rate: RateFunction
    ) -> InterpolatedNodalSurface:
        surface = call_price_surface
        r = as_rate_function(interest_rate)
        q = as_rate_function(dividend_rate)
        T = self.max_time
        ref_price = surface.value_at(T, spot) * np.exp(r(T) * T)
        ref_forward = spot * np.exp((r(T) - q(T)) * T)
        volatility = implied_vol_black(ref_price, ref_forward, spot, T, is_call=True)
        logger.debug("Reference volatility from price surface: %.6f", volatility)

        def layer_prices(i, time, assets, zero_rate, zero_dividend):
            calls = np.array([surface.value_at(time, s) for s in assets])
            # Put-call parity
            puts = calls - spot * np.exp(-zero_dividend * time) + np.exp(-zero_rate * time) * assets
            return calls, puts

        return self._calibrate(volatility, spot, r, q, layer_prices, "localVol_" + surface.name)

    def _option_price(self, lattice, put_call, surface, spot, time, strike, zero_rate, zero_dividend) -> float:
        implied_vol = surface.value_at(time, strike)
        option = EuropeanVanillaOptionFunction(strike, time, put_call)
        price = self._tree.option_price(lattice, option, spot, implied_vol, zero_rate, zero_dividend)
        degenerate = price <= 0.0 if put_call.is_call else price < 0.0
        if degenerate:
            logger.debug(
                "Tree %s price %.3g at time=%.4f, strike=%.4f; using Black-Scholes",
                put_call.name, price, time, strike
            )
            price = black_scholes_price(spot, strike, time, implied_vol, zero_rate,
                                        zero_rate - zero_dividend, put_call.is_call)
        return price

    def _calibrate(
        self,
        volatility: float,
        spot: float,
        r: Callable[[float], float],
        q: Callable[[float], float],
        layer_prices: LayerPricer,
        name: str
    ) -> InterpolatedNodalSurface:
        n = self.n_steps
        n_total = (n - 1) ** 2 + 1
        time_res = np.zeros(n_total)
        spot_res = np.zeros(n_total)
        vol_res = np.zeros(n_total)

        dt = self.max_time / n
        dx = volatility * np.sqrt(2.0 * dt)

        # Layer i reads the previous (i+1) layer and writes the current one.
        # The two buffers swap after each layer.
        capacity = 2 * n + 1
        ad_prev, ad_cur = np.zeros(capacity), np.zeros(capacity)
        asset_prev, asset_cur = np.zeros(capacity), np.zeros(capacity)

        for i in range(n, 0, -1):
            time = dt * i
            time_next = dt * (i - 1)
            zero_rate = r(time)
            zero_dividend = q(time)
            rate = (zero_rate * time - r(time_next) * time_next) / dt
            dividend = (zero_dividend * time - q(time_next) * time_next) / dt
            discount_factor = np.exp(-rate * dt)
            forward_factor = np.exp((rate - dividend) * dt)
            n_nodes = 2 * i + 1

            assets = asset_cur[:n_nodes]
            assets[:] = spot * np.exp(dx * (np.arange(n_nodes) - i))
            calls, puts = layer_prices(i, time, assets, zero_rate, zero_dividend)
            ad = ad_cur[:n_nodes]
            self._arrow_debreu(ad, assets, calls, puts, i)
            non_positive = np.nonzero(~(ad > 0.0))[0]
            if len(non_positive) > 0:
                j = int(non_positive[0])
                raise NegativeVarianceError(
                    time, float(assets[j]), float("nan"),
                    f"Arrow-Debreu price {ad[j]:.6g} at time={time:.6g}, asset={assets[j]:.6g} "
                    "is not positive; the input surface is not arbitrage-free"
                )

            if i != n:
                self._local_vol_layer(
                    i, n, n_total, dt, discount_factor, forward_factor, assets, ad,
                    asset_prev[:n_nodes + 2], ad_prev[:n_nodes + 2], time_res, spot_res, vol_res
                )
            logger.debug("Implied tree layer %d/%d done (time=%.4f)", i, n, time)

            ad_prev, ad_cur = ad_cur, ad_prev
            asset_prev, asset_cur = asset_cur, asset_prev

        # Root node
        discount_factor = np.exp(-r(dt) * dt)
        forward_factor = np.exp((r(dt) - q(dt)) * dt)
        p_up = ad_prev[2] / discount_factor
        p_mid = middle_probability(p_up, forward_factor, spot, asset_prev[0], asset_prev[1], asset_prev[2])
        p_down = 1.0 - p_up - p_mid
        fwd = spot * forward_factor
        var = (p_down * (asset_prev[0] - fwd) ** 2
               + p_mid * (asset_prev[1] - fwd) ** 2
               + p_up * (asset_prev[2] - fwd) ** 2) / (fwd * fwd * dt)
        if var < 0.0:
            raise NegativeVarianceError(dt, spot, var)
        time_res[-1] = dt
        spot_res[-1] = spot
        vol_res[-1] = np.sqrt(0.5 * (var + vol_res[-2] ** 2))

        logger.info("Implied trinomial tree calibrated: %d steps, %d local volatility nodes", n, n_total)
        return InterpolatedNodalSurface(name, time_res, spot_res, vol_res, self.interpolator)

    @staticmethod
    def _arrow_debreu(ad: np.ndarray, assets: np.ndarray, calls: np.ndarray, puts: np.ndarray, i: int) -> None:
        """Fill ad (in place) with the Arrow-Debreu prices of layer i."""
        n_nodes = 2 * i + 1
        for j in range(n_nodes - 1, i - 1, -1):
            higher = np.dot(assets[j + 1:] - assets[j - 1], ad[j + 1:n_nodes])
            ad[j] = (calls[j - 1] - higher) / (assets[j] - assets[j - 1])
        for j in range(i):
            lower = np.dot(assets[j + 1] - assets[:j], ad[:j])
            ad[j] = (puts[j + 1] - lower) / (assets[j + 1] - assets[j])

    @staticmethod
    def _local_vol_layer(
        i: int,
        n: int,
        n_total: int,
        dt: float,
        discount_factor: float,
        forward_factor: float,
        assets: np.ndarray,
        ad: np.ndarray,
        assets_next: np.ndarray,
        ad_next: np.ndarray,
        time_res: np.ndarray,
        spot_res: np.ndarray,
        vol_res: np.ndarray
    ) -> None:
        n_nodes = 2 * i + 1
        # prob[j] = (down, middle, up) from node j of layer i to nodes j, j+1, j+2 of layer i+1
        prob = np.zeros((n_nodes, 3))

        def solve(j: int, p_up: float) -> None:
            p_mid = middle_probability(p_up, forward_factor, assets[j],
                                       assets_next[j], assets_next[j + 1], assets_next[j + 2])
            raw = np.array([1.0 - p_up - p_mid, p_mid, p_up])
            if not np.all(np.isfinite(raw)):
                raise NegativeVarianceError(
                    dt * (i + 1), float(assets[j]), float("nan"),
                    f"Transition probabilities {raw} at time={dt * (i + 1):.6g}, asset={assets[j]:.6g} "
                    "are not finite; the input surface is not arbitrage-free"
                )
            # Finite but infeasible triples are redistributed
            prob[j] = correct_probability(
                raw, forward_factor, assets[j],
                assets_next[j], assets_next[j + 1], assets_next[j + 2]
            )

        top = n_nodes - 1
        solve(top, ad_next[n_nodes + 1] / ad[top] / discount_factor)
        solve(top - 1, (ad_next[n_nodes] / discount_factor - prob[top, 1] * ad[top]) / ad[top - 1])
        for j in range(n_nodes - 3, -1, -1):
            p_up = (ad_next[j + 2] / discount_factor
                    - prob[j + 2, 0] * ad[j + 2]
                    - prob[j + 1, 1] * ad[j + 1]) / ad[j]
            solve(j, p_up)

        fwd = assets * forward_factor
        successors = np.stack([assets_next[:-2], assets_next[1:-1], assets_next[2:]], axis=1)
        # Non-negative: every row of prob is a valid probability triple
        var_bare = np.sum(prob * (successors - fwd[:, None]) ** 2, axis=1) / (fwd * fwd * dt)

        offset = n_total - i * i - 1
        for k in range(n_nodes - 2):
            if k == 0 or k == n_nodes - 3:
                var = var_bare[k:k + 3].mean()
            else:
                var = var_bare[k - 1:k + 4].mean()
            if i == n - 1:
                vol_res[offset + k] = np.sqrt(var)
            else:
                vol_res[offset + k] = np.sqrt(0.5 * (var + vol_res[offset - (2 * i - k)] ** 2))
            time_res[offset + k] = dt * (i + 1)
            spot_res[offset + k] = assets[k + 1]


__all__ = [
    "ImpliedTrinomialTreeLocalVolatilityCalculator",
    "correct_probability",
    "middle_probability",
]

"""
Tests for the implied trinomial tree local volatility calculator.
"""

import numpy as np
import pytest

from quantrisk.config import ImpliedTreeConfig
from quantrisk.curves import FunctionCurve, GridInterpolator2D
from quantrisk.exceptions import NegativeVarianceError
from quantrisk.options import black_scholes_price
from quantrisk.surfaces import ConstantSurface, InterpolatedNodalSurface, Surface
from quantrisk.vol import ImpliedTrinomialTreeLocalVolatilityCalculator
from quantrisk.vol.local.implied_tree import correct_probability, middle_probability


class BlackScholesCallSurface(Surface):
    """Call prices of a flat volatility, by (time, strike)."""

    def __init__(self, spot, vol, rate, dividend):
        super().__init__("callPrice")
        self.spot = spot
        self.vol = vol
        self.rate = rate
        self.dividend = dividend

    @property
    def parameter_count(self):
        return 1

    def value_at(self, x, y):
        return black_scholes_price(self.spot, y, x, self.vol, self.rate, self.rate - self.dividend)

    def parameter_sensitivity_at(self, x, y):
        return np.zeros(1)


class DecayingVolSurface(Surface):
    """Implied volatility a / t: total implied variance falls with time."""

    def __init__(self, a):
        super().__init__("decayingVol")
        self.a = a

    @property
    def parameter_count(self):
        return 1

    def value_at(self, x, y):
        return self.a / x

    def parameter_sensitivity_at(self, x, y):
        return np.array([1.0 / x])


class TestCorrectProbability:
    """Tests for the transition probability correction."""

    def test_valid_triple_unchanged(self):
        probability = np.array([0.2, 0.5, 0.3])
        result = correct_probability(probability, 1.0, 100.0, 90.0, 100.0, 110.0)
        np.testing.assert_array_equal(result, probability)
        assert result is not probability

    def test_forward_below_middle(self):
        """Test the correction for a forward between the low and middle levels."""
        result = correct_probability([-0.1, 0.6, 0.5], 1.0, 100.0, 90.0, 100.0, 110.0)
        np.testing.assert_allclose(result, [0.25, 0.5, 0.25])

    def test_forward_above_middle(self):
        """Test the correction for a forward between the middle and high levels."""
        result = correct_probability([0.3, -0.2, 0.9], 1.05, 100.0, 90.0, 100.0, 110.0)
        np.testing.assert_allclose(result, [0.125, 0.25, 0.625])
        assert abs(np.dot(result, [90.0, 100.0, 110.0]) - 105.0) < 1e-12

    def test_forward_outside_range(self):
        """Test a forward beyond the successor levels raises ValueError."""
        with pytest.raises(ValueError):
            correct_probability([-0.1, 0.6, 0.5], 1.2, 100.0, 90.0, 100.0, 110.0)

    def test_middle_probability_matches_forward(self):
        p_up = 0.3
        p_mid = middle_probability(p_up, 1.01, 100.0, 90.0, 100.0, 110.0)
        p_down = 1.0 - p_up - p_mid
        assert abs(p_down * 90.0 + p_mid * 100.0 + p_up * 110.0 - 101.0) < 1e-12


class TestImpliedTrinomialTreeLocalVolatilityCalculator:
    """Tests for local volatility from an implied trinomial tree."""

    def test_flat_volatility(self):
        """Test a flat implied volatility gives the same flat local volatility."""
        constant_vol = 0.15
        calc = ImpliedTrinomialTreeLocalVolatilityCalculator(
            10, 1.0, GridInterpolator2D("time_square", "linear")
        )
        surface = calc.local_volatility_from_implied_volatility(
            ConstantSurface("impliedVol", constant_vol), 100.0, 0.0, 0.0
        )
        np.testing.assert_allclose(surface.z_values, constant_vol, atol=5e-5)

    def test_surface_layout(self):
        """Test node count, naming and root node."""
        n_steps = 10
        calc = ImpliedTrinomialTreeLocalVolatilityCalculator(n_steps, 1.0)
        surface = calc.local_volatility_from_implied_volatility(
            ConstantSurface("impliedVol", 0.15), 100.0, 0.0, 0.0
        )
        assert surface.name == "localVol_impliedVol"
        assert surface.parameter_count == (n_steps - 1) ** 2 + 1
        assert surface.x_values[-1] == pytest.approx(0.1)
        assert surface.y_values[-1] == 100.0
        np.testing.assert_allclose(np.unique(surface.x_values), np.arange(1, n_steps + 1) * 0.1)

    def test_flat_volatility_with_rates(self):
        """Test a flat implied volatility with non-zero rates from curves and functions."""
        vol = 0.25
        calc = ImpliedTrinomialTreeLocalVolatilityCalculator(20, 3.0)
        rate_curve = FunctionCurve("USD", lambda t: 0.03)
        surface = calc.local_volatility_from_implied_volatility(
            ConstantSurface("impliedVol", vol), 100.0, rate_curve, lambda t: 0.0
        )
        assert abs(surface.value_at(1.0, 100.0) - vol) < 1e-4

    def test_from_price(self):
        """Test call prices of a flat volatility give back that volatility near the money."""
        vol = 0.2
        calc = ImpliedTrinomialTreeLocalVolatilityCalculator(10, 1.0)
        prices = BlackScholesCallSurface(100.0, vol, 0.0, 0.0)
        surface = calc.local_volatility_from_price(prices, 100.0, 0.0, 0.0)

        assert surface.name == "localVol_callPrice"
        assert abs(surface.value_at(0.5, 100.0) - vol) < 1e-2
        assert abs(surface.value_at(1.0, 100.0) - vol) < 1e-2

    def test_smile(self):
        """Test a skewed smile calibrates to positive local volatilities."""
        times = [0.25, 0.5, 1.0] * 3
        strikes = [0.8] * 3 + [1.4] * 3 + [2.0] * 3
        vols = [0.21, 0.19, 0.20, 0.12, 0.10, 0.10, 0.06, 0.06, 0.06]
        smile = InterpolatedNodalSurface("Test", times, strikes, vols,
                                         GridInterpolator2D("time_square", "cubic_spline"))
        calc = ImpliedTrinomialTreeLocalVolatilityCalculator(5, 1.25, GridInterpolator2D("linear", "linear"))
        surface = calc.local_volatility_from_implied_volatility(smile, 1.4, 0.0, 0.0)

        assert surface.parameter_count == 17
        assert np.all(np.isfinite(surface.z_values))
        assert np.all(surface.z_values >= 0.0)

    def test_calendar_arbitrage_raises(self):
        """Test a total variance falling in time raises instead of returning local vols."""
        calc = ImpliedTrinomialTreeLocalVolatilityCalculator(10, 1.0)
        with pytest.raises(NegativeVarianceError) as excinfo:
            calc.local_volatility_from_implied_volatility(DecayingVolSurface(0.05), 100.0, 0.0, 0.0)
        assert 0.0 < excinfo.value.time <= 1.0
        assert excinfo.value.strike > 0.0

    def test_invalid_settings(self):
        with pytest.raises(ValueError):
            ImpliedTrinomialTreeLocalVolatilityCalculator(1, 1.0)
        with pytest.raises(ValueError):
            ImpliedTrinomialTreeLocalVolatilityCalculator(10, 0.0)

    def test_from_config(self):
        """Test construction from configuration."""
        calc = ImpliedTrinomialTreeLocalVolatilityCalculator.from_config(
            ImpliedTreeConfig(n_steps=8, max_time=2.0, strike_interpolator="cubic_spline")
        )
        assert calc.n_steps == 8
        assert calc.max_time == 2.0
        assert calc.interpolator.y_method == "cubic_spline"

"""
Unit tests for finite difference curve sensitivities.
"""

from datetime import date
import numpy as np
import pytest

from quantrisk.config import FiniteDifferenceConfig
from quantrisk.curves import CurveMetadata, FunctionCurve, InterpolatedNodalCurve, TenorParameterMetadata
from quantrisk.market import ImmutableRatesProvider
from quantrisk.risk import CurrencyAmount, RatesFiniteDifferenceSensitivityCalculator


VAL_DATE = date(2024, 1, 15)
TIMES = [1.0, 2.0, 3.0, 5.0, 7.0, 10.0]
RATES = [0.01, 0.015, 0.02, 0.025, 0.03, 0.035]
SHIFT = 1.0e-4


def curve(name: str, scale: float = 1.0) -> InterpolatedNodalCurve:
    return InterpolatedNodalCurve(name, TIMES, [r * scale for r in RATES], anchor_date=VAL_DATE)


def node_sum(provider: ImmutableRatesProvider) -> CurrencyAmount:
    """Sum of time * rate over every node of every curve entry; linear in the rates."""
    total = 0.0
    for _, _, c in provider.curve_entries():
        total += float(np.dot(c.get_node_times(), c.get_node_rates()))
    return CurrencyAmount("USD", total)


@pytest.fixture
def single_curve_provider():
    """The same curve for discounting and every index."""
    c = curve("USD-SINGLE")
    return ImmutableRatesProvider(
        VAL_DATE,
        discount_curves={"USD": c, "EUR": c},
        ibor_index_curves={"USD-LIBOR-3M": c},
        overnight_index_curves={"USD-FED-FUND": c},
    )


@pytest.fixture
def multi_curve_provider():
    return ImmutableRatesProvider(
        VAL_DATE,
        discount_curves={"USD": curve("USD-DSC"), "EUR": curve("USD-DSC")},
        ibor_index_curves={"USD-LIBOR-3M": curve("USD-L3M", 1.1)},
        overnight_index_curves={"USD-FED-FUND": curve("USD-FF", 0.9)},
    )


class TestRatesFiniteDifferenceSensitivityCalculator:
    """Tests for bump-and-revalue curve sensitivities."""

    def test_single_curve_summed_over_roles(self, single_curve_provider):
        """Test a curve used in four roles gets four times the node sensitivity."""
        calc = RatesFiniteDifferenceSensitivityCalculator(SHIFT)
        result = calc.sensitivity(single_curve_provider, node_sum)

        assert result.size() == 1
        sensi = result.get_sensitivity("USD-SINGLE", "USD")
        np.testing.assert_allclose(sensi.sensitivity, np.array(TIMES) * 4.0, rtol=1e-6)

    def test_multi_curve(self, multi_curve_provider):
        """Test separate curves get separate entries."""
        calc = RatesFiniteDifferenceSensitivityCalculator(SHIFT)
        result = calc.sensitivity(multi_curve_provider, node_sum)

        assert result.size() == 3
        np.testing.assert_allclose(
            result.get_sensitivity("USD-DSC", "USD").sensitivity, np.array(TIMES) * 2.0, rtol=1e-6
        )
        np.testing.assert_allclose(
            result.get_sensitivity("USD-L3M", "USD").sensitivity, TIMES, rtol=1e-6
        )
        np.testing.assert_allclose(
            result.get_sensitivity("USD-FF", "USD").sensitivity, TIMES, rtol=1e-6
        )

    def test_discount_factor_sensitivity(self):
        """Test the sensitivity of a discount factor to the zero rate nodes."""
        provider = ImmutableRatesProvider(VAL_DATE, discount_curves={"USD": curve("USD-DSC")})

        def pv(p):
            return CurrencyAmount("USD", p.discount_factor("USD", 2.5))

        result = RatesFiniteDifferenceSensitivityCalculator(1.0e-7).sensitivity(provider, pv)
        sensi = result.get_sensitivity("USD-DSC", "USD").sensitivity

        df = provider.discount_factor("USD", 2.5)
        expected = np.zeros(len(TIMES))
        expected[1] = expected[2] = -2.5 * df * 0.5
        np.testing.assert_allclose(sensi, expected, atol=1e-6)

    def test_parameter_metadata_carried(self):
        """Test curve parameter metadata ends up on the sensitivity."""
        metadata = CurveMetadata("USD-DSC").with_parameter_metadata(
            [TenorParameterMetadata.of(f"{int(t)}Y") for t in TIMES]
        )
        c = InterpolatedNodalCurve(metadata, TIMES, RATES, anchor_date=VAL_DATE)
        provider = ImmutableRatesProvider(VAL_DATE, discount_curves={"USD": c})

        result = RatesFiniteDifferenceSensitivityCalculator(SHIFT).sensitivity(provider, node_sum)
        sensi = result.get_sensitivity("USD-DSC", "USD")
        assert [m.label for m in sensi.parameter_metadata] == ["1Y", "2Y", "3Y", "5Y", "7Y", "10Y"]

    def test_parallel_matches_sequential(self, multi_curve_provider):
        """Test the thread pool gives the same result as a sequential run."""
        sequential = RatesFiniteDifferenceSensitivityCalculator(SHIFT).sensitivity(
            multi_curve_provider, node_sum
        )
        parallel = RatesFiniteDifferenceSensitivityCalculator(SHIFT, max_workers=4).sensitivity(
            multi_curve_provider, node_sum
        )
        assert parallel.equal_with_tolerance(sequential, 0.0)

    def test_non_nodal_curve(self):
        """Test analytic curves are rejected."""
        provider = ImmutableRatesProvider(
            VAL_DATE, discount_curves={"USD": FunctionCurve("USD-F", lambda t: 0.02)}
        )
        with pytest.raises(TypeError):
            RatesFiniteDifferenceSensitivityCalculator(SHIFT).sensitivity(provider, node_sum)

    def test_float_value_needs_currency(self, multi_curve_provider):
        """Test float valuations need an explicit currency."""
        calc = RatesFiniteDifferenceSensitivityCalculator(SHIFT)

        def value(p):
            return node_sum(p).amount

        with pytest.raises(ValueError):
            calc.sensitivity(multi_curve_provider, value)

        result = calc.sensitivity(multi_curve_provider, value, currency="EUR")
        assert result.find_sensitivity("USD-DSC", "EUR") is not None
        assert result.find_sensitivity("USD-DSC", "USD") is None

    def test_invalid_settings(self):
        with pytest.raises(ValueError):
            RatesFiniteDifferenceSensitivityCalculator(0.0)
        with pytest.raises(ValueError):
            RatesFiniteDifferenceSensitivityCalculator(SHIFT, max_workers=0)

    def test_from_config(self):
        """Test construction from configuration."""
        calc = RatesFiniteDifferenceSensitivityCalculator.from_config(
            FiniteDifferenceConfig(shift=1.0e-5, max_workers=2)
        )
        assert calc.shift == 1.0e-5
        assert calc.max_workers == 2

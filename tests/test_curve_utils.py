"""
Unit tests for Jacobian and re-bucketing utilities.
"""

from datetime import date
import numpy as np
import pytest

from quantrisk.curves import DatedParameterMetadata, ParameterMetadata, TenorParameterMetadata
from quantrisk.risk import CurveParameterSensitivities, CurveParameterSensitivity, CurveSensitivityUtils


TARGETS = [date(2025, 1, 15), date(2026, 1, 15), date(2029, 1, 15)]


def dated_sensitivity(name, dates, amounts, currency="USD"):
    return CurveParameterSensitivity(
        name, currency, amounts, tuple(DatedParameterMetadata.of(d) for d in dates)
    )


class TestLinearRebucketing:
    """Tests for re-bucketing onto a date grid."""

    def test_total_conserved(self):
        """Test re-bucketing keeps the total of each curve."""
        dates = [date(2024, 7, 15), date(2025, 7, 15), date(2027, 1, 15), date(2030, 1, 15)]
        sensi = dated_sensitivity("USD-DSC", dates, [10.0, -20.0, 35.0, 5.0])
        result = CurveSensitivityUtils.linear_rebucketing(CurveParameterSensitivities.of(sensi), TARGETS)

        rebucketed = result.get_sensitivity("USD-DSC", "USD")
        assert rebucketed.parameter_count == 3
        assert abs(rebucketed.total() - 30.0) < 1e-12
        assert [m.date for m in rebucketed.parameter_metadata] == TARGETS

    def test_outside_dates_go_to_ends(self):
        """Test nodes before the first or after the last target date."""
        sensi = dated_sensitivity("C", [date(2024, 2, 1), date(2029, 1, 15), date(2040, 1, 1)], [1.0, 2.0, 3.0])
        result = CurveSensitivityUtils.linear_rebucketing(CurveParameterSensitivities.of(sensi), TARGETS)
        np.testing.assert_allclose(result.get_sensitivity("C", "USD").sensitivity, [1.0, 0.0, 5.0])

    def test_interior_split(self):
        """Test a node between two targets is split by day count."""
        node = date(2025, 4, 15)  # 90 days after 2025-01-15, 275 days before 2026-01-15
        sensi = dated_sensitivity("C", [node], [365.0])
        result = CurveSensitivityUtils.linear_rebucketing(CurveParameterSensitivities.of(sensi), TARGETS)
        np.testing.assert_allclose(result.get_sensitivity("C", "USD").sensitivity, [275.0, 90.0, 0.0])

    def test_node_on_target(self):
        """Test a node on an interior target stays there."""
        sensi = dated_sensitivity("C", [date(2026, 1, 15)], [7.0])
        result = CurveSensitivityUtils.linear_rebucketing(CurveParameterSensitivities.of(sensi), TARGETS)
        np.testing.assert_allclose(result.get_sensitivity("C", "USD").sensitivity, [0.0, 7.0, 0.0])

    def test_tenor_metadata(self):
        """Test tenor nodes are dated from the sensitivity date."""
        sensi = CurveParameterSensitivity(
            "C", "USD", [4.0, 6.0], (TenorParameterMetadata.of("1Y"), TenorParameterMetadata.of("2Y"))
        )
        sensitivities = CurveParameterSensitivities.of(sensi)
        result = CurveSensitivityUtils.linear_rebucketing(sensitivities, TARGETS, date(2024, 1, 15))
        np.testing.assert_allclose(result.get_sensitivity("C", "USD").sensitivity, [4.0, 6.0, 0.0])

        with pytest.raises(TypeError):
            CurveSensitivityUtils.linear_rebucketing(sensitivities, TARGETS)

    def test_several_curves(self):
        """Test every curve and currency is re-bucketed separately."""
        usd = dated_sensitivity("C", [date(2026, 1, 15)], [1.0])
        eur = dated_sensitivity("C", [date(2029, 1, 15)], [2.0], currency="EUR")
        result = CurveSensitivityUtils.linear_rebucketing(CurveParameterSensitivities.of(usd, eur), TARGETS)
        np.testing.assert_allclose(result.get_sensitivity("C", "USD").sensitivity, [0.0, 1.0, 0.0])
        np.testing.assert_allclose(result.get_sensitivity("C", "EUR").sensitivity, [0.0, 0.0, 2.0])

    def test_missing_metadata(self):
        """Test sensitivities need parameter metadata."""
        sensi = CurveParameterSensitivity("C", "USD", [1.0])
        with pytest.raises(ValueError):
            CurveSensitivityUtils.linear_rebucketing(CurveParameterSensitivities.of(sensi), TARGETS)

    def test_undated_metadata(self):
        """Test label-only metadata cannot be re-bucketed."""
        sensi = CurveParameterSensitivity("C", "USD", [1.0], (ParameterMetadata("node"),))
        with pytest.raises(TypeError):
            CurveSensitivityUtils.linear_rebucketing(CurveParameterSensitivities.of(sensi), TARGETS)

    def test_unsorted_targets(self):
        """Test target dates must be strictly increasing."""
        sensi = dated_sensitivity("C", [date(2026, 1, 15)], [1.0])
        with pytest.raises(ValueError):
            CurveSensitivityUtils.linear_rebucketing(
                CurveParameterSensitivities.of(sensi), [TARGETS[1], TARGETS[0]]
            )
        with pytest.raises(ValueError):
            CurveSensitivityUtils.check_sorted_dates([TARGETS[0], TARGETS[0]])
        with pytest.raises(ValueError):
            CurveSensitivityUtils.check_sorted_dates([])


class TestJacobian:
    """Tests for the inverse Jacobian."""

    CURVE_ORDER = [("USD-DSC", 2), ("USD-L3M", 1)]
    MATRIX = np.array([
        [2.0, 1.0, 0.0],
        [0.5, 3.0, 0.0],
        [1.0, 1.0, 4.0],
    ])

    def quote_sensitivity(self, row):
        dsc = CurveParameterSensitivity("USD-DSC", "USD", row[:2])
        if row[2] == 0.0:
            return CurveParameterSensitivities.of(dsc)
        return CurveParameterSensitivities.of(dsc, CurveParameterSensitivity("USD-L3M", "USD", row[2:]))

    def test_inverse(self):
        """Test the result is the inverse of the stacked rows, with absent curves as zeros."""
        sensitivities = [self.quote_sensitivity(row) for row in self.MATRIX]
        inverse = CurveSensitivityUtils.jacobian_from_market_quote_sensitivities(
            self.CURVE_ORDER, sensitivities
        )
        np.testing.assert_allclose(inverse @ self.MATRIX, np.eye(3), atol=1e-12)

    def test_from_trades(self):
        """Test the trade variant applies the sensitivity function to each trade."""
        trades = [0, 1, 2]
        inverse = CurveSensitivityUtils.jacobian_from_trades(
            self.CURVE_ORDER, trades, lambda i: self.quote_sensitivity(self.MATRIX[i])
        )
        np.testing.assert_allclose(inverse, np.linalg.inv(self.MATRIX), atol=1e-12)

    def test_not_square(self):
        """Test the instrument count must match the parameter count."""
        sensitivities = [self.quote_sensitivity(row) for row in self.MATRIX[:2]]
        with pytest.raises(ValueError):
            CurveSensitivityUtils.jacobian_from_market_quote_sensitivities(self.CURVE_ORDER, sensitivities)

    def test_singular(self):
        """Test a singular matrix raises ValueError."""
        row = np.array([1.0, 1.0, 1.0])
        sensitivities = [self.quote_sensitivity(row)] * 3
        with pytest.raises(ValueError):
            CurveSensitivityUtils.jacobian_from_market_quote_sensitivities(self.CURVE_ORDER, sensitivities)

    def test_size_mismatch(self):
        """Test a sensitivity of the wrong size is rejected."""
        sensitivities = [CurveParameterSensitivities.of(CurveParameterSensitivity("USD-DSC", "USD", [1.0]))] * 3
        with pytest.raises(ValueError):
            CurveSensitivityUtils.jacobian_from_market_quote_sensitivities(self.CURVE_ORDER, sensitivities)

"""
Unit tests for curve parameter sensitivity containers.
"""

import numpy as np
import pytest

from quantrisk.curves import TenorParameterMetadata
from quantrisk.risk import CurveParameterSensitivities, CurveParameterSensitivity


@pytest.fixture
def dsc():
    return CurveParameterSensitivity(
        "USD-DSC", "USD", [1.0, 2.0], (TenorParameterMetadata.of("1Y"), TenorParameterMetadata.of("2Y"))
    )


@pytest.fixture
def fwd():
    return CurveParameterSensitivity("USD-L3M", "USD", [3.0, 4.0, 5.0])


class TestCurveParameterSensitivity:

    def test_read_only(self, dsc):
        with pytest.raises(ValueError):
            dsc.sensitivity[0] = 10.0

    def test_plus(self, dsc):
        """Test sums keep the metadata."""
        total = dsc.plus(dsc.multiplied_by(2.0))
        np.testing.assert_allclose(total.sensitivity, [3.0, 6.0])
        assert total.parameter_metadata == dsc.parameter_metadata

    def test_plus_mismatch(self, dsc, fwd):
        with pytest.raises(ValueError):
            dsc.plus(fwd)
        with pytest.raises(ValueError):
            dsc.plus(CurveParameterSensitivity("USD-DSC", "USD", [1.0]))

    def test_metadata_length(self):
        with pytest.raises(ValueError):
            CurveParameterSensitivity("C", "USD", [1.0, 2.0], (TenorParameterMetadata.of("1Y"),))


class TestCurveParameterSensitivities:
    """Tests for sensitivity collections."""

    def test_same_key_summed(self, dsc, fwd):
        """Test entries with the same curve and currency are summed."""
        combined = CurveParameterSensitivities.of(dsc, fwd).combined_with(dsc)
        assert combined.size() == 2
        np.testing.assert_allclose(combined.get_sensitivity("USD-DSC", "USD").sensitivity, [2.0, 4.0])

    def test_currency_is_part_of_key(self, dsc):
        eur = CurveParameterSensitivity("USD-DSC", "EUR", [1.0, 1.0])
        combined = CurveParameterSensitivities.of(dsc, eur)
        assert len(combined) == 2
        assert combined.total() == {"USD": 3.0, "EUR": 2.0}

    def test_missing(self, dsc):
        sensitivities = CurveParameterSensitivities.of(dsc)
        assert sensitivities.find_sensitivity("USD-DSC", "EUR") is None
        with pytest.raises(ValueError):
            sensitivities.get_sensitivity("EUR-DSC", "EUR")

    def test_equal_with_tolerance(self, dsc, fwd):
        base = CurveParameterSensitivities.of(dsc, fwd)
        close = CurveParameterSensitivities.of(dsc.multiplied_by(1.0 + 1e-10), fwd)
        assert base.equal_with_tolerance(close, 1e-8)
        assert not base.equal_with_tolerance(base.multiplied_by(2.0), 1e-8)
        assert not base.equal_with_tolerance(CurveParameterSensitivities.of(dsc), 1e-8)

    def test_to_dataframe(self, dsc, fwd):
        """Test flattening to a table uses metadata labels or indices."""
        df = CurveParameterSensitivities.of(dsc, fwd).to_dataframe()
        assert list(df.columns) == ["curve_name", "currency", "index", "label", "sensitivity"]
        assert list(df["label"]) == ["1Y", "2Y", "0", "1", "2"]
        assert df["sensitivity"].sum() == 15.0

    def test_empty(self):
        assert CurveParameterSensitivities.empty().size() == 0

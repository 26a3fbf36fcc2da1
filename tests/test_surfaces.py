"""
Unit tests for surfaces.
"""

import numpy as np
import pytest

from quantrisk.curves import GridInterpolator2D
from quantrisk.surfaces import ConstantSurface, InterpolatedNodalSurface


@pytest.fixture
def surface():
    times = [0.5, 0.5, 1.0, 1.0, 1.0]
    strikes = [90.0, 110.0, 80.0, 100.0, 120.0]
    vols = [0.24, 0.20, 0.25, 0.22, 0.20]
    return InterpolatedNodalSurface("vol", times, strikes, vols, GridInterpolator2D("linear", "linear"))


class TestConstantSurface:

    def test_value_and_sensitivity(self):
        s = ConstantSurface("flat", 0.3)
        assert s(1.0, 50.0) == 0.3
        assert s.parameter_count == 1
        np.testing.assert_array_equal(s.parameter_sensitivity_at(2.0, 10.0), [1.0])

    def test_with_parameter(self):
        s = ConstantSurface("flat", 0.3).with_parameter(0, 0.4)
        assert s.value_at(0.0, 0.0) == 0.4
        with pytest.raises(IndexError):
            s.with_parameter(1, 0.5)


class TestInterpolatedNodalSurface:
    """Tests for nodal surfaces."""

    def test_node_values(self, surface):
        """Test the surface goes through its nodes."""
        for x, y, z in zip(surface.x_values, surface.y_values, surface.z_values):
            assert abs(surface.value_at(x, y) - z) < 1e-12

    def test_interpolation(self, surface):
        """Test interpolation inside a group and across groups."""
        assert abs(surface.value_at(0.5, 100.0) - 0.22) < 1e-12
        assert abs(surface.value_at(0.75, 100.0) - 0.22) < 1e-12
        assert abs(surface.value_at(1.0, 90.0) - 0.235) < 1e-12

    def test_parameter_sensitivity(self, surface):
        """Test the sensitivity matches bumping each node."""
        x, y = 0.8, 95.0
        sensi = surface.parameter_sensitivity_at(x, y)
        base = surface.value_at(x, y)
        for i in range(surface.parameter_count):
            bumped = surface.with_parameter(i, surface.z_values[i] + 1e-6)
            assert abs((bumped.value_at(x, y) - base) / 1e-6 - sensi[i]) < 1e-6

    def test_value_derivatives(self, surface):
        result = surface.value_derivatives_at(0.8, 95.0)
        assert result.value == surface.value_at(0.8, 95.0)
        np.testing.assert_array_equal(result.derivatives, surface.parameter_sensitivity_at(0.8, 95.0))

    def test_immutable(self, surface):
        """Test node arrays are read-only and updates build a new surface."""
        with pytest.raises(ValueError):
            surface.z_values[0] = 1.0
        updated = surface.with_z_values(np.full(5, 0.3))
        assert updated.value_at(0.7, 100.0) == pytest.approx(0.3)
        assert surface.z_values[0] == 0.24

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            InterpolatedNodalSurface("bad", [1.0, 2.0], [100.0], [0.2, 0.3])

    def test_to_dataframe(self, surface):
        df = surface.to_dataframe()
        assert list(df.columns) == ["x", "y", "z"]
        assert len(df) == 5
        assert df["z"].iloc[3] == 0.22

"""
Unit tests for configuration loading.
"""

import pytest

from quantrisk.config import (
    DupireConfig,
    FiniteDifferenceConfig,
    ImpliedTreeConfig,
    QuantRiskConfig,
    load_config,
)


class TestConfig:
    """Tests for calculator configuration."""

    def test_defaults(self):
        config = QuantRiskConfig()
        assert config.implied_tree == ImpliedTreeConfig(20, 3.0, "time_square", "linear")
        assert config.dupire.eps == 1.0e-4
        assert config.finite_difference.shift == 1.0e-4
        assert config.finite_difference.max_workers is None

    def test_from_dict_partial(self):
        """Test missing sections and keys take defaults."""
        config = QuantRiskConfig.from_dict({"implied_tree": {"n_steps": 12}, "dupire": None})
        assert config.implied_tree.n_steps == 12
        assert config.implied_tree.max_time == 3.0
        assert config.dupire == DupireConfig()

    def test_unknown_section(self):
        with pytest.raises(ValueError):
            QuantRiskConfig.from_dict({"sabr": {}})

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            QuantRiskConfig.from_dict({"dupire": {"step": 0.1}})

    def test_invalid_values(self):
        """Test section validation."""
        with pytest.raises(ValueError):
            ImpliedTreeConfig(n_steps=0)
        with pytest.raises(ValueError):
            ImpliedTreeConfig(n_steps=1)
        with pytest.raises(ValueError):
            DupireConfig(eps=-1.0)
        with pytest.raises(ValueError):
            FiniteDifferenceConfig(shift=0.0)

    def test_load_yaml(self, tmp_path):
        """Test reading a YAML file."""
        path = tmp_path / "quantrisk.yaml"
        path.write_text(
            "implied_tree:\n"
            "  n_steps: 8\n"
            "  strike_interpolator: cubic_spline\n"
            "finite_difference:\n"
            "  shift: 1.0e-5\n"
            "  max_workers: 4\n",
            encoding="utf-8",
        )
        config = load_config(path)
        assert config.implied_tree.n_steps == 8
        assert config.implied_tree.strike_interpolator == "cubic_spline"
        assert config.finite_difference == FiniteDifferenceConfig(shift=1.0e-5, max_workers=4)

    def test_load_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(str(path)) == QuantRiskConfig()

    def test_load_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(path)

"""
Calculator configuration.

Provides:
- ImpliedTreeConfig: Implied trinomial tree settings
- DupireConfig: Dupire calculator settings
- FiniteDifferenceConfig: Curve sensitivity bump settings
- QuantRiskConfig: All of the above
- load_config: Read a QuantRiskConfig from YAML

Example YAML::

    implied_tree:
      n_steps: 20
      max_time: 3.0
      time_interpolator: time_square
      strike_interpolator: linear
    dupire:
      eps: 1.0e-4
    finite_difference:
      shift: 1.0e-4
      max_workers: 4

Every section and key is optional; missing ones take the library defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml


@dataclass(frozen=True)
class ImpliedTreeConfig:
    n_steps: int = 20
    max_time: float = 3.0
    time_interpolator: str = "time_square"
    strike_interpolator: str = "linear"

    def __post_init__(self):
        if self.n_steps < 2:
            raise ValueError(f"n_steps must be at least 2, got {self.n_steps}")
        if self.max_time <= 0:
            raise ValueError(f"max_time must be positive, got {self.max_time}")


@dataclass(frozen=True)
class DupireConfig:
    eps: float = 1.0e-4
    small_strike: float = 1.0e-10

    def __post_init__(self):
        if self.eps <= 0:
            raise ValueError(f"eps must be positive, got {self.eps}")


@dataclass(frozen=True)
class FiniteDifferenceConfig:
    shift: float = 1.0e-4
    max_workers: Optional[int] = None

    def __post_init__(self):
        if self.shift == 0:
            raise ValueError("shift must be non-zero")


@dataclass(frozen=True)
class QuantRiskConfig:
    """Top-level configuration, one section per calculator."""
    implied_tree: ImpliedTreeConfig = field(default_factory=ImpliedTreeConfig)
    dupire: DupireConfig = field(default_factory=DupireConfig)
    finite_difference: FiniteDifferenceConfig = field(default_factory=FiniteDifferenceConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuantRiskConfig":
        """
        Build from a parsed mapping.

        Raises:
            ValueError: On unknown sections or keys
        """
        sections = {f.name: f for f in fields(cls)}
        unknown = set(data) - set(sections)
        if unknown:
            raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")

        kwargs = {}
        for name, section_data in data.items():
            section_cls = _SECTION_TYPES[name]
            section_data = section_data or {}
            allowed = {f.name for f in fields(section_cls)}
            bad_keys = set(section_data) - allowed
            if bad_keys:
                raise ValueError(f"Unknown keys in section '{name}': {sorted(bad_keys)}")
            kwargs[name] = section_cls(**section_data)
        return cls(**kwargs)


_SECTION_TYPES = {
    "implied_tree": ImpliedTreeConfig,
    "dupire": DupireConfig,
    "finite_difference": FiniteDifferenceConfig,
}


def load_config(path: Union[str, Path]) -> QuantRiskConfig:
    """
    Load configuration from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Parsed configuration (defaults for anything not in the file)
    """
    text = Path(path).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration root must be a mapping, got {type(data).__name__}")
    return QuantRiskConfig.from_dict(data)


__all__ = [
    "ImpliedTreeConfig",
    "DupireConfig",
    "FiniteDifferenceConfig",
    "QuantRiskConfig",
    "load_config",
]

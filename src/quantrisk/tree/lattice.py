"""
Trinomial lattice specifications.

A lattice specification turns (volatility, drift, time step) into the
three move factors and three transition probabilities of a recombining
trinomial tree, and fixes the number of time steps.

Provides:
- LatticeSpecification: Abstract base
- CoxRossRubinsteinLatticeSpecification: dx = sigma * sqrt(2 dt)
- TrigeorgisLatticeSpecification: log-space lattice, dx = sigma * sqrt(3 dt)
"""

from abc import ABC, abstractmethod
from typing import NamedTuple

import numpy as np


class TrinomialParameters(NamedTuple):
    """Move factors and transition probabilities of one trinomial step."""
    up_factor: float
    middle_factor: float
    down_factor: float
    up_probability: float
    middle_probability: float
    down_probability: float


class LatticeSpecification(ABC):
    """
    Abstract base class for trinomial lattice specifications.

    Attributes:
        number_of_steps: Number of time steps of the tree
    """

    def __init__(self, number_of_steps: int):
        if number_of_steps < 1:
            raise ValueError(f"Number of steps must be positive, got {number_of_steps}")
        self.number_of_steps = number_of_steps

    @abstractmethod
    def parameters_trinomial(self, volatility: float, interest_rate: float, dt: float) -> TrinomialParameters:
        """
        Compute the parameters of one trinomial step.

        Args:
            volatility: Lognormal volatility
            interest_rate: Net drift of the underlying (interest rate less dividend rate)
            dt: Time step

        Returns:
            (up, middle, down, p_up, p_middle, p_down)
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(number_of_steps={self.number_of_steps})"


class CoxRossRubinsteinLatticeSpecification(LatticeSpecification):
    """
    Cox-Ross-Rubinstein trinomial lattice.

    Obtained by merging two binomial steps of size dt/2, so that
    dx = sigma * sqrt(2 dt) and the probabilities are squares of the
    binomial ones. The middle factor is 1.
    """

    def parameters_trinomial(self, volatility: float, interest_rate: float, dt: float) -> TrinomialParameters:
        dx = volatility * np.sqrt(2.0 * dt)
        up = np.exp(dx)
        down = np.exp(-dx)
        up_half = np.exp(0.5 * dx)
        down_half = np.exp(-0.5 * dx)
        drift_half = np.exp(0.5 * interest_rate * dt)
        denominator = up_half - down_half
        p_up = ((drift_half - down_half) / denominator) ** 2
        p_down = ((up_half - drift_half) / denominator) ** 2
        return TrinomialParameters(float(up), 1.0, float(down), float(p_up),
                                   float(1.0 - p_up - p_down), float(p_down))


class TrigeorgisLatticeSpecification(LatticeSpecification):
    """
    Trigeorgis trinomial lattice in log-space.

    dx = sigma * sqrt(3 dt); probabilities match the first two moments of
    the log-price increment with drift nu = r - sigma^2 / 2.
    """

    def parameters_trinomial(self, volatility: float, interest_rate: float, dt: float) -> TrinomialParameters:
        dx = volatility * np.sqrt(3.0 * dt)
        nu = interest_rate - 0.5 * volatility ** 2
        second_moment = (volatility ** 2 * dt + nu ** 2 * dt ** 2) / dx ** 2
        first_moment = nu * dt / dx
        p_up = 0.5 * (second_moment + first_moment)
        p_down = 0.5 * (second_moment - first_moment)
        return TrinomialParameters(float(np.exp(dx)), 1.0, float(np.exp(-dx)), float(p_up),
                                   float(1.0 - second_moment), float(p_down))


__all__ = [
    "TrinomialParameters",
    "LatticeSpecification",
    "CoxRossRubinsteinLatticeSpecification",
    "TrigeorgisLatticeSpecification",
]

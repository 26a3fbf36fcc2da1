"""
Option payoffs on a trinomial tree.

An option function supplies the terminal payoff vector of a tree and the
rule that maps the values of layer i+1 to layer i. European options use
the plain discounted expectation (trinomial_backward_step); American
options apply the early exercise test on top of it at every layer.

Node j of layer i (j = 0 is the lowest) sits at
    spot * down^i * (middle / down)^j
"""

from abc import ABC, abstractmethod
from enum import Enum

import numpy as np


class PutCall(Enum):
    """Option type, carrying the sign of the payoff."""
    CALL = 1
    PUT = -1

    @property
    def sign(self) -> float:
        return float(self.value)

    @property
    def is_call(self) -> bool:
        return self is PutCall.CALL


def layer_asset_prices(spot: float, down_factor: float, middle_over_down: float, i: int) -> np.ndarray:
    """Asset prices of the 2i+1 nodes of layer i, ascending."""
    return spot * down_factor ** i * middle_over_down ** np.arange(2 * i + 1)


def trinomial_backward_step(
    discount_factor: float,
    up_probability: float,
    middle_probability: float,
    down_probability: float,
    values: np.ndarray
) -> np.ndarray:
    """
    Discounted expectation of the next layer's values.

    Args:
        discount_factor: Discount factor over one step
        up_probability: Transition probability to node j+2
        middle_probability: Transition probability to node j+1
        down_probability: Transition probability to node j
        values: The 2i+3 option values of layer i+1

    Returns:
        The 2i+1 option values of layer i
    """
    return discount_factor * (up_probability * values[2:]
                              + middle_probability * values[1:-1]
                              + down_probability * values[:-2])


class OptionFunction(ABC):
    """
    Abstract base class for options priced on a trinomial tree.

    Attributes:
        strike: Strike
        time_to_expiry: Time to expiry (years)
        put_call: Call or put
    """

    def __init__(self, strike: float, time_to_expiry: float, put_call: PutCall):
        if time_to_expiry <= 0:
            raise ValueError(f"Time to expiry must be positive, got {time_to_expiry}")
        self.strike = strike
        self.time_to_expiry = time_to_expiry
        self.put_call = put_call

    def payoff(self, asset_prices: np.ndarray) -> np.ndarray:
        return np.maximum(self.put_call.sign * (asset_prices - self.strike), 0.0)

    def payoff_at_expiry_trinomial(
        self,
        spot: float,
        down_factor: float,
        middle_over_down: float,
        n_steps: int
    ) -> np.ndarray:
        """
        Payoffs at the 2n+1 terminal nodes.

        Args:
            spot: Spot at the root
            down_factor: Down move factor
            middle_over_down: Middle factor divided by down factor
            n_steps: Number of steps of the tree

        Returns:
            Terminal values, lowest node first
        """
        return self.payoff(layer_asset_prices(spot, down_factor, middle_over_down, n_steps))

    @abstractmethod
    def next_option_values(
        self,
        discount_factor: float,
        up_probability: float,
        middle_probability: float,
        down_probability: float,
        values: np.ndarray,
        spot: float,
        down_factor: float,
        middle_over_down: float,
        i: int
    ) -> np.ndarray:
        """Option values of layer i from the 2i+3 values of layer i+1."""


class EuropeanVanillaOptionFunction(OptionFunction):
    """European call or put."""

    def next_option_values(self, discount_factor, up_probability, middle_probability, down_probability,
                           values, spot, down_factor, middle_over_down, i):
        return trinomial_backward_step(
            discount_factor, up_probability, middle_probability, down_probability, values
        )

    def __repr__(self) -> str:
        return (f"EuropeanVanillaOptionFunction(strike={self.strike}, "
                f"time_to_expiry={self.time_to_expiry}, {self.put_call.name})")


class AmericanVanillaOptionFunction(OptionFunction):
    """American call or put: exercise value floors the continuation value at every node."""

    def next_option_values(self, discount_factor, up_probability, middle_probability, down_probability,
                           values, spot, down_factor, middle_over_down, i):
        continuation = trinomial_backward_step(
            discount_factor, up_probability, middle_probability, down_probability, values
        )
        exercise = self.payoff(layer_asset_prices(spot, down_factor, middle_over_down, i))
        return np.maximum(continuation, exercise)

    def __repr__(self) -> str:
        return (f"AmericanVanillaOptionFunction(strike={self.strike}, "
                f"time_to_expiry={self.time_to_expiry}, {self.put_call.name})")


__all__ = [
    "PutCall",
    "OptionFunction",
    "EuropeanVanillaOptionFunction",
    "AmericanVanillaOptionFunction",
    "trinomial_backward_step",
    "layer_asset_prices",
]

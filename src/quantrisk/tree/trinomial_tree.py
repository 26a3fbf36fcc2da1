"""
Recombining trinomial tree pricer.

Volatility, interest rate and dividend rate are constant over the life of
the option. The lattice specification fixes the number of steps and the
step parameters; the option function fixes the payoff and the backward
induction rule.
"""

import numpy as np

from .lattice import LatticeSpecification
from .option_function import OptionFunction


class TrinomialTree:
    """Backward induction pricer on a trinomial lattice. Stateless."""

    def option_price(
        self,
        lattice: LatticeSpecification,
        function: OptionFunction,
        spot: float,
        volatility: float,
        interest_rate: float,
        dividend_rate: float
    ) -> float:
        """
        Price an option on the tree.

        Args:
            lattice: Lattice specification (number of steps and step parameters)
            function: The option
            spot: Spot price
            volatility: Lognormal volatility
            interest_rate: Continuously compounded interest rate
            dividend_rate: Continuous dividend rate

        Returns:
            Option price

        Raises:
            ValueError: If a transition probability is outside (0, 1)
        """
        n_steps = lattice.number_of_steps
        dt = function.time_to_expiry / n_steps
        discount = np.exp(-interest_rate * dt)
        params = lattice.parameters_trinomial(volatility, interest_rate - dividend_rate, dt)
        middle_over_down = params.middle_factor / params.down_factor

        if not 0.0 < params.up_probability < 1.0:
            raise ValueError(f"Up probability should be in (0, 1), got {params.up_probability}")
        if not 0.0 < params.middle_probability < 1.0:
            raise ValueError(f"Middle probability should be in (0, 1), got {params.middle_probability}")
        if not params.down_probability > 0.0:
            raise ValueError(f"Down probability should be positive, got {params.down_probability}")

        values = function.payoff_at_expiry_trinomial(spot, params.down_factor, middle_over_down, n_steps)
        for i in range(n_steps - 1, -1, -1):
            values = function.next_option_values(
                discount,
                params.up_probability,
                params.middle_probability,
                params.down_probability,
                values,
                spot,
                params.down_factor,
                middle_over_down,
                i
            )
        return float(values[0])


__all__ = [
    "TrinomialTree",
]

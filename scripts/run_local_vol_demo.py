#!/usr/bin/env python
"""
Local Volatility & Curve Sensitivity Demo Script

This script demonstrates the main workflows of the library:
1. Calibrate a local volatility surface from a smile with the implied
   trinomial tree
2. Evaluate the Dupire local volatility of the same smile, with its
   sensitivity to the smile nodes
3. Compute finite-difference curve sensitivities of a simple valuation,
   compare them with a parallel shift
   and re-bucket them onto a date grid

Usage:
    python run_local_vol_demo.py [--config CONFIG] [--spot SPOT] [--verbose]
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

import numpy as np
import pandas as pd

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from quantrisk.config import QuantRiskConfig, load_config
from quantrisk.curves import CurveMetadata, GridInterpolator2D, InterpolatedNodalCurve, TenorParameterMetadata
from quantrisk.market import ImmutableRatesProvider
from quantrisk.risk import (
    BumpEngine,
    CurrencyAmount,
    CurveSensitivityUtils,
    RatesFiniteDifferenceSensitivityCalculator,
)
from quantrisk.surfaces import InterpolatedNodalSurface
from quantrisk.vol import DupireLocalVolatilityCalculator, ImpliedTrinomialTreeLocalVolatilityCalculator


def build_smile(spot: float) -> InterpolatedNodalSurface:
    """A downward sloping smile on four expiries."""
    times = [0.25, 0.5, 1.0, 2.0] * 3
    strikes = [0.8 * spot] * 4 + [spot] * 4 + [1.2 * spot] * 4
    vols = [0.26, 0.255, 0.25, 0.245,
            0.22, 0.22, 0.22, 0.22,
            0.19, 0.195, 0.2, 0.205]
    return InterpolatedNodalSurface("smile", times, strikes, vols,
                                    GridInterpolator2D("time_square", "cubic_spline"))


def print_grid(title: str, surface_fn, times, strikes) -> None:
    print(f"\n{title}")
    table = pd.DataFrame(
        [[surface_fn(t, k) for k in strikes] for t in times],
        index=[f"{t:.2f}y" for t in times],
        columns=[f"{k:.0f}" for k in strikes],
    )
    print(table.round(4).to_string())


def run_local_vol(config: QuantRiskConfig, spot: float) -> None:
    smile = build_smile(spot)
    rate, dividend = 0.03, 0.01

    tree_calc = ImpliedTrinomialTreeLocalVolatilityCalculator.from_config(config.implied_tree)
    tree_surface = tree_calc.local_volatility_from_implied_volatility(smile, spot, rate, dividend)

    dupire_calc = DupireLocalVolatilityCalculator.from_config(config.dupire)
    dupire_surface = dupire_calc.local_volatility_from_implied_volatility(smile, spot, rate, dividend)

    times = [0.25, 0.5, 1.0, 1.5]
    strikes = np.linspace(0.85 * spot, 1.15 * spot, 7)
    print_grid("Implied trinomial tree local volatility", tree_surface.value_at, times, strikes)
    print_grid("Dupire local volatility", dupire_surface.value_at, times, strikes)

    result = dupire_surface.evaluate(1.0, spot)
    sensi = smile.to_dataframe().assign(sensitivity=result.derivatives)
    print(f"\nDupire local volatility at (1y, {spot:.0f}): {result.value:.6f}")
    print(sensi.round(6).to_string(index=False))


def run_curve_sensitivity(config: QuantRiskConfig) -> None:
    valuation_date = date(2024, 1, 15)
    tenors = ["6M", "1Y", "2Y", "5Y", "10Y"]
    times = [0.5, 1.0, 2.0, 5.0, 10.0]
    metadata = CurveMetadata("USD-DSCON").with_parameter_metadata(
        [TenorParameterMetadata.of(t) for t in tenors]
    )
    curve = InterpolatedNodalCurve(metadata, times, [0.040, 0.041, 0.042, 0.043, 0.044],
                                   anchor_date=valuation_date)
    provider = ImmutableRatesProvider(valuation_date, discount_curves={"USD": curve})

    cash_flows = [(1.5, 5.0), (3.0, 5.0), (7.0, 105.0)]

    def present_value(p: ImmutableRatesProvider) -> CurrencyAmount:
        return CurrencyAmount("USD", sum(cf * p.discount_factor("USD", t) for t, cf in cash_flows))

    calc = RatesFiniteDifferenceSensitivityCalculator.from_config(config.finite_difference)
    sensitivities = calc.sensitivity(provider, present_value)
    print("\nFinite difference sensitivities (per unit zero rate)")
    print(sensitivities.to_dataframe().round(4).to_string(index=False))

    shift = 1.0e-4
    parallel = BumpEngine(provider).parallel_bump(shift)
    pv_change = present_value(parallel).amount - present_value(provider).amount
    print(f"\nParallel 1bp: PV change {pv_change:.6f}, "
          f"sum of sensitivities x 1bp {sensitivities.total()['USD'] * shift:.6f}")

    targets = [date(2025, 1, 15), date(2029, 1, 15), date(2034, 1, 15)]
    rebucketed = CurveSensitivityUtils.linear_rebucketing(sensitivities, targets, valuation_date)
    print("\nRe-bucketed onto 1Y / 5Y / 10Y")
    print(rebucketed.to_dataframe().round(4).to_string(index=False))


def main() -> int:
    parser = argparse.ArgumentParser(description="Local volatility and curve sensitivity demo")
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--spot", type=float, default=100.0, help="Spot price of the underlying")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = load_config(args.config) if args.config else QuantRiskConfig()

    print("=" * 60)
    print("LOCAL VOLATILITY")
    print("=" * 60)
    run_local_vol(config, args.spot)

    print("\n" + "=" * 60)
    print("CURVE SENSITIVITY")
    print("=" * 60)
    run_curve_sensitivity(config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
